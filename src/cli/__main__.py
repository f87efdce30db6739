"""Allow ``python -m src.cli`` execution (delegates to the ingest CLI)."""

import sys

from src.cli.ingest import main

sys.exit(main())
