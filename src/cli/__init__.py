"""CLI tools for ragLite.

- ``python -m src.cli.ingest`` -- ingest URLs and raw text, delete and
  search documents, and ask questions from the terminal.

Commands use argparse and build their own providers and services rather
than going through the FastAPI app, because they run as one-shot scripts.
"""
