"""Model-service adapters.

OpenAILLMProvider implements ILLMProvider (src/interfaces/llm_provider.py)
against the OpenAI API or any OpenAI-compatible endpoint.  main.py builds
it when OPENAI_API_KEY is set and injects it into app.state.
"""

from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
