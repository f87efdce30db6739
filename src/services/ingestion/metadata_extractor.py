"""LLM-powered metadata extraction for ingested articles.

Sends the first part of an article (1500 characters by default) and its URL
to the model service and asks for a JSON object with the publisher, the
author, named entities and two or three category labels.

The response is validated strictly: anything that is not a JSON object of
the expected shape raises :class:`MetadataExtractionError` instead of being
coerced into something plausible.  Callers run this detached from ingestion,
so a failure only means the document stays without metadata.
"""

from __future__ import annotations

import json
import re

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.interfaces.llm_provider import ILLMProvider
from src.models.document import DocumentMetadata, NamedEntities
from src.utils.errors import MetadataExtractionError

logger = structlog.get_logger(logger_name=__name__)

_EXTRACTION_SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts structured data from text."
)

_EXTRACTION_USER_PROMPT = """\
Extract the following information from this article text and return it as a JSON object:
- publisher_name: the name of the publication or website
- author: the author of the article
- named_entities: an object with lists of "organizations", "persons", "locations" and "dates" mentioned
- categories: 2-3 short topic categories that describe the article

Use null for publisher_name or author when they cannot be determined.

Source URL: {url}

Text:
{text}"""

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class _EntitiesPayload(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    organizations: list[str] = Field(default_factory=list)
    persons: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    dates: list[str] = Field(default_factory=list)


class _MetadataPayload(BaseModel):
    """Expected shape of the model's JSON answer."""

    model_config = ConfigDict(strict=True, extra="ignore")

    publisher_name: str | None = None
    author: str | None = None
    named_entities: _EntitiesPayload = Field(default_factory=_EntitiesPayload)
    categories: list[str] = Field(min_length=2, max_length=3)


class MetadataExtractor:
    """Extracts :class:`DocumentMetadata` from article text with an LLM.

    Parameters
    ----------
    llm:
        Model service used for the extraction prompt.
    prefix_chars:
        How many leading characters of the article are sent.
    temperature:
        Sampling temperature for the extraction call.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        prefix_chars: int = 1500,
        temperature: float = 0.2,
    ) -> None:
        self._llm = llm
        self._prefix_chars = prefix_chars
        self._temperature = temperature

    async def extract(self, content: str, source_url: str | None = None) -> DocumentMetadata:
        """Return metadata for *content*.

        Raises
        ------
        MetadataExtractionError
            If the response is not a well-formed JSON object of the
            expected shape.
        src.utils.errors.LLMError
            If the model-service call itself fails.
        """
        response = await self._llm.complete(
            system_prompt=_EXTRACTION_SYSTEM_PROMPT,
            user_prompt=_EXTRACTION_USER_PROMPT.format(
                url=source_url or "unknown",
                text=content[: self._prefix_chars],
            ),
            temperature=self._temperature,
            max_tokens=800,
            json_mode=True,
        )
        metadata = self.parse_response(response)
        logger.info(
            "metadata_extracted",
            source_url=source_url,
            publisher=metadata.publisher_name,
            categories=metadata.categories,
        )
        return metadata

    @staticmethod
    def parse_response(response: str) -> DocumentMetadata:
        """Validate a raw model answer into :class:`DocumentMetadata`.

        A surrounding Markdown code fence is tolerated; everything else must
        already be correct.
        """
        cleaned = response.strip()
        fence = _FENCE.match(cleaned)
        if fence:
            cleaned = fence.group(1)

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise MetadataExtractionError(
                message=f"Metadata response is not valid JSON: {exc.msg}",
            ) from exc

        if not isinstance(data, dict):
            raise MetadataExtractionError(
                message=f"Metadata response must be a JSON object, got {type(data).__name__}",
            )

        try:
            payload = _MetadataPayload.model_validate(data)
        except ValidationError as exc:
            raise MetadataExtractionError(
                message=f"Metadata response has the wrong shape: {exc.error_count()} error(s)",
            ) from exc

        return DocumentMetadata(
            publisher_name=payload.publisher_name or None,
            author=payload.author or None,
            named_entities=NamedEntities(**payload.named_entities.model_dump()),
            categories=payload.categories,
        )
