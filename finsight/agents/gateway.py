"""
AI Gateway

The only place that talks to the generative model. Everything behind this
boundary is opaque: a request goes in (prompt, optional schema hint,
optional search grounding, optional chat history) and a response comes
back (text plus grounding citations).

The gateway makes NO promises about the text. It may ignore the schema,
wrap JSON in prose, or return nothing. Callers must run the text through
the reconciler before touching domain state.

There is no retry here: a failed call surfaces immediately as a
GatewayError and the caller degrades to an empty result.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import google.generativeai as genai
from pydantic import BaseModel, Field

from finsight.config import GeminiSettings, get_settings
from finsight.models.transaction import SearchSource


class GatewayError(Exception):
    """The AI backend could not be reached or returned no usable response."""
    pass


class ChatTurn(BaseModel):
    """One message in a conversation history."""

    role: str = Field(pattern="^(user|model)$")
    text: str


class GatewayResponse(BaseModel):
    """What came back from the model."""

    text: str = ""
    citations: list[SearchSource] = Field(default_factory=list)


class AIGateway(ABC):
    """Request/response boundary to a generative model."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        response_schema: Optional[dict] = None,
        use_search: bool = False,
        history: Optional[list[ChatTurn]] = None,
    ) -> GatewayResponse:
        """
        Send one request.

        Args:
            prompt: The user-turn text
            response_schema: Optional JSON schema hint; implies JSON output
            use_search: Ask the model to ground its answer with web search
            history: Prior conversation turns, oldest first

        Raises:
            GatewayError: If the call fails
        """
        pass


def _extract_citations(response: Any) -> list[SearchSource]:
    """Pull (title, uri) pairs out of the first candidate's grounding metadata."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    citations = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        title = getattr(web, "title", None)
        uri = getattr(web, "uri", None)
        if title and uri:
            citations.append(SearchSource(title=title, uri=uri))
    return citations


class GeminiGateway(AIGateway):
    """Gateway backed by Google Generative AI."""

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def generate(
        self,
        prompt: str,
        *,
        response_schema: Optional[dict] = None,
        use_search: bool = False,
        history: Optional[list[ChatTurn]] = None,
    ) -> GatewayResponse:
        contents = [
            {"role": turn.role, "parts": [turn.text]}
            for turn in (history or [])
        ]
        contents.append({"role": "user", "parts": [prompt]})

        kwargs: dict[str, Any] = {}
        if response_schema is not None:
            kwargs["generation_config"] = {
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
                "response_schema": response_schema,
            }
        if use_search:
            kwargs["tools"] = "google_search_retrieval"

        try:
            response = await self._model.generate_content_async(contents, **kwargs)
            text = response.text or ""
        except Exception as e:
            raise GatewayError(f"Gemini request failed: {e}") from e

        return GatewayResponse(
            text=text.strip(),
            citations=_extract_citations(response),
        )
