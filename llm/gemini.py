from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from llm.base import Contents
from llm.types import Citation, InlineDataPart, LLMResult, TextPart
from rate_limits import RequestRateLimiter


@dataclass
class GeminiClient:
    """Thin wrapper around google-genai to match the LLMClient interface."""

    client: "object"  # genai.Client
    model: str
    rate_limiter: Optional[RequestRateLimiter] = None

    def generate(
        self,
        contents: Contents,
        *,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        response_mime_type: Optional[str] = None,
        web_search: bool = False,
    ) -> LLMResult:
        if self.rate_limiter is not None:
            self.rate_limiter.acquire()

        response = self.client.models.generate_content(
            model=self.model,
            contents=_to_sdk_contents(contents),
            config=_build_config(
                system_instruction=system_instruction,
                response_schema=response_schema,
                response_mime_type=response_mime_type,
                web_search=web_search,
            ),
        )
        return _to_result(response)

    async def agenerate(
        self,
        contents: Contents,
        *,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        response_mime_type: Optional[str] = None,
        web_search: bool = False,
    ) -> LLMResult:
        if self.rate_limiter is not None:
            await self.rate_limiter.aacquire()

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=_to_sdk_contents(contents),
            config=_build_config(
                system_instruction=system_instruction,
                response_schema=response_schema,
                response_mime_type=response_mime_type,
                web_search=web_search,
            ),
        )
        return _to_result(response)


def _to_sdk_contents(contents: Contents) -> Any:
    # Local import so the neutral request builders stay importable without the SDK.
    from google.genai import types

    if isinstance(contents, str):
        return contents

    sdk_contents: List[types.Content] = []
    for turn in contents:
        parts: List[types.Part] = []
        for part in turn.parts:
            if isinstance(part, TextPart):
                parts.append(types.Part.from_text(text=part.text))
            elif isinstance(part, InlineDataPart):
                parts.append(types.Part.from_bytes(data=part.data, mime_type=part.mime_type))
            else:
                raise TypeError(f"Unsupported content part: {part!r}")
        sdk_contents.append(types.Content(role=turn.role, parts=parts))
    return sdk_contents


def _build_config(
    *,
    system_instruction: Optional[str],
    response_schema: Optional[Dict[str, Any]],
    response_mime_type: Optional[str],
    web_search: bool,
) -> Any:
    from google.genai import types

    tools = [types.Tool(google_search=types.GoogleSearch())] if web_search else None
    return types.GenerateContentConfig(
        system_instruction=system_instruction,
        response_mime_type=response_mime_type,
        response_schema=response_schema,
        tools=tools,
    )


def _extract_citations(response: Any) -> Tuple[Citation, ...]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ()
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    citations = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        citations.append(
            Citation(
                uri=getattr(web, "uri", None),
                title=getattr(web, "title", None),
            )
        )
    return tuple(citations)


def _to_result(response: Any) -> LLMResult:
    usage = getattr(response, "usage_metadata", None)
    prompt_tokens = 0
    completion_tokens = 0
    total_tokens = 0
    if usage:
        prompt_tokens = int(getattr(usage, "prompt_token_count", 0) or 0)
        completion_tokens = int(getattr(usage, "candidates_token_count", 0) or 0)
        total_tokens = int(getattr(usage, "total_token_count", 0) or (prompt_tokens + completion_tokens))

    return LLMResult(
        text=(response.text or ""),
        citations=_extract_citations(response),
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
        raw=response,
    )
