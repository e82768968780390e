from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence, Union

from llm.types import LLMResult, Turn

Contents = Union[str, Sequence[Turn]]


class LLMClient(Protocol):
    def generate(
        self,
        contents: Contents,
        *,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        response_mime_type: Optional[str] = None,
        web_search: bool = False,
    ) -> LLMResult:
        ...

    async def agenerate(
        self,
        contents: Contents,
        *,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        response_mime_type: Optional[str] = None,
        web_search: bool = False,
    ) -> LLMResult:
        ...
