from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineDataPart:
    """Binary payload sent inline with a turn (e.g. an uploaded image)."""

    mime_type: str
    data: bytes


Part = Union[TextPart, InlineDataPart]


@dataclass(frozen=True)
class Turn:
    role: str  # 'user' | 'model'
    parts: Tuple[Part, ...]


@dataclass(frozen=True)
class Citation:
    """A web grounding chunk; either field may be missing in the response."""

    uri: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class LLMResult:
    text: str
    citations: Tuple[Citation, ...] = field(default_factory=tuple)
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    raw: Optional[Any] = None
