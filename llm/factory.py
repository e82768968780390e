from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

from llm.gemini import GeminiClient
from rate_limits import RequestRateLimiter

DEFAULT_MODEL = "gemini-2.5-flash"


def create_llm_client(*, api_key: Optional[str] = None, model: Optional[str] = None) -> GeminiClient:
    """Create a Gemini client from explicit arguments or environment configuration.

    Env:
      - GEMINI_API_KEY / GOOGLE_API_KEY / API_KEY
      - GEMINI_MODEL (default: gemini-2.5-flash)
      - GEMINI_MAX_RPM, GEMINI_MAX_RPD (attach a request rate limiter when set)
    """
    load_dotenv()

    from google import genai

    api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")
    if not api_key:
        raise ValueError("Missing GEMINI_API_KEY (or GOOGLE_API_KEY / API_KEY) for Gemini provider")

    model = model or os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
    client = genai.Client(api_key=api_key)

    return GeminiClient(client=client, model=model, rate_limiter=get_rate_limiter())


def get_rate_limiter() -> Optional[RequestRateLimiter]:
    max_rpm = _int_env("GEMINI_MAX_RPM")
    max_rpd = _int_env("GEMINI_MAX_RPD")
    if max_rpm is None and max_rpd is None:
        return None

    # only the caps that were configured are enforced
    return RequestRateLimiter(max_per_minute=max_rpm, max_per_day=max_rpd)


def _int_env(name: str) -> Optional[int]:
    raw = os.getenv(name)
    try:
        return int(raw) if raw else None
    except ValueError:
        return None
