import os
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from google.genai import types

from llm.factory import DEFAULT_MODEL, create_llm_client
from llm.gemini import GeminiClient
from llm.types import Citation, InlineDataPart, TextPart, Turn
from rate_limits import RateLimitExceeded, RequestRateLimiter


def make_response(text="answer", chunks=None, usage=None):
    metadata = SimpleNamespace(grounding_chunks=chunks)
    return SimpleNamespace(
        text=text,
        candidates=[SimpleNamespace(grounding_metadata=metadata)],
        usage_metadata=usage,
    )


def web_chunk(uri=None, title=None):
    return SimpleNamespace(web=SimpleNamespace(uri=uri, title=title))


class TestGeminiClient(unittest.TestCase):
    def setUp(self) -> None:
        self.sdk = MagicMock()
        self.sdk.models.generate_content.return_value = make_response()
        self.client = GeminiClient(client=self.sdk, model="gemini-2.5-flash")

    def test_prompt_string_with_json_schema(self) -> None:
        schema = {"type": "ARRAY", "items": {"type": "STRING"}}

        self.client.generate("prompt", response_schema=schema, response_mime_type="application/json")

        kwargs = self.sdk.models.generate_content.call_args.kwargs
        self.assertEqual(kwargs["model"], "gemini-2.5-flash")
        self.assertEqual(kwargs["contents"], "prompt")
        config = kwargs["config"]
        self.assertEqual(config.response_mime_type, "application/json")
        self.assertIsNotNone(config.response_schema)
        self.assertIsNone(config.tools)

    def test_turns_are_converted_and_search_enabled(self) -> None:
        turns = [
            Turn(role="model", parts=(TextPart("earlier answer"),)),
            Turn(role="user", parts=(TextPart("what is this?"), InlineDataPart("image/png", b"\x89PNG"))),
        ]

        self.client.generate(turns, system_instruction="be a tutor", web_search=True)

        kwargs = self.sdk.models.generate_content.call_args.kwargs
        contents = kwargs["contents"]
        self.assertEqual([c.role for c in contents], ["model", "user"])
        self.assertEqual(contents[1].parts[0].text, "what is this?")
        self.assertEqual(contents[1].parts[1].inline_data.mime_type, "image/png")
        self.assertEqual(contents[1].parts[1].inline_data.data, b"\x89PNG")
        config = kwargs["config"]
        self.assertEqual(config.system_instruction, "be a tutor")
        self.assertEqual(len(config.tools), 1)
        self.assertIsInstance(config.tools[0].google_search, types.GoogleSearch)

    def test_citations_and_usage_are_extracted(self) -> None:
        usage = SimpleNamespace(prompt_token_count=12, candidates_token_count=30, total_token_count=42)
        self.sdk.models.generate_content.return_value = make_response(
            chunks=[web_chunk("https://a.example", "A"), SimpleNamespace(web=None), web_chunk(title="no uri")],
            usage=usage,
        )

        result = self.client.generate("prompt")

        self.assertEqual(result.text, "answer")
        self.assertEqual(
            result.citations,
            (Citation("https://a.example", "A"), Citation(None, None), Citation(None, "no uri")),
        )
        self.assertEqual((result.prompt_tokens, result.completion_tokens, result.total_tokens), (12, 30, 42))

    def test_missing_candidates_and_text(self) -> None:
        self.sdk.models.generate_content.return_value = SimpleNamespace(text=None, candidates=None, usage_metadata=None)

        result = self.client.generate("prompt")

        self.assertEqual(result.text, "")
        self.assertEqual(result.citations, ())

    def test_sdk_errors_propagate(self) -> None:
        self.sdk.models.generate_content.side_effect = RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            self.client.generate("prompt")

    def test_rate_limiter_is_consulted(self) -> None:
        limiter = RequestRateLimiter(max_per_minute=5, max_per_day=1)
        client = GeminiClient(client=self.sdk, model="m", rate_limiter=limiter)

        client.generate("first")
        with self.assertRaises(RateLimitExceeded):
            client.generate("second")

        self.assertEqual(self.sdk.models.generate_content.call_count, 1)


class TestGeminiClientAsync(unittest.IsolatedAsyncioTestCase):
    async def test_agenerate_uses_aio_surface(self) -> None:
        sdk = MagicMock()
        sdk.aio.models.generate_content = AsyncMock(return_value=make_response(text="async answer"))
        client = GeminiClient(client=sdk, model="gemini-2.5-flash")

        result = await client.agenerate("prompt", web_search=True)

        self.assertEqual(result.text, "async answer")
        sdk.aio.models.generate_content.assert_awaited_once()
        sdk.models.generate_content.assert_not_called()


class TestCreateLLMClient(unittest.TestCase):
    @patch("llm.factory.load_dotenv")
    @patch("google.genai.Client")
    def test_reads_key_and_model_from_env(self, genai_client, _load_dotenv) -> None:
        env = {"GEMINI_API_KEY": "key-1", "GEMINI_MODEL": "gemini-2.5-pro"}
        with patch.dict(os.environ, env, clear=True):
            client = create_llm_client()

        genai_client.assert_called_once_with(api_key="key-1")
        self.assertEqual(client.model, "gemini-2.5-pro")
        self.assertIsNone(client.rate_limiter)

    @patch("llm.factory.load_dotenv")
    @patch("google.genai.Client")
    def test_falls_back_to_api_key_and_default_model(self, genai_client, _load_dotenv) -> None:
        with patch.dict(os.environ, {"API_KEY": "key-2"}, clear=True):
            client = create_llm_client()

        genai_client.assert_called_once_with(api_key="key-2")
        self.assertEqual(client.model, DEFAULT_MODEL)

    @patch("llm.factory.load_dotenv")
    def test_missing_key_raises(self, _load_dotenv) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValueError):
                create_llm_client()

    @patch("llm.factory.load_dotenv")
    @patch("google.genai.Client")
    def test_rate_limits_from_env(self, genai_client, _load_dotenv) -> None:
        env = {"GEMINI_API_KEY": "k", "GEMINI_MAX_RPM": "3", "GEMINI_MAX_RPD": "not-a-number"}
        with patch.dict(os.environ, env, clear=True):
            client = create_llm_client()

        self.assertEqual(client.rate_limiter.max_per_minute, 3)
        self.assertIsNone(client.rate_limiter.max_per_day)

    @patch("llm.factory.load_dotenv")
    @patch("google.genai.Client")
    def test_only_daily_cap_from_env(self, genai_client, _load_dotenv) -> None:
        env = {"GEMINI_API_KEY": "k", "GEMINI_MAX_RPD": "40"}
        with patch.dict(os.environ, env, clear=True):
            client = create_llm_client()

        self.assertIsNone(client.rate_limiter.max_per_minute)
        self.assertEqual(client.rate_limiter.max_per_day, 40)


if __name__ == "__main__":
    unittest.main()
