"""
Tutor Responder: answers student doubts as NEET-Dost.

Builds the Gemini conversation from the caller's chat history, optionally
attaches an image to the new question, and turns on Google Search grounding
so the answer comes back with web sources.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from errors import TUTOR_FAILED_MESSAGE, ServiceFailureError
from llm.base import LLMClient
from llm.types import Citation, InlineDataPart, LLMResult, TextPart, Turn
from schemas import ChatMessage, TutorResponse, WebSource
from utils import decode_image, setup_logging

logger = setup_logging("tutor")

GREETING = "Hi! I am NEET-Dost. How can I help you with Physics, Chemistry, or Biology today?"

SYSTEM_INSTRUCTION = """You are NEET-Dost, an expert AI tutor for the Indian NEET-UG medical entrance exam. Your personality is encouraging, clear, and highly knowledgeable. Your primary goal is to solve student doubts in Physics, Chemistry, and Biology with exceptional clarity and depth.

**Response Structure (MANDATORY):**
You MUST structure EVERY response using the following format, using markdown for formatting. Do not deviate from this structure.

1️⃣ **Short Answer:**
Start with a direct, concise answer to the student's question. Get straight to the point.

2️⃣ **Step-by-step Explanation:**
Provide a detailed, logical explanation. Break down complex concepts into simple, easy-to-understand steps. Use analogies if helpful. For numerical problems, show all calculation steps clearly.

3️⃣ **NEET Tips & Common Mistakes:**
Offer a valuable tip related to the concept for the NEET exam. Mention common pitfalls or misconceptions students have about this topic and how to avoid them.

4️⃣ **Practice Question:**
(Optional, but highly recommended) Provide a new, relevant MCQ-style practice question based on the concept discussed. Include four options and the correct answer with a brief explanation.

**Core Instructions:**
- **Clarity is Key:** Explain things as if you're talking to a 17-year-old high school student.
- **NCERT Focus:** Base your explanations on the NCERT curriculum, which is the foundation for the NEET exam.
- **Web Search:** Use your web search capability to provide the most accurate, up-to-date information, especially for definitions, facts, and recent discoveries. You MUST cite your sources.
- **Image Analysis:** If an image is provided, analyze it carefully as the primary context for the student's question.
"""

_ROLES = {"user": "user", "bot": "model"}


def _is_greeting(message: ChatMessage) -> bool:
    return message.sender == "bot" and message.text == GREETING


def build_contents(
    history: Sequence[ChatMessage],
    question: str,
    image_base64: Optional[str] = None,
    image_mime_type: Optional[str] = None,
) -> List[Turn]:
    """Map chat history plus the new question to model turns.

    The canned greeting is left out so it does not end up in the model's
    context. Messages from senders other than user and bot are skipped.
    Images attached to earlier messages are not resent.

    Raises:
        ValueError: if the image is not valid base64
    """
    contents = []
    for message in history:
        if _is_greeting(message):
            continue
        if message.sender not in _ROLES:
            logger.warning(f"Skipping chat message from unknown sender {message.sender!r}")
            continue
        contents.append(Turn(role=_ROLES[message.sender], parts=(TextPart(message.text),)))

    parts = [TextPart(question)]
    if image_base64:
        data, mime_type = decode_image(image_base64, image_mime_type)
        parts.append(InlineDataPart(mime_type=mime_type, data=data))
    contents.append(Turn(role="user", parts=tuple(parts)))
    return contents


def extract_sources(citations: Iterable[Citation]) -> List[WebSource]:
    """Keep only citations that carry both a uri and a title."""
    return [WebSource(uri=c.uri, title=c.title) for c in citations if c.uri and c.title]


def dedupe_sources(sources: Iterable[WebSource]) -> List[WebSource]:
    """Collapse sources sharing a uri.

    The last entry seen for a uri wins; output order follows the first
    appearance of each uri.
    """
    unique: Dict[str, WebSource] = {}
    for source in sources:
        unique[source.uri] = source
    return list(unique.values())


def _to_response(result: LLMResult) -> TutorResponse:
    sources = dedupe_sources(extract_sources(result.citations))
    logger.info(f"Tutor answered with {len(result.text)} chars and {len(sources)} sources")
    return TutorResponse(text=result.text, sources=sources)


def ask_neet_dost(
    client: LLMClient,
    history: Sequence[ChatMessage],
    question: str,
    image_base64: Optional[str] = None,
    image_mime_type: Optional[str] = None,
) -> TutorResponse:
    """
    Ask the tutor a question in the context of an ongoing chat.

    Args:
        client: LLM client used for the single generation call
        history: Prior messages, oldest first; owned by the caller
        question: The student's new question
        image_base64: Optional image (raw base64 or a data URL)
        image_mime_type: Overrides the detected image MIME type

    Returns:
        The answer text and deduplicated web sources

    Raises:
        ValueError: if the image is not valid base64
        ServiceFailureError: if the Gemini call fails
    """
    contents = build_contents(history, question, image_base64, image_mime_type)
    logger.info(f"Asking NEET-Dost with {len(contents) - 1} history turns")

    try:
        result = client.generate(contents, system_instruction=SYSTEM_INSTRUCTION, web_search=True)
    except Exception as e:
        logger.error(f"Error asking NEET-Dost: {e}", exc_info=True)
        raise ServiceFailureError(TUTOR_FAILED_MESSAGE, cause=e) from e

    return _to_response(result)


async def aask_neet_dost(
    client: LLMClient,
    history: Sequence[ChatMessage],
    question: str,
    image_base64: Optional[str] = None,
    image_mime_type: Optional[str] = None,
) -> TutorResponse:
    """Async form of ask_neet_dost."""
    contents = build_contents(history, question, image_base64, image_mime_type)
    logger.info(f"Asking NEET-Dost with {len(contents) - 1} history turns")

    try:
        result = await client.agenerate(contents, system_instruction=SYSTEM_INSTRUCTION, web_search=True)
    except Exception as e:
        logger.error(f"Error asking NEET-Dost: {e}", exc_info=True)
        raise ServiceFailureError(TUTOR_FAILED_MESSAGE, cause=e) from e

    return _to_response(result)
