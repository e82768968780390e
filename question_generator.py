"""
Question Generator: NEET-UG style MCQs from a single structured Gemini call.

The prompt embeds the caller's parameters verbatim, the response is forced to
JSON against a fixed schema, and every record is checked before it is handed
back. Records that fail the checks are dropped; if nothing usable is left the
call fails with MalformedOutputError.
"""

import json
from typing import Any, Dict, List, Sequence

from errors import QUESTIONS_FAILED_MESSAGE, MalformedOutputError, ServiceFailureError
from llm.base import LLMClient
from llm.types import LLMResult
from schemas import (
    DIFFICULTIES,
    MIXED_DIFFICULTY,
    OPTIONS_PER_QUESTION,
    QUESTION_SOURCE,
    QUESTION_TYPE,
    GenerationParameters,
    Question,
    question_response_schema,
)
from utils import setup_logging

logger = setup_logging("question_generator")

_TEXT_FIELDS = ("subject", "chapter", "topic", "questionText", "explanation", "source")


def build_question_prompt(params: GenerationParameters) -> str:
    chapters_line = f"**Chapters:** {', '.join(params.chapters)}" if params.chapters else ""
    topics_line = f"**Topics:** {', '.join(params.topics)}" if params.topics else ""
    if params.difficulty == MIXED_DIFFICULTY:
        difficulty = "A realistic mix of Easy (approx. 30%), Medium (approx. 50%), and Hard (approx. 20%)"
    else:
        difficulty = params.difficulty

    return f"""
    You are a lead question designer for the National Testing Agency (NTA), the body that conducts the NEET-UG exam in India. Your sole task is to generate {params.count} brand-new, unique, multiple-choice questions (MCQs) for an upcoming mock test. These questions must be of the highest quality and indistinguishable from those in the actual NEET exam. A student's future career depends on the quality and relevance of your questions.

    **Core Directives (Non-negotiable):**
    1.  **PYQ (Previous Year Questions) Analysis:** Your questions must be heavily inspired by the patterns, concepts, and difficulty distribution observed in the last 10 years of NEET and AIPMT papers. Focus on frequently tested concepts and the style of questions the NTA prefers.
    2.  **Strict NCERT Alignment:** Every single question must be grounded in the concepts presented in the NCERT Class 11 and 12 textbooks for {params.subject}. Do NOT generate questions on topics outside the official NEET syllabus.
    3.  **Conceptual Depth:** Avoid simple, recall-based questions. Your questions should test a student's deep understanding, analytical skills, and ability to apply concepts, just like in the real exam.
    4.  **Uniqueness Guarantee:** The generated questions MUST be novel. Do not copy or slightly rephrase questions from any existing source, including past papers or popular coaching materials. Your goal is to create fresh challenges based on established patterns.
    5.  **Plausible Distractors:** The incorrect options must be scientifically plausible and target common student misconceptions. A good distractor is one that a student with a partial understanding of the topic might choose. All options must be distinct.

    **Generation Parameters:**
    - **Subject:** {params.subject}
    - {chapters_line}
    - {topics_line}
    - **Difficulty:** {difficulty}
    - **Number of Questions:** {params.count}

    **Output Requirements:**
    - You MUST return a valid JSON array of question objects.
    - Strictly adhere to the provided JSON schema.
    - Each question MUST have exactly {OPTIONS_PER_QUESTION} options.
    - The 'source' field must be '{QUESTION_SOURCE}'.
    - The 'type' must be 'MCQ'.
    - The 'explanation' must be concise, accurate, and clearly explain why the correct option is the best answer.
  """


def validate_question(record: Any) -> List[str]:
    """Return the problems found in one generated record (empty if usable)."""
    if not isinstance(record, dict):
        return ["record is not an object"]

    problems = []
    for name in _TEXT_FIELDS:
        value = record.get(name)
        if not isinstance(value, str) or not value.strip():
            problems.append(f"{name} must be a non-empty string")

    if record.get("difficulty") not in DIFFICULTIES:
        problems.append(f"difficulty must be one of {', '.join(DIFFICULTIES)}")

    if record.get("type") != QUESTION_TYPE:
        problems.append(f"type must be {QUESTION_TYPE}")

    options = record.get("options")
    if not isinstance(options, list) or not all(isinstance(o, str) and o.strip() for o in options):
        problems.append("options must be a list of non-empty strings")
        options = None
    elif len(options) != OPTIONS_PER_QUESTION:
        problems.append(f"expected {OPTIONS_PER_QUESTION} options, got {len(options)}")
    elif len({o.strip() for o in options}) != len(options):
        problems.append("options must be distinct")

    index = record.get("correctOptionIndex")
    if isinstance(index, bool) or not isinstance(index, int):
        problems.append("correctOptionIndex must be an integer")
    elif options is not None and not 0 <= index < len(options):
        problems.append(f"correctOptionIndex {index} out of range")

    return problems


def parse_questions(raw_text: str, expected_count: int) -> List[Question]:
    """Parse and check the model's JSON output.

    Raises:
        MalformedOutputError: if the text is not a non-empty JSON array, or no
            record in it passes validation
    """
    try:
        generated = json.loads(raw_text.strip())
    except ValueError as e:
        logger.error(f"Error generating questions with Gemini: response is not JSON ({e})")
        raise MalformedOutputError(QUESTIONS_FAILED_MESSAGE, cause=e) from e

    if not isinstance(generated, list) or len(generated) == 0:
        logger.error("Error generating questions with Gemini: AI returned no questions or invalid format.")
        raise MalformedOutputError(QUESTIONS_FAILED_MESSAGE)

    questions = []
    for position, record in enumerate(generated):
        problems = validate_question(record)
        if problems:
            logger.warning(f"Dropping generated question #{position}: {'; '.join(problems)}")
            continue
        questions.append(Question.from_dict(record))

    if not questions:
        logger.error(f"Error generating questions with Gemini: all {len(generated)} records were invalid")
        raise MalformedOutputError(QUESTIONS_FAILED_MESSAGE)

    if len(questions) != expected_count:
        logger.warning(f"Requested {expected_count} questions, returning {len(questions)}")

    return questions


def _request_kwargs() -> Dict[str, Any]:
    return {
        "response_mime_type": "application/json",
        "response_schema": question_response_schema(),
    }


def generate_practice_questions(
    client: LLMClient,
    subject: str,
    chapters: Sequence[str],
    topics: Sequence[str],
    difficulty: str,
    count: int,
) -> List[Question]:
    """
    Generate ``count`` NEET-style MCQs.

    Args:
        client: LLM client used for the single generation call
        subject: Physics, Chemistry or Biology
        chapters: Chapters to draw from (may be empty)
        topics: Topics to draw from (may be empty)
        difficulty: Easy, Medium, Hard or Mixed
        count: Number of questions to request

    Returns:
        Validated questions, without ids

    Raises:
        ValueError: if count is not a positive integer
        MalformedOutputError: if the model output is unusable
        ServiceFailureError: if the Gemini call fails
    """
    params = GenerationParameters(subject, tuple(chapters), tuple(topics), difficulty, count)
    prompt = build_question_prompt(params)
    logger.info(f"Requesting {count} {difficulty} {subject} questions")

    try:
        result: LLMResult = client.generate(prompt, **_request_kwargs())
    except Exception as e:
        logger.error(f"Error generating questions with Gemini: {e}", exc_info=True)
        raise ServiceFailureError(QUESTIONS_FAILED_MESSAGE, cause=e) from e

    logger.debug(f"Question generation used {result.total_tokens} tokens")
    return parse_questions(result.text, count)


async def agenerate_practice_questions(
    client: LLMClient,
    subject: str,
    chapters: Sequence[str],
    topics: Sequence[str],
    difficulty: str,
    count: int,
) -> List[Question]:
    """Async form of generate_practice_questions."""
    params = GenerationParameters(subject, tuple(chapters), tuple(topics), difficulty, count)
    prompt = build_question_prompt(params)
    logger.info(f"Requesting {count} {difficulty} {subject} questions")

    try:
        result: LLMResult = await client.agenerate(prompt, **_request_kwargs())
    except Exception as e:
        logger.error(f"Error generating questions with Gemini: {e}", exc_info=True)
        raise ServiceFailureError(QUESTIONS_FAILED_MESSAGE, cause=e) from e

    logger.debug(f"Question generation used {result.total_tokens} tokens")
    return parse_questions(result.text, count)
