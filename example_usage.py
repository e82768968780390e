"""
Example usage of the question generator and the NEET-Dost tutor.

Reads GEMINI_API_KEY (and optionally GEMINI_MODEL) from the environment or a
.env file.

    python example_usage.py questions Physics --chapters "Laws of Motion" --count 3
    python example_usage.py ask "What is osmosis?" --image diagram.png
"""

import argparse
import base64
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from errors import NeetDostError
from llm.factory import create_llm_client
from question_generator import generate_practice_questions
from schemas import ChatMessage, DIFFICULTIES, MIXED_DIFFICULTY
from tutor import GREETING, ask_neet_dost

# Load environment variables
load_dotenv()


def example_questions(args: argparse.Namespace) -> None:
    client = create_llm_client()
    questions = generate_practice_questions(
        client,
        args.subject,
        args.chapters,
        args.topics,
        args.difficulty,
        args.count,
    )
    print(json.dumps([q.to_dict() for q in questions], indent=2, ensure_ascii=False))


def example_ask(args: argparse.Namespace) -> None:
    client = create_llm_client()
    image_base64 = None
    if args.image:
        image_base64 = base64.b64encode(Path(args.image).read_bytes()).decode("ascii")

    history = [ChatMessage(sender="bot", text=GREETING)]
    response = ask_neet_dost(client, history, args.question, image_base64)

    print(response.text)
    if response.sources:
        print("\n" + "-"*60)
        print("SOURCES:")
        print("-"*60)
        for source in response.sources:
            print(f"  {source.title}: {source.uri}")


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    sub = parser.add_subparsers(dest="command", required=True)

    q = sub.add_parser("questions", help="Generate practice MCQs")
    q.add_argument("subject")
    q.add_argument("--chapters", nargs="*", default=[])
    q.add_argument("--topics", nargs="*", default=[])
    q.add_argument("--difficulty", choices=[*DIFFICULTIES, MIXED_DIFFICULTY], default=MIXED_DIFFICULTY)
    q.add_argument("--count", type=int, default=5)
    q.set_defaults(func=example_questions)

    a = sub.add_parser("ask", help="Ask NEET-Dost a question")
    a.add_argument("question")
    a.add_argument("--image", help="Path to an image to attach")
    a.set_defaults(func=example_ask)

    args = parser.parse_args()
    try:
        args.func(args)
    except NeetDostError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
