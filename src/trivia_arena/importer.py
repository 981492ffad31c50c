"""Turn generated quiz questions into flashcards."""
import json
from pathlib import Path

import yaml

from trivia_arena.errors import InvalidFlashcard
from trivia_arena.flashcards import create_flashcard


def read_questions(file_path: str) -> list[dict]:
    """Load quiz questions from a JSON or YAML file.

    Accepts either a bare list or an object with a ``questions`` key, which
    is the shape the quiz generator returns.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix not in (".json", ".yaml", ".yml"):
        raise InvalidFlashcard(f"Unsupported quiz file type: {suffix or path.name}")
    try:
        if suffix == ".json":
            data = json.loads(path.read_text())
        else:
            data = yaml.safe_load(path.read_text())
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
        raise InvalidFlashcard(f"Could not read {path.name}: {e}") from e
    if isinstance(data, dict):
        data = data.get("questions", [])
    if not isinstance(data, list):
        raise InvalidFlashcard(f"{path.name} does not contain a list of questions")
    return data


def question_to_card(question: dict) -> tuple[str, str]:
    """Return (front, back) for a multiple-choice question."""
    try:
        front = question["question_text"]
        options = question["options"]
        index = question["correct_answer"]
    except (KeyError, TypeError) as e:
        raise InvalidFlashcard(f"Malformed quiz question: {question!r}") from e
    if (
        not isinstance(options, list)
        or not isinstance(index, int)
        or isinstance(index, bool)
        or not 0 <= index < len(options)
    ):
        raise InvalidFlashcard(f"Malformed quiz question: {question!r}")
    answer = str(options[index])
    if question.get("explanation"):
        answer = f"{answer}\n\n{question['explanation']}"
    return str(front), answer


def import_questions(
    db_path: str,
    questions: list[dict],
    category: str | None = None,
    difficulty: str = "medium",
) -> list[int]:
    cards = [question_to_card(q) for q in questions]
    return [
        create_flashcard(db_path, front, back, category=category, difficulty=difficulty)
        for front, back in cards
    ]


def import_file(
    db_path: str,
    file_path: str,
    category: str | None = None,
    difficulty: str = "medium",
) -> dict:
    questions = read_questions(file_path)
    card_ids = import_questions(db_path, questions, category=category, difficulty=difficulty)
    return {"filename": Path(file_path).name, "created": len(card_ids), "card_ids": card_ids}
