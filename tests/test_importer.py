# tests/test_importer.py
import json

import pytest

from trivia_arena.errors import InvalidFlashcard
from trivia_arena.flashcards import get_flashcards
from trivia_arena.importer import import_file, import_questions, question_to_card, read_questions

QUESTIONS = [
    {
        "question_text": "Which planet is known as the Red Planet?",
        "options": ["Venus", "Mars", "Jupiter", "Saturn"],
        "correct_answer": 1,
        "explanation": "Iron oxide gives Mars its colour.",
    },
    {
        "question_text": "What is H2O?",
        "options": ["Water", "Salt"],
        "correct_answer": 0,
    },
]


def test_question_to_card_appends_explanation():
    front, back = question_to_card(QUESTIONS[0])
    assert front == "Which planet is known as the Red Planet?"
    assert back == "Mars\n\nIron oxide gives Mars its colour."


def test_question_to_card_without_explanation():
    assert question_to_card(QUESTIONS[1]) == ("What is H2O?", "Water")


@pytest.mark.parametrize("bad", [
    {"options": ["a"], "correct_answer": 0},
    {"question_text": "Q", "options": ["a"], "correct_answer": 3},
    {"question_text": "Q", "options": None, "correct_answer": 0},
    {"question_text": "Q", "options": ["a", "b"], "correct_answer": -1},
    {"question_text": "Q", "options": ["a", "b"], "correct_answer": True},
    {"question_text": "Q", "options": ["a", "b"], "correct_answer": "1"},
    {"question_text": "Q", "options": "ab", "correct_answer": 0},
])
def test_question_to_card_rejects_malformed(bad):
    with pytest.raises(InvalidFlashcard):
        question_to_card(bad)


def test_read_json_with_questions_key(tmp_path):
    f = tmp_path / "quiz.json"
    f.write_text(json.dumps({"questions": QUESTIONS}))
    assert read_questions(str(f)) == QUESTIONS


def test_read_yaml_list(tmp_path):
    f = tmp_path / "quiz.yaml"
    f.write_text(
        "- question_text: Who wrote Hamlet?\n"
        "  options: [Marlowe, Shakespeare]\n"
        "  correct_answer: 1\n"
    )
    questions = read_questions(str(f))
    assert questions[0]["options"][1] == "Shakespeare"


def test_read_unsupported_file(tmp_path):
    f = tmp_path / "quiz.txt"
    f.write_text("nope")
    with pytest.raises(InvalidFlashcard):
        read_questions(str(f))


def test_question_to_card_stringifies_numbers():
    question = {"question_text": 1969, "options": [3, 4, 5], "correct_answer": 1}
    assert question_to_card(question) == ("1969", "4")


@pytest.mark.parametrize("name,content", [
    ("quiz.json", "{not json"),
    ("quiz.yaml", "- question_text: [unclosed\n"),
])
def test_read_unparseable_file(tmp_path, name, content):
    f = tmp_path / name
    f.write_text(content)
    with pytest.raises(InvalidFlashcard, match="Could not read"):
        read_questions(str(f))


def test_read_json_scalar(tmp_path):
    f = tmp_path / "quiz.json"
    f.write_text("42")
    with pytest.raises(InvalidFlashcard):
        read_questions(str(f))


def test_import_questions(arena_db):
    ids = import_questions(arena_db, QUESTIONS, category="Science", difficulty="hard")
    assert len(ids) == 2
    cards = get_flashcards(arena_db)
    assert {c.difficulty for c in cards} == {"hard"}
    assert {c.category for c in cards} == {"Science"}


def test_import_questions_is_all_or_nothing_on_bad_input(arena_db):
    with pytest.raises(InvalidFlashcard):
        import_questions(arena_db, QUESTIONS + [{"question_text": "broken"}])
    assert get_flashcards(arena_db) == []


def test_import_file(tmp_path, arena_db):
    f = tmp_path / "generated.json"
    f.write_text(json.dumps(QUESTIONS))
    result = import_file(arena_db, str(f))
    assert result["filename"] == "generated.json"
    assert result["created"] == 2
    assert len(get_flashcards(arena_db)) == 2


def test_import_yaml_with_numeric_options(tmp_path, arena_db):
    f = tmp_path / "maths.yaml"
    f.write_text(
        "- question_text: What is 2 + 2?\n"
        "  options: [3, 4, 5]\n"
        "  correct_answer: 1\n"
    )
    result = import_file(arena_db, str(f))
    assert result["created"] == 1
    card = get_flashcards(arena_db)[0]
    assert (card.question, card.answer) == ("What is 2 + 2?", "4")
