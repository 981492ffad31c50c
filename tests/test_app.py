import logging
from unittest.mock import patch

import pytest
from rich.console import Console

from trivia_arena import app
from trivia_arena.app import (
    cmd_add, cmd_bracket, cmd_create, cmd_join, cmd_play, cmd_start, describe_events,
    run_study_session,
)
from trivia_arena.bracket import BracketEvent, TOURNAMENT_COMPLETED
from trivia_arena.flashcards import create_flashcard, get_due_cards, get_flashcards
from trivia_arena.models import COMPLETED, Participant, Tournament
from trivia_arena.tournaments import create_tournament, list_tournaments, load_tournament


@pytest.fixture
def output(monkeypatch):
    console = Console(record=True, width=120)
    monkeypatch.setattr(app, "console", console)
    return console


def test_run_study_session_rates_each_card(arena_db, output):
    create_flashcard(arena_db, "2 + 2?", "4")
    create_flashcard(arena_db, "Capital of Chile?", "Santiago")
    cards = get_due_cards(arena_db)
    with patch("trivia_arena.app.Prompt.ask", side_effect=["", "good", "", "again"]):
        session = run_study_session(arena_db, cards)
    assert session.finished
    assert (session.correct, session.incorrect) == (1, 1)
    assert "Session complete!" in output.export_text()


def test_run_study_session_without_cards(arena_db, output):
    session = run_study_session(arena_db, [])
    assert session.finished
    assert "All caught up" in output.export_text()


def test_cmd_add(arena_db, output):
    with patch("trivia_arena.app.Prompt.ask", side_effect=["Fastest land animal?", "Cheetah", "", "hard"]):
        cmd_add(arena_db)
    cards = get_flashcards(arena_db)
    assert len(cards) == 1
    assert cards[0].category is None
    assert cards[0].difficulty == "hard"


def test_cmd_create(arena_db, output):
    with patch("trivia_arena.app.Prompt.ask", side_effect=["Geo Cup", "easy"]), \
            patch("trivia_arena.app.IntPrompt.ask", return_value=8):
        cmd_create(arena_db)
    rows = list_tournaments(arena_db)
    assert rows[0]["name"] == "Geo Cup"
    assert rows[0]["max_participants"] == 8


def test_tournament_commands(arena_db, output):
    tournament_id = create_tournament(arena_db, "Geo Cup", "local")
    for name in ("ana", "ben"):
        with patch("trivia_arena.app.IntPrompt.ask", return_value=tournament_id), \
                patch("trivia_arena.app.Prompt.ask", return_value=name):
            cmd_join(arena_db)

    with patch("trivia_arena.app.IntPrompt.ask", return_value=tournament_id):
        cmd_start(arena_db)
    assert "Final" in output.export_text(clear=False)

    with patch("trivia_arena.app.IntPrompt.ask", side_effect=[tournament_id, 1, 4, 7]):
        cmd_play(arena_db)
    tournament = load_tournament(arena_db, tournament_id)
    assert tournament.status == COMPLETED
    assert "is the champion!" in output.export_text(clear=False)

    with patch("trivia_arena.app.IntPrompt.ask", return_value=tournament_id):
        cmd_bracket(arena_db)
    assert "Standings" in output.export_text()


def test_cmd_play_with_nothing_ready(arena_db, output):
    tournament_id = create_tournament(arena_db, "Geo Cup", "local")
    with patch("trivia_arena.app.IntPrompt.ask", return_value=tournament_id):
        cmd_play(arena_db)
    assert "No matches are ready" in output.export_text()


def test_describe_events_names_the_champion():
    tournament = Tournament(id=1, name="Cup", participants=[Participant(id=3, user_id="z", username="Zoe")])
    lines = describe_events(tournament, [BracketEvent(TOURNAMENT_COMPLETED, participant_id=3)])
    assert lines == ["[bold yellow]Zoe is the champion![/bold yellow]"]


def test_main_reports_errors_and_quits(tmp_db, output, monkeypatch):
    monkeypatch.setattr(app, "DEFAULT_DB_PATH", tmp_db)
    monkeypatch.setattr(app, "configure_logging", lambda level: None)
    with patch("trivia_arena.app.Prompt.ask", side_effect=["dance", "join", "ana", "quit"]), \
            patch("trivia_arena.app.IntPrompt.ask", return_value=99):
        app.main()
    text = output.export_text()
    assert "Unknown command" in text
    assert "No tournament with id 99" in text
    assert "See you next round!" in text


def test_main_survives_unreadable_quiz_file(tmp_db, tmp_path, output, monkeypatch):
    quiz = tmp_path / "quiz.json"
    quiz.write_text("{not json")
    monkeypatch.setattr(app, "DEFAULT_DB_PATH", tmp_db)
    monkeypatch.setattr(app, "configure_logging", lambda level: None)
    with patch("trivia_arena.app.Prompt.ask", side_effect=["import", str(quiz), "quit"]):
        app.main()
    text = output.export_text()
    assert "Error: Could not read quiz.json" in text
    assert "See you next round!" in text


def test_main_reports_unexpected_errors(tmp_db, output, monkeypatch):
    def broken(db_path):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(app, "DEFAULT_DB_PATH", tmp_db)
    monkeypatch.setattr(app, "configure_logging", lambda level: None)
    monkeypatch.setitem(app.COMMANDS, "stats", broken)
    with patch("trivia_arena.app.Prompt.ask", side_effect=["stats", "quit"]):
        app.main()
    text = output.export_text()
    assert "Error: database is locked" in text
    assert "See you next round!" in text


def test_main_keeps_logging_quiet(tmp_db, output, monkeypatch):
    levels = []
    monkeypatch.setattr(app, "DEFAULT_DB_PATH", tmp_db)
    monkeypatch.setattr(app, "configure_logging", levels.append)
    with patch("trivia_arena.app.Prompt.ask", side_effect=["quit"]):
        app.main()
    assert levels == [logging.WARNING]
