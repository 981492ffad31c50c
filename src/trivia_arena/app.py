"""Interactive CLI application."""
import logging
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt, IntPrompt

from trivia_arena.bracket import (
    BYE_ADVANCED,
    PARTICIPANT_ADVANCED,
    PARTICIPANT_ELIMINATED,
    ROUND_COMPLETED,
    TOURNAMENT_COMPLETED,
)
from trivia_arena.db import init_db, DEFAULT_DB_PATH
from trivia_arena.errors import TriviaArenaError
from trivia_arena.flashcards import StudySession, create_flashcard, get_deck_stats, get_due_cards
from trivia_arena.importer import import_file
from trivia_arena.logging_config import configure_logging
from trivia_arena.models import COMPLETED, REGISTRATION
from trivia_arena.sm2 import RATING_QUALITY, quality_for_rating
from trivia_arena.tournaments import (
    create_tournament, get_standings, join_tournament, list_tournaments, load_tournament,
    start_tournament, submit_match_result,
)

console = Console()

STUDY_BATCH = 15
LOCAL_USER = "local"


def show_welcome():
    console.print(Panel(
        "[bold]Trivia Arena[/bold]\n[dim]Flashcards and knockout tournaments[/dim]",
        title="Welcome", border_style="magenta",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("study", "Review due flashcards"),
        ("add", "Create a flashcard"),
        ("import", "Turn a quiz file into flashcards"),
        ("stats", "Deck statistics"),
        ("tournaments", "List tournaments"),
        ("create", "Create a tournament"),
        ("join", "Register a player"),
        ("start", "Close registration and draw the bracket"),
        ("bracket", "Show a bracket and standings"),
        ("play", "Enter a match result"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def run_study_session(db_path: str, cards: list) -> StudySession:
    session = StudySession(db_path, cards)
    if not cards:
        console.print("[yellow]All caught up! Add more cards or wait for reviews.[/yellow]")
        return session
    console.print(f"\n[bold]Study Session[/bold] - {len(cards)} cards\n")
    while not session.finished:
        card = session.current
        console.print(Panel(card.question, title=f"Card {session.position + 1}/{len(cards)}",
                            border_style="cyan"))
        Prompt.ask("[dim]Press Enter to reveal answer[/dim]", default="")
        console.print(Panel(card.answer, border_style="green"))
        rating = Prompt.ask("How well did you know it?", choices=list(RATING_QUALITY))
        schedule = session.rate(quality_for_rating(rating))
        console.print(f"[dim]Next review in {schedule.interval_days} day(s)[/dim]\n")
    console.print(f"[bold]Session complete![/bold] Correct: [green]{session.correct}[/green], "
                  f"Needs review: [red]{session.incorrect}[/red]")
    return session


def cmd_study(db_path: str):
    run_study_session(db_path, get_due_cards(db_path, limit=STUDY_BATCH))


def cmd_add(db_path: str):
    question = Prompt.ask("Question")
    answer = Prompt.ask("Answer")
    category = Prompt.ask("Category", default="") or None
    difficulty = Prompt.ask("Difficulty", choices=["easy", "medium", "hard"], default="medium")
    create_flashcard(db_path, question, answer, category=category, difficulty=difficulty)
    console.print("[green]Flashcard added to your deck[/green]")


def cmd_import(db_path: str):
    file_path = Prompt.ask("Quiz file (.json/.yaml)")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_file(db_path, file_path)
    console.print(f"[green]{result['created']} flashcards created from {result['filename']}[/green]")


def cmd_stats(db_path: str):
    stats = get_deck_stats(db_path)
    console.print(f"\n  Total: [bold]{stats['total']}[/bold]  |  "
                  f"Due: [bold]{stats['due']}[/bold]  |  "
                  f"Learned: [bold]{stats['learned']}[/bold]  |  "
                  f"Reviews: [bold]{stats['reviews']}[/bold]  |  "
                  f"Retention: [bold]{stats['retention']}%[/bold]")


def cmd_tournaments(db_path: str):
    rows = list_tournaments(db_path)
    if not rows:
        console.print("[yellow]No tournaments yet. Be the first to create one![/yellow]")
        return
    table = Table(title="Tournaments")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Players", justify="right")
    table.add_column("Status")
    for t in rows:
        table.add_row(str(t["id"]), t["name"], f"{t['participant_count']}/{t['max_participants']}",
                      t["status"].replace("_", " "))
    console.print(table)


def cmd_create(db_path: str):
    name = Prompt.ask("Tournament name")
    difficulty = Prompt.ask("Difficulty", choices=["easy", "medium", "hard"], default="medium")
    max_participants = IntPrompt.ask("Max participants", default=16)
    tournament_id = create_tournament(db_path, name, LOCAL_USER, difficulty=difficulty,
                                      max_participants=max_participants)
    console.print(f"[green]Tournament #{tournament_id} created. Players can now register.[/green]")


def cmd_join(db_path: str):
    tournament_id = IntPrompt.ask("Tournament ID")
    username = Prompt.ask("Player name")
    join_tournament(db_path, tournament_id, username, username)
    console.print(f"[green]{username} joined the tournament[/green]")


def describe_events(tournament, events) -> list[str]:
    """Human-readable lines for bracket events."""
    def name(pid):
        p = tournament.get_participant(pid)
        return p.username if p else "?"

    lines = []
    for e in events:
        if e.kind == BYE_ADVANCED:
            lines.append(f"[cyan]{name(e.participant_id)} gets a bye to round 2[/cyan]")
        elif e.kind == PARTICIPANT_ELIMINATED:
            lines.append(f"[red]{name(e.participant_id)} is eliminated in round {e.round}[/red]")
        elif e.kind == PARTICIPANT_ADVANCED:
            lines.append(f"[green]{name(e.participant_id)} advances to match #{e.match_number}[/green]")
        elif e.kind == ROUND_COMPLETED:
            lines.append(f"[bold]Round {e.round} complete[/bold]")
        elif e.kind == TOURNAMENT_COMPLETED:
            lines.append(f"[bold yellow]{name(e.participant_id)} is the champion![/bold yellow]")
    return lines


def cmd_start(db_path: str):
    tournament_id = IntPrompt.ask("Tournament ID")
    tournament, events = start_tournament(db_path, tournament_id)
    console.print("[green]Tournament started! Let the games begin![/green]")
    for line in describe_events(tournament, events):
        console.print(line)
    render_bracket(tournament)


def render_bracket(tournament):
    def name(pid):
        p = tournament.get_participant(pid)
        return p.username if p else "[dim]TBD[/dim]"

    for round_number in range(1, tournament.num_rounds + 1):
        title = "Final" if round_number == tournament.num_rounds else f"Round {round_number}"
        table = Table(title=title)
        table.add_column("#", justify="right")
        table.add_column("Player 1")
        table.add_column("Score", justify="right")
        table.add_column("Player 2")
        table.add_column("Score", justify="right")
        table.add_column("Status")
        for m in tournament.round_matches(round_number):
            p1 = name(m.player1_id)
            p2 = "[dim]bye[/dim]" if m.is_bye else name(m.player2_id)
            if m.winner_id is not None:
                if m.winner_id == m.player1_id:
                    p1 = f"[green]{p1}[/green]"
                else:
                    p2 = f"[green]{p2}[/green]"
            table.add_row(str(m.match_number), p1, str(m.player1_score), p2,
                          str(m.player2_score), m.status.replace("_", " "))
        console.print(table)


def cmd_bracket(db_path: str):
    tournament_id = IntPrompt.ask("Tournament ID")
    tournament = load_tournament(db_path, tournament_id)
    console.print(Panel(
        f"[bold]{tournament.name}[/bold]  {tournament.status.replace('_', ' ').upper()}"
        + (f"  Round {tournament.current_round}" if tournament.current_round else ""),
        border_style="magenta",
    ))
    if tournament.status == REGISTRATION:
        for p in tournament.participants:
            console.print(f"  {p.seed}. {p.username}")
        return
    render_bracket(tournament)
    table = Table(title="Standings")
    table.add_column("Player", style="cyan")
    table.add_column("Won", justify="right")
    table.add_column("Played", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    for p in get_standings(db_path, tournament_id):
        status = f"[red]out in round {p.eliminated_in_round}[/red]" if p.eliminated else "[green]alive[/green]"
        table.add_row(p.username, str(p.matches_won), str(p.matches_played), str(p.total_score), status)
    console.print(table)


def cmd_play(db_path: str):
    tournament_id = IntPrompt.ask("Tournament ID")
    tournament = load_tournament(db_path, tournament_id)
    ready = [
        m for m in tournament.matches
        if m.status != COMPLETED and m.player1_id is not None and m.player2_id is not None
    ]
    if not ready:
        console.print("[yellow]No matches are ready to play.[/yellow]")
        return
    for m in ready:
        p1 = tournament.get_participant(m.player1_id)
        p2 = tournament.get_participant(m.player2_id)
        console.print(f"  [cyan]{m.match_number}[/cyan]) {p1.username} vs {p2.username}")
    match_number = IntPrompt.ask("Match", choices=[str(m.match_number) for m in ready])
    match = tournament.get_match(match_number)
    score1 = IntPrompt.ask(f"{tournament.get_participant(match.player1_id).username}'s score")
    score2 = IntPrompt.ask(f"{tournament.get_participant(match.player2_id).username}'s score")
    result = submit_match_result(db_path, tournament_id, match_number, score1, score2)
    for line in describe_events(result.tournament, result.events):
        console.print(line)


COMMANDS = {
    "study": cmd_study,
    "add": cmd_add,
    "import": cmd_import,
    "stats": cmd_stats,
    "tournaments": cmd_tournaments,
    "create": cmd_create,
    "join": cmd_join,
    "start": cmd_start,
    "bracket": cmd_bracket,
    "play": cmd_play,
}


def main():
    configure_logging(logging.WARNING)
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="study").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]See you next round![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(db_path)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except TriviaArenaError as e:
            console.print(f"[red]Error: {e}[/red]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
