"""Tournament registration and bracket persistence."""
import random
from datetime import datetime, timezone

import structlog

from trivia_arena import bracket
from trivia_arena.db import from_timestamp, get_connection, immediate_transaction, to_timestamp
from trivia_arena.errors import (
    AlreadyJoined,
    InvalidTournament,
    NotFound,
    RegistrationClosed,
    TournamentFull,
)
from trivia_arena.models import REGISTRATION, Match, Participant, Tournament

logger = structlog.get_logger(__name__)


def _row_to_participant(row) -> Participant:
    return Participant(
        id=row["id"],
        user_id=row["user_id"],
        username=row["username"],
        seed=row["seed"],
        eliminated=bool(row["eliminated"]),
        eliminated_in_round=row["eliminated_in_round"],
        total_score=row["total_score"],
        matches_won=row["matches_won"],
        matches_played=row["matches_played"],
    )


def _row_to_match(row) -> Match:
    return Match(
        id=row["id"],
        round=row["round"],
        match_number=row["match_number"],
        player1_id=row["player1_id"],
        player2_id=row["player2_id"],
        winner_id=row["winner_id"],
        player1_score=row["player1_score"],
        player2_score=row["player2_score"],
        status=row["status"],
        next_match_number=row["next_match_number"],
        next_slot=row["next_slot"],
    )


def _load(conn, tournament_id: int) -> Tournament:
    row = conn.execute("SELECT * FROM tournaments WHERE id = ?", (tournament_id,)).fetchone()
    if row is None:
        raise NotFound(f"No tournament with id {tournament_id}")
    participants = conn.execute(
        "SELECT * FROM tournament_participants WHERE tournament_id = ? ORDER BY seed, id",
        (tournament_id,),
    ).fetchall()
    matches = conn.execute(
        "SELECT * FROM tournament_matches WHERE tournament_id = ? ORDER BY round, match_number",
        (tournament_id,),
    ).fetchall()
    return Tournament(
        id=row["id"],
        name=row["name"],
        creator_id=row["creator_id"],
        description=row["description"] or "",
        difficulty=row["difficulty"],
        max_participants=row["max_participants"],
        questions_per_match=row["questions_per_match"],
        time_per_question=row["time_per_question"],
        status=row["status"],
        current_round=row["current_round"],
        bracket_size=row["bracket_size"],
        winner_id=row["winner_id"],
        participants=[_row_to_participant(p) for p in participants],
        matches=[_row_to_match(m) for m in matches],
        started_at=from_timestamp(row["started_at"]),
        ended_at=from_timestamp(row["ended_at"]),
    )


def _save_tournament(conn, tournament: Tournament) -> None:
    conn.execute(
        """UPDATE tournaments
        SET status=?, current_round=?, bracket_size=?, winner_id=?, started_at=?, ended_at=?
        WHERE id=?""",
        (
            tournament.status,
            tournament.current_round,
            tournament.bracket_size,
            tournament.winner_id,
            to_timestamp(tournament.started_at) if tournament.started_at else None,
            to_timestamp(tournament.ended_at) if tournament.ended_at else None,
            tournament.id,
        ),
    )


def _save_participant(conn, participant: Participant) -> None:
    conn.execute(
        """UPDATE tournament_participants
        SET eliminated=?, eliminated_in_round=?, total_score=?, matches_won=?, matches_played=?
        WHERE id=?""",
        (
            int(participant.eliminated),
            participant.eliminated_in_round,
            participant.total_score,
            participant.matches_won,
            participant.matches_played,
            participant.id,
        ),
    )


def _save_match(conn, tournament_id: int, match: Match) -> None:
    conn.execute(
        """UPDATE tournament_matches
        SET player1_id=?, player2_id=?, winner_id=?, player1_score=?, player2_score=?, status=?
        WHERE tournament_id=? AND match_number=?""",
        (
            match.player1_id,
            match.player2_id,
            match.winner_id,
            match.player1_score,
            match.player2_score,
            match.status,
            tournament_id,
            match.match_number,
        ),
    )


def create_tournament(
    db_path: str,
    name: str,
    creator_id: str,
    description: str = "",
    difficulty: str = "medium",
    max_participants: int = 16,
    questions_per_match: int = 10,
    time_per_question: int = 30,
) -> int:
    if not name.strip():
        raise InvalidTournament("Please enter a tournament name")
    if max_participants < 2:
        raise InvalidTournament("A tournament needs room for at least 2 participants")
    conn = get_connection(db_path)
    cur = conn.execute(
        """INSERT INTO tournaments (name, description, creator_id, difficulty, max_participants,
            questions_per_match, time_per_question, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (name.strip(), description, creator_id, difficulty, max_participants,
         questions_per_match, time_per_question, to_timestamp(datetime.now(timezone.utc))),
    )
    conn.commit()
    conn.close()
    logger.info("tournament_created", tournament_id=cur.lastrowid, name=name.strip())
    return cur.lastrowid


def load_tournament(db_path: str, tournament_id: int) -> Tournament:
    conn = get_connection(db_path)
    try:
        return _load(conn, tournament_id)
    finally:
        conn.close()


def list_tournaments(db_path: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT t.id, t.name, t.status, t.difficulty, t.max_participants, t.current_round,
            COUNT(p.id) as participant_count
        FROM tournaments t
        LEFT JOIN tournament_participants p ON p.tournament_id = t.id
        GROUP BY t.id
        ORDER BY t.id DESC"""
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def join_tournament(db_path: str, tournament_id: int, user_id: str, username: str | None = None) -> int:
    """Register a user. Seeds follow join order."""
    with immediate_transaction(db_path) as conn:
        tournament = _load(conn, tournament_id)
        if tournament.status != REGISTRATION:
            raise RegistrationClosed(f"Registration for {tournament.name!r} is closed")
        if any(p.user_id == user_id for p in tournament.participants):
            raise AlreadyJoined(f"{user_id} is already registered for {tournament.name!r}")
        if len(tournament.participants) >= tournament.max_participants:
            raise TournamentFull(f"{tournament.name!r} is full")
        cur = conn.execute(
            """INSERT INTO tournament_participants (tournament_id, user_id, username, seed, joined_at)
            VALUES (?, ?, ?, ?, ?)""",
            (tournament_id, user_id, username or user_id, len(tournament.participants) + 1,
             to_timestamp(datetime.now(timezone.utc))),
        )
    logger.info("tournament_joined", tournament_id=tournament_id, user_id=user_id)
    return cur.lastrowid


def start_tournament(
    db_path: str,
    tournament_id: int,
    rng: random.Random | None = None,
    seeded: bool = False,
):
    """Generate and store the bracket. Returns (tournament, events)."""
    with immediate_transaction(db_path) as conn:
        started, events = bracket.start_tournament(_load(conn, tournament_id), rng=rng, seeded=seeded)
        for match in started.matches:
            cur = conn.execute(
                """INSERT INTO tournament_matches (tournament_id, round, match_number, player1_id,
                    player2_id, winner_id, status, next_match_number, next_slot)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (tournament_id, match.round, match.match_number, match.player1_id,
                 match.player2_id, match.winner_id, match.status, match.next_match_number,
                 match.next_slot),
            )
            match.id = cur.lastrowid
        _save_tournament(conn, started)
    return started, events


def submit_match_result(
    db_path: str,
    tournament_id: int,
    match_number: int,
    player1_score: int,
    player2_score: int,
) -> bracket.MatchResult:
    with immediate_transaction(db_path) as conn:
        result = bracket.record_match_result(
            _load(conn, tournament_id), match_number, player1_score, player2_score
        )
        _save_match(conn, tournament_id, result.match)
        if result.advancement.next_match_number is not None:
            _save_match(conn, tournament_id,
                        result.tournament.get_match(result.advancement.next_match_number))
        for participant in result.participants:
            _save_participant(conn, participant)
        _save_tournament(conn, result.tournament)
    return result


def get_standings(db_path: str, tournament_id: int) -> list[Participant]:
    """Survivors first, then by how far each player got."""
    tournament = load_tournament(db_path, tournament_id)

    def reached(p: Participant) -> int:
        return p.eliminated_in_round if p.eliminated else tournament.num_rounds + 1

    return sorted(
        tournament.participants,
        key=lambda p: (-reached(p), -p.matches_won, -p.total_score, p.seed or 0),
    )
