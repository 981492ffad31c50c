"""Single-elimination bracket generation and advancement.

Every function here is pure: it takes a Tournament (or a participant list),
copies it, and returns the new state together with a list of BracketEvent
records describing what happened. Nothing is persisted and nobody is
notified; that is left to the caller.
"""
import copy
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import structlog

from trivia_arena.errors import (
    BracketAlreadyGenerated,
    BracketStateError,
    InsufficientParticipants,
    MatchNotFound,
    MatchNotReady,
)
from trivia_arena.models import (
    COMPLETED,
    IN_PROGRESS,
    PLAYER1,
    PLAYER2,
    REGISTRATION,
    WAITING,
    Match,
    Participant,
    Tournament,
)

logger = structlog.get_logger(__name__)

BYE_ADVANCED = "bye_advanced"
MATCH_COMPLETED = "match_completed"
PARTICIPANT_ELIMINATED = "participant_eliminated"
PARTICIPANT_ADVANCED = "participant_advanced"
ROUND_COMPLETED = "round_completed"
TOURNAMENT_COMPLETED = "tournament_completed"


@dataclass
class BracketEvent:
    kind: str
    round: Optional[int] = None
    match_number: Optional[int] = None
    participant_id: Optional[int] = None


@dataclass
class Bracket:
    matches: list[Match]
    bracket_size: int
    num_rounds: int
    events: list[BracketEvent] = field(default_factory=list)

    @property
    def byes(self) -> list[Match]:
        return [m for m in self.matches if m.is_bye]


@dataclass
class Advancement:
    next_match_number: Optional[int] = None
    next_slot: Optional[str] = None
    round_completed: bool = False
    tournament_completed: bool = False
    champion_id: Optional[int] = None


@dataclass
class MatchResult:
    tournament: Tournament
    match: Match
    participants: list[Participant]  # [winner, loser]
    advancement: Advancement
    events: list[BracketEvent]


def rounds_for(count: int) -> int:
    """ceil(log2(count)) without floating point."""
    return (count - 1).bit_length()


def bracket_size_for(count: int) -> int:
    return 2 ** rounds_for(count)


def _seed_order(participants: list[Participant]) -> list[Participant]:
    return sorted(participants, key=lambda p: (p.seed is None, p.seed or 0))


def _place_winner(matches_by_number: dict, match: Match) -> Match:
    target = matches_by_number.get(match.next_match_number)
    if target is None:
        raise BracketStateError(
            f"Match #{match.match_number} points at missing match #{match.next_match_number}"
        )
    slot = f"{match.next_slot}_id"
    if getattr(target, slot) is not None:
        raise BracketStateError(
            f"Slot {match.next_slot} of match #{target.match_number} is already filled"
        )
    setattr(target, slot, match.winner_id)
    return target


def generate_bracket(
    participants: list[Participant],
    rng: random.Random | None = None,
    seeded: bool = False,
) -> Bracket:
    """Build every match of a single-elimination bracket up front.

    Participants are shuffled with ``rng`` (pass a seeded ``random.Random``
    for reproducible pairings), or ordered by ``seed`` when ``seeded`` is set.
    The first ``n - bracket_size/2`` round-one matches are real pairings and
    the rest are byes holding a single player. Byes are completed on the spot
    and their winners are already placed in round two.
    """
    count = len(participants)
    if count < 2:
        raise InsufficientParticipants(count)

    num_rounds = rounds_for(count)
    bracket_size = 2 ** num_rounds

    if seeded:
        order = _seed_order(participants)
    else:
        order = list(participants)
        (rng or random.Random()).shuffle(order)
    ids = [p.id for p in order]

    first_round_size = bracket_size // 2
    paired = count - first_round_size
    rounds = [[]]
    number = 0
    for i in range(first_round_size):
        number += 1
        if i < paired:
            player1_id, player2_id = ids[2 * i], ids[2 * i + 1]
        else:
            player1_id, player2_id = ids[paired + i], None
        rounds[0].append(Match(round=1, match_number=number,
                               player1_id=player1_id, player2_id=player2_id))

    for round_number in range(2, num_rounds + 1):
        current = []
        for _ in range(bracket_size // 2 ** round_number):
            number += 1
            current.append(Match(round=round_number, match_number=number))
        rounds.append(current)

    for current, following in zip(rounds, rounds[1:]):
        for i, match in enumerate(current):
            match.next_match_number = following[i // 2].match_number
            match.next_slot = PLAYER1 if i % 2 == 0 else PLAYER2

    matches = [m for current in rounds for m in current]
    by_number = {m.match_number: m for m in matches}
    events = []
    for match in rounds[0]:
        if match.player2_id is not None:
            continue
        match.status = COMPLETED
        match.winner_id = match.player1_id
        events.append(BracketEvent(BYE_ADVANCED, round=1, match_number=match.match_number,
                                   participant_id=match.winner_id))
        # A bye implies at least three players, so there is always a round two.
        _place_winner(by_number, match)

    logger.info(
        "bracket_generated",
        participants=count,
        bracket_size=bracket_size,
        rounds=num_rounds,
        byes=bracket_size - count,
    )
    return Bracket(matches=matches, bracket_size=bracket_size, num_rounds=num_rounds, events=events)


def _advance_current_round(tournament: Tournament) -> None:
    while tournament.current_round < tournament.num_rounds and all(
        m.status == COMPLETED for m in tournament.round_matches(tournament.current_round)
    ):
        tournament.current_round += 1


def start_tournament(
    tournament: Tournament,
    rng: random.Random | None = None,
    seeded: bool = False,
    now: datetime | None = None,
) -> tuple[Tournament, list[BracketEvent]]:
    """Close registration and generate the bracket. Returns the started copy."""
    if tournament.matches or tournament.status != REGISTRATION:
        raise BracketAlreadyGenerated(f"Tournament {tournament.name!r} already has a bracket")
    bracket = generate_bracket(tournament.participants, rng=rng, seeded=seeded)

    started = copy.deepcopy(tournament)
    started.matches = bracket.matches
    started.bracket_size = bracket.bracket_size
    started.status = IN_PROGRESS
    started.current_round = 1
    started.started_at = now or datetime.now(timezone.utc)
    _advance_current_round(started)
    return started, bracket.events


def _playable(tournament: Tournament, match_number: int) -> Match:
    match = tournament.get_match(match_number)
    if match is None:
        raise MatchNotFound(f"No match #{match_number} in this bracket")
    if match.status == COMPLETED:
        raise MatchNotReady(f"Match #{match_number} is already completed")
    if match.player1_id is None or match.player2_id is None:
        raise MatchNotReady(f"Match #{match_number} is still waiting for players")
    return match


def begin_match(tournament: Tournament, match_number: int) -> Tournament:
    """Mark a ready match as in progress. Purely informational."""
    match = _playable(tournament, match_number)
    if match.status != WAITING:
        raise MatchNotReady(f"Match #{match_number} has already begun")
    updated = copy.deepcopy(tournament)
    updated.get_match(match_number).status = IN_PROGRESS
    return updated


def record_match_result(
    tournament: Tournament,
    match_number: int,
    player1_score: int,
    player2_score: int,
    now: datetime | None = None,
) -> MatchResult:
    """Score a match, update both players and push the winner up the bracket.

    Ties go to player1. Two concurrent calls for the same match would both
    pass validation, so callers must serialize them (see
    ``tournaments.submit_match_result``).
    """
    _playable(tournament, match_number)

    updated = copy.deepcopy(tournament)
    match = updated.get_match(match_number)
    if player1_score >= player2_score:
        winner_id, loser_id = match.player1_id, match.player2_id
        winner_score, loser_score = player1_score, player2_score
    else:
        winner_id, loser_id = match.player2_id, match.player1_id
        winner_score, loser_score = player2_score, player1_score

    winner = updated.get_participant(winner_id)
    loser = updated.get_participant(loser_id)
    if winner is None or loser is None:
        raise BracketStateError(f"Match #{match_number} references an unknown participant")

    winner.matches_won += 1
    winner.matches_played += 1
    winner.total_score += winner_score
    loser.matches_played += 1
    loser.total_score += loser_score
    loser.eliminated = True
    loser.eliminated_in_round = match.round

    match.player1_score = player1_score
    match.player2_score = player2_score
    match.winner_id = winner_id
    match.status = COMPLETED

    events = [
        BracketEvent(MATCH_COMPLETED, round=match.round, match_number=match_number,
                     participant_id=winner_id),
        BracketEvent(PARTICIPANT_ELIMINATED, round=match.round, match_number=match_number,
                     participant_id=loser_id),
    ]
    advancement = Advancement()

    if match.next_match_number is None:
        updated.status = COMPLETED
        updated.winner_id = winner_id
        updated.ended_at = now or datetime.now(timezone.utc)
        advancement.tournament_completed = True
        advancement.champion_id = winner_id
    else:
        by_number = {m.match_number: m for m in updated.matches}
        target = _place_winner(by_number, match)
        advancement.next_match_number = target.match_number
        advancement.next_slot = match.next_slot
        events.append(BracketEvent(PARTICIPANT_ADVANCED, round=target.round,
                                   match_number=target.match_number, participant_id=winner_id))

    if all(m.status == COMPLETED for m in updated.round_matches(match.round)):
        advancement.round_completed = True
        events.append(BracketEvent(ROUND_COMPLETED, round=match.round))
    _advance_current_round(updated)

    logger.info(
        "match_recorded",
        tournament_id=updated.id,
        match_number=match_number,
        round=match.round,
        winner_id=winner_id,
        loser_id=loser_id,
    )
    if advancement.tournament_completed:
        events.append(BracketEvent(TOURNAMENT_COMPLETED, round=match.round,
                                   match_number=match_number, participant_id=winner_id))
        logger.info("tournament_completed", tournament_id=updated.id, champion_id=winner_id)

    return MatchResult(
        tournament=updated,
        match=match,
        participants=[winner, loser],
        advancement=advancement,
        events=events,
    )
