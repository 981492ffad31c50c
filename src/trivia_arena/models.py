"""Data classes for flashcards and tournaments."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

WAITING = "waiting"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
REGISTRATION = "registration"

PLAYER1 = "player1"
PLAYER2 = "player2"


@dataclass
class Flashcard:
    id: Optional[int]
    question: str
    answer: str
    category: Optional[str] = None
    difficulty: str = "medium"
    ease_factor: float = 2.5
    interval_days: int = 0
    repetitions: int = 0
    next_review_at: Optional[datetime] = None
    last_reviewed_at: Optional[datetime] = None


@dataclass
class ReviewSchedule:
    ease_factor: float
    interval_days: int
    repetitions: int
    next_review_at: datetime
    last_reviewed_at: datetime


@dataclass
class FlashcardReview:
    flashcard_id: int
    quality: int
    reviewed_at: datetime


@dataclass
class Participant:
    id: int
    user_id: str
    username: str = ""
    seed: Optional[int] = None
    eliminated: bool = False
    eliminated_in_round: Optional[int] = None
    total_score: int = 0
    matches_won: int = 0
    matches_played: int = 0


@dataclass
class Match:
    round: int
    match_number: int
    player1_id: Optional[int] = None
    player2_id: Optional[int] = None
    winner_id: Optional[int] = None
    player1_score: int = 0
    player2_score: int = 0
    status: str = WAITING
    next_match_number: Optional[int] = None
    next_slot: Optional[str] = None  # PLAYER1 or PLAYER2
    id: Optional[int] = None

    @property
    def is_bye(self) -> bool:
        return self.round == 1 and (self.player1_id is None) != (self.player2_id is None)


@dataclass
class Tournament:
    id: Optional[int]
    name: str
    creator_id: str = ""
    description: str = ""
    difficulty: str = "medium"
    max_participants: int = 16
    questions_per_match: int = 10
    time_per_question: int = 30
    status: str = REGISTRATION
    current_round: int = 0
    bracket_size: int = 0
    winner_id: Optional[int] = None
    participants: list[Participant] = field(default_factory=list)
    matches: list[Match] = field(default_factory=list)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @property
    def num_rounds(self) -> int:
        return max((m.round for m in self.matches), default=0)

    def round_matches(self, round_number: int) -> list[Match]:
        return sorted(
            (m for m in self.matches if m.round == round_number),
            key=lambda m: m.match_number,
        )

    def get_match(self, match_number: int) -> Optional[Match]:
        return next((m for m in self.matches if m.match_number == match_number), None)

    def get_participant(self, participant_id: Optional[int]) -> Optional[Participant]:
        return next((p for p in self.participants if p.id == participant_id), None)
