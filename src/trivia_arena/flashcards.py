"""Flashcard deck and study session logic with SM-2 scheduling."""
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from trivia_arena.db import from_timestamp, get_connection, immediate_transaction, to_timestamp
from trivia_arena.errors import InvalidFlashcard, NotFound
from trivia_arena.models import Flashcard, FlashcardReview
from trivia_arena.sm2 import DEFAULT_EASE_FACTOR, schedule_next_review, validate_quality

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def row_to_flashcard(row) -> Flashcard:
    return Flashcard(
        id=row["id"],
        question=row["question"],
        answer=row["answer"],
        category=row["category"],
        difficulty=row["difficulty"],
        ease_factor=row["ease_factor"],
        interval_days=row["interval_days"],
        repetitions=row["repetitions"],
        next_review_at=from_timestamp(row["next_review_at"]),
        last_reviewed_at=from_timestamp(row["last_reviewed_at"]),
    )


def create_flashcard(
    db_path: str,
    question: str,
    answer: str,
    category: str | None = None,
    difficulty: str = "medium",
) -> int:
    if not isinstance(question, str) or not isinstance(answer, str):
        raise InvalidFlashcard("Question and answer must be text")
    if not question.strip() or not answer.strip():
        raise InvalidFlashcard("Please fill in both question and answer")
    conn = get_connection(db_path)
    cur = conn.execute(
        """INSERT INTO flashcards (question, answer, category, difficulty, ease_factor, created_at)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (question.strip(), answer.strip(), category, difficulty, DEFAULT_EASE_FACTOR,
         to_timestamp(_utcnow())),
    )
    conn.commit()
    conn.close()
    return cur.lastrowid


def get_flashcard(db_path: str, card_id: int) -> Flashcard:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,)).fetchone()
    conn.close()
    if row is None:
        raise NotFound(f"No flashcard with id {card_id}")
    return row_to_flashcard(row)


def get_flashcards(db_path: str) -> list[Flashcard]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM flashcards ORDER BY next_review_at ASC NULLS FIRST, id"
    ).fetchall()
    conn.close()
    return [row_to_flashcard(r) for r in rows]


def get_due_cards(db_path: str, limit: int = 15, now: datetime | None = None) -> list[Flashcard]:
    """Cards never reviewed, or whose next review is not in the future."""
    now = now or _utcnow()
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT * FROM flashcards
        WHERE next_review_at IS NULL OR next_review_at <= ?
        ORDER BY next_review_at ASC NULLS FIRST, id
        LIMIT ?""",
        (to_timestamp(now), limit),
    ).fetchall()
    conn.close()
    return [row_to_flashcard(r) for r in rows]


def record_flashcard_result(
    db_path: str, card_id: int, quality: int, now: datetime | None = None
):
    """Reschedule a card after a review and append it to the review history."""
    validate_quality(quality)
    now = now or _utcnow()
    with immediate_transaction(db_path) as conn:
        row = conn.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,)).fetchone()
        if row is None:
            raise NotFound(f"No flashcard with id {card_id}")
        schedule = schedule_next_review(row_to_flashcard(row), quality, now=now)
        conn.execute(
            """UPDATE flashcards
            SET ease_factor=?, interval_days=?, repetitions=?, next_review_at=?, last_reviewed_at=?
            WHERE id=?""",
            (schedule.ease_factor, schedule.interval_days, schedule.repetitions,
             to_timestamp(schedule.next_review_at), to_timestamp(schedule.last_reviewed_at),
             card_id),
        )
        conn.execute(
            "INSERT INTO flashcard_reviews (flashcard_id, quality, reviewed_at) VALUES (?, ?, ?)",
            (card_id, quality, to_timestamp(now)),
        )
    logger.info(
        "flashcard_reviewed",
        flashcard_id=card_id,
        quality=quality,
        interval_days=schedule.interval_days,
        repetitions=schedule.repetitions,
    )
    return schedule


def get_review_history(db_path: str, card_id: int) -> list[FlashcardReview]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM flashcard_reviews WHERE flashcard_id = ? ORDER BY reviewed_at, id",
        (card_id,),
    ).fetchall()
    conn.close()
    return [
        FlashcardReview(
            flashcard_id=r["flashcard_id"],
            quality=r["quality"],
            reviewed_at=from_timestamp(r["reviewed_at"]),
        )
        for r in rows
    ]


def get_deck_stats(db_path: str, now: datetime | None = None) -> dict:
    now = now or _utcnow()
    conn = get_connection(db_path)
    total = conn.execute("SELECT COUNT(*) FROM flashcards").fetchone()[0]
    due = conn.execute(
        "SELECT COUNT(*) FROM flashcards WHERE next_review_at IS NULL OR next_review_at <= ?",
        (to_timestamp(now),),
    ).fetchone()[0]
    learned = conn.execute("SELECT COUNT(*) FROM flashcards WHERE repetitions > 0").fetchone()[0]
    row = conn.execute(
        """SELECT COUNT(*) as t, SUM(CASE WHEN quality >= 3 THEN 1 ELSE 0 END) as c
        FROM flashcard_reviews"""
    ).fetchone()
    conn.close()
    return {
        "total": total,
        "due": due,
        "learned": learned,
        "reviews": row["t"],
        "retention": round(row["c"] / row["t"] * 100, 1) if row["t"] else 0.0,
    }


@dataclass
class StudySession:
    """Walks through a batch of due cards and keeps the session tally."""

    db_path: str
    cards: list[Flashcard]
    position: int = 0
    correct: int = 0
    incorrect: int = 0
    reviewed: list[int] = field(default_factory=list)

    @property
    def current(self) -> Flashcard | None:
        return self.cards[self.position] if self.position < len(self.cards) else None

    @property
    def finished(self) -> bool:
        return self.current is None

    def rate(self, quality: int, now: datetime | None = None):
        card = self.current
        if card is None:
            raise InvalidFlashcard("The study session has no cards left")
        schedule = record_flashcard_result(self.db_path, card.id, quality, now=now)
        if quality >= 3:
            self.correct += 1
        else:
            self.incorrect += 1
        self.reviewed.append(card.id)
        self.position += 1
        return schedule
