"""SM-2 spaced repetition algorithm."""
import math
from datetime import datetime, timedelta, timezone

from trivia_arena.errors import InvalidQualityScore
from trivia_arena.models import ReviewSchedule

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3

# Study mode buttons. There is no button for 0 or 3.
RATING_QUALITY = {
    "again": 1,
    "hard": 2,
    "good": 4,
    "easy": 5,
}


def round_half_up(value: float) -> int:
    """Round like JavaScript's Math.round: halves go towards +infinity.

    Python's round() sends 12.5 to 12, which would shorten intervals
    compared to the web client's schedule.
    """
    return math.floor(value + 0.5)


def validate_quality(quality) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int) or not 0 <= quality <= 5:
        raise InvalidQualityScore(quality)
    return quality


def quality_for_rating(rating: str) -> int:
    try:
        return RATING_QUALITY[rating.strip().lower()]
    except KeyError:
        raise InvalidQualityScore(rating) from None


def sm2_update(
    quality: int,
    repetitions: int,
    ease_factor: float,
    interval: int,
) -> dict:
    """Calculate next review parameters using SM-2.

    Args:
        quality: Rating 0-5 (0=complete blackout, 5=perfect)
        repetitions: Number of consecutive correct reviews
        ease_factor: Current ease factor (minimum 1.3)
        interval: Current interval in days

    Returns:
        Dict with updated interval, repetitions, ease_factor.
    """
    validate_quality(quality)

    if quality >= 3:
        if repetitions == 0:
            new_interval = 1
        elif repetitions == 1:
            new_interval = 6
        else:
            # Old ease factor, not the updated one.
            new_interval = round_half_up(interval * ease_factor)
        new_repetitions = repetitions + 1
    else:
        new_repetitions = 0
        new_interval = 1

    # The ease factor moves on every review, pass or fail.
    new_ef = ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    new_ef = max(MIN_EASE_FACTOR, new_ef)

    return {
        "interval": new_interval,
        "repetitions": new_repetitions,
        "ease_factor": new_ef,
    }


def schedule_next_review(card, quality: int, now: datetime | None = None) -> ReviewSchedule:
    """Compute a card's next scheduling state after a review.

    ``card`` only needs ``ease_factor``, ``interval_days`` and ``repetitions``
    attributes and is left untouched. Persisting the result and writing the
    review history entry are up to the caller.
    """
    now = now or datetime.now(timezone.utc)
    updated = sm2_update(
        quality=quality,
        repetitions=card.repetitions,
        ease_factor=card.ease_factor,
        interval=card.interval_days,
    )
    return ReviewSchedule(
        ease_factor=updated["ease_factor"],
        interval_days=updated["interval"],
        repetitions=updated["repetitions"],
        next_review_at=now + timedelta(days=updated["interval"]),
        last_reviewed_at=now,
    )
