"""SM-2 style review scheduling for flashcards.

Everything here is a pure function over Card models: callers pass the
current time explicitly and persist whatever comes back.
"""
import math
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from .errors import InvalidArgument
from .models import Card

MIN_EASE_FACTOR = 1.3
PASSING_RATING = 3
REVIEWING_INTERVAL = 6
MASTERED_INTERVAL = 21

STATUS_ORDER = {"new": 0, "learning": 1, "reviewing": 2, "mastered": 3}


def derive_status(interval: int, repetitions: int) -> str:
    """Maps a card's review history onto its status tier."""
    if repetitions == 0:
        return "new"
    if interval >= MASTERED_INTERVAL:
        return "mastered"
    if interval >= REVIEWING_INTERVAL:
        return "reviewing"
    return "learning"


def validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidArgument(f"Rating must be an integer between 0 and 5, got {rating!r}")
    if not 0 <= rating <= 5:
        raise InvalidArgument(f"Rating must be between 0 and 5, got {rating}")
    return rating


def next_ease_factor(ease_factor: float, rating: int) -> float:
    # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    penalty = 5 - rating
    ease_factor = ease_factor + (0.1 - penalty * (0.08 + penalty * 0.02))
    # Every step is a multiple of 0.02, so two decimals are exact and strip float drift
    return max(MIN_EASE_FACTOR, round(ease_factor, 2))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def record_review(card: Card, rating: int, now: datetime) -> Card:
    """
    Applies one review to a card and returns the updated copy.

    Args:
        card (Card): The card being reviewed; it is not modified.
        rating (int): Recall quality, 0 (blackout) to 5 (perfect).
                      Ratings below 3 count as a failed review.
        now (datetime): Review time; next_review_date is measured from it.

    Returns:
        Card: The card with new ease factor, interval, status and dates.
    """
    rating = validate_rating(rating)
    ease_factor = card.ease_factor

    if rating < PASSING_RATING:
        interval = 1
    else:
        ease_factor = next_ease_factor(ease_factor, rating)
        if card.repetitions == 0:
            interval = 1
        elif card.repetitions == 1:
            interval = 6
        else:
            interval = _round_half_up(card.interval * ease_factor)

    # Failed reviews still count as a repetition
    repetitions = card.repetitions + 1

    return card.model_copy(update={
        "ease_factor": ease_factor,
        "interval": interval,
        "repetitions": repetitions,
        "status": derive_status(interval, repetitions),
        "next_review_date": now + timedelta(days=interval),
        "last_reviewed": now,
    })


def is_due(card: Card, now: datetime) -> bool:
    return card.next_review_date <= now


def get_due_cards(cards: Iterable[Card], now: datetime, deck_id: Optional[str] = None) -> List[Card]:
    """Cards due at `now`, new cards first, then learning, reviewing, mastered."""
    due = [c for c in cards if is_due(c, now) and (deck_id is None or c.deck_id == deck_id)]
    return sorted(due, key=lambda c: STATUS_ORDER[c.status])


def get_study_session(cards: Iterable[Card], now: datetime, deck_id: Optional[str] = None,
                      count: int = 20) -> List[Card]:
    if count < 0:
        raise InvalidArgument(f"Session size must not be negative, got {count}")
    return get_due_cards(cards, now, deck_id)[:count]


def summarize(cards: Iterable[Card], now: datetime) -> Dict[str, int]:
    cards = list(cards)
    stats = {"total_cards": len(cards)}
    for status in STATUS_ORDER:
        stats[status] = sum(1 for c in cards if c.status == status)
    stats["due_today"] = sum(1 for c in cards if is_due(c, now))
    return stats
