from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime, date, timezone

from .errors import InvalidArgument

CardStatus = Literal["new", "learning", "reviewing", "mastered"]
Difficulty = Literal["easy", "medium", "hard"]
ActivityType = Literal["task", "class", "study", "break", "event", "meeting", "assignment"]
Severity = Literal["partial", "major", "complete"]
Strategy = Literal["earliest", "latest", "optimal"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def time_to_minutes(value: str) -> int:
    """Converts 'HH:MM' (or 'HH:MM:SS') into minutes since midnight."""
    parts = str(value).split(":")
    if len(parts) not in (2, 3):
        raise InvalidArgument(f"Invalid time of day: {value!r}")
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        raise InvalidArgument(f"Invalid time of day: {value!r}") from None
    if not (0 <= hours <= 24 and 0 <= minutes < 60) or (hours == 24 and minutes):
        raise InvalidArgument(f"Invalid time of day: {value!r}")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: Optional[str]) -> Optional[str]:
    if value in (None, ""):
        return None
    # Postgres TIME columns come back as HH:MM:SS
    return minutes_to_time(time_to_minutes(value))


class Deck(BaseModel):
    id: str
    title: str = "Untitled Deck"
    description: str = ""
    subject: str = "General"
    card_ids: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Card(BaseModel):
    id: str
    front: str = ""
    back: str = ""
    hint: Optional[str] = None
    difficulty: Difficulty = "medium"
    deck_id: str
    # Spaced repetition state, only ever changed by review.record_review
    status: CardStatus = "new"
    ease_factor: float = Field(default=2.5, ge=1.3)
    interval: int = Field(default=0, ge=0)
    next_review_date: datetime = Field(default_factory=utc_now)
    repetitions: int = Field(default=0, ge=0)
    last_reviewed: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)


class Activity(BaseModel):
    id: Optional[str] = None
    title: str
    date: date
    start_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    activity_type: ActivityType = "task"
    is_completed: bool = False
    is_all_day: bool = False
    description: Optional[str] = None
    subject: Optional[str] = None
    location: Optional[str] = None
    rescheduled: bool = False
    original_start_time: Optional[str] = None

    @field_validator("start_time", "original_start_time")
    @classmethod
    def check_time(cls, value):
        return normalize_time(value)

    @property
    def is_timed(self) -> bool:
        return bool(self.start_time) and bool(self.duration_minutes) and not self.is_all_day

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes


class FreeSlot(BaseModel):
    start: str
    end: str
    duration_minutes: int


class ScoredSlot(FreeSlot):
    score: int
    label: str


class Conflict(BaseModel):
    activity: Activity
    overlap_minutes: int
    severity: Severity


class ConflictReport(BaseModel):
    candidate: Activity
    has_conflict: bool = False
    conflicts: List[Conflict] = Field(default_factory=list)
    suggestions: List[ScoredSlot] = Field(default_factory=list)


# --- Request bodies ---

class CardRequest(BaseModel):
    front: str = ""
    back: str = ""
    hint: Optional[str] = None
    difficulty: Difficulty = "medium"
    deck_id: Optional[str] = None


class DeckRequest(BaseModel):
    title: str = "Untitled Deck"
    description: str = ""
    subject: str = "General"
    cards: List[CardRequest] = Field(default_factory=list)


class ReviewRequest(BaseModel):
    rating: int = Field(ge=0, le=5)


class ActivityRequest(BaseModel):
    title: str
    date: date
    start_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    activity_type: ActivityType = "task"
    is_all_day: bool = False
    description: Optional[str] = None
    subject: Optional[str] = None
    location: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def check_time(cls, value):
        return normalize_time(value)


class CompletionRequest(BaseModel):
    is_completed: bool = True


class ResolveRequest(BaseModel):
    date: date
    activity_ids: List[str]
    strategy: Strategy = "optimal"
    commit: bool = True
