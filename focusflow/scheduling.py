"""Conflict detection and time-slot suggestions for calendar activities.

All times are minutes since midnight inside a single day. Only timed
activities (start time and a non-zero duration, not all-day) take part;
everything else is ignored.
"""
from typing import Iterable, List, Optional

from .config import DayWindow
from .errors import InvalidArgument
from .models import Activity, Conflict, ConflictReport, FreeSlot, ScoredSlot, minutes_to_time, time_to_minutes

BASE_SCORE = 100
DEFAULT_DURATION = 60
MAX_SUGGESTIONS = 5
MAX_ALTERNATIVES = 3
STRATEGIES = ("earliest", "latest", "optimal")

DEFAULT_WINDOW = DayWindow()


def _timed(activities: Iterable[Activity]) -> List[Activity]:
    return [a for a in activities if a.is_timed]


def conflict_severity(overlap_minutes: int, duration_minutes: int) -> str:
    if overlap_minutes >= duration_minutes:
        return "complete"
    if overlap_minutes >= duration_minutes * 0.5:
        return "major"
    return "partial"


def check_conflicts(candidate: Activity, existing: Iterable[Activity],
                    window: Optional[DayWindow] = None) -> ConflictReport:
    """
    Tests a candidate activity against the activities already on its day.

    The candidate's own stored record (same id) is skipped so that an edited
    activity does not conflict with its previous version. When anything
    overlaps, the report carries up to three alternative slots.
    """
    existing = list(existing)
    report = ConflictReport(candidate=candidate)
    if not candidate.is_timed:
        return report

    start, end = candidate.start_minutes, candidate.end_minutes
    others = [a for a in existing if candidate.id is None or a.id != candidate.id]

    for other in _timed(others):
        other_start, other_end = other.start_minutes, other.end_minutes
        # Half-open intervals: touching edges do not overlap
        if start < other_end and other_start < end:
            overlap = min(end, other_end) - max(start, other_start)
            report.conflicts.append(Conflict(
                activity=other,
                overlap_minutes=overlap,
                severity=conflict_severity(overlap, candidate.duration_minutes),
            ))

    if report.conflicts:
        report.has_conflict = True
        report.suggestions = suggest_optimal_times(candidate, others, window)[:MAX_ALTERNATIVES]
    return report


def find_free_slots(activities: Iterable[Activity], min_duration: int = 30,
                    window: Optional[DayWindow] = None) -> List[FreeSlot]:
    """Gaps of at least `min_duration` minutes between timed activities, in order."""
    if min_duration < 1:
        raise InvalidArgument(f"Minimum slot duration must be positive, got {min_duration}")
    window = window or DEFAULT_WINDOW
    day_end = window.end_minutes

    slots = []

    def emit(slot_start, slot_end):
        if slot_end - slot_start >= min_duration:
            slots.append(FreeSlot(
                start=minutes_to_time(slot_start),
                end=minutes_to_time(slot_end),
                duration_minutes=slot_end - slot_start,
            ))

    cursor = window.start_minutes
    for activity in sorted(_timed(activities), key=lambda a: a.start_minutes):
        emit(cursor, min(activity.start_minutes, day_end))
        cursor = max(cursor, activity.end_minutes)

    emit(cursor, day_end)
    return slots


def score_slot(slot: FreeSlot, activity_type: str, duration: int) -> int:
    hour = time_to_minutes(slot.start) // 60
    score = BASE_SCORE

    if activity_type == "study":
        if 9 <= hour < 11:
            score += 30
        elif 14 <= hour < 16:
            score += 20
        elif hour >= 18:
            score -= 10
    elif activity_type in ("class", "meeting"):
        if 9 <= hour < 17:
            score += 20
        else:
            score -= 15
    elif activity_type == "break":
        if 12 <= hour < 13:
            score += 25
        elif 15 <= hour < 16:
            score += 20
    elif activity_type in ("task", "assignment"):
        if 8 <= hour < 12:
            score += 25
        elif 14 <= hour < 18:
            score += 10
    # events have no preferred time

    # +5 for every spare half hour, up to +20
    score += min(20, (slot.duration_minutes - duration) // 30 * 5)

    if hour < 7:
        score -= 15
    if hour >= 21:
        score -= 10
    return score


def slot_label(score: int) -> str:
    if score >= 140:
        return "Optimal"
    if score >= 120:
        return "Great"
    if score >= 100:
        return "Good"
    return "Available"


def suggest_optimal_times(activity: Activity, existing: Iterable[Activity],
                          window: Optional[DayWindow] = None,
                          limit: int = MAX_SUGGESTIONS) -> List[ScoredSlot]:
    """Free slots long enough for `activity`, best-suited first."""
    duration = activity.duration_minutes or DEFAULT_DURATION
    scored = []
    for slot in find_free_slots(existing, duration, window):
        score = score_slot(slot, activity.activity_type, duration)
        scored.append(ScoredSlot(**slot.model_dump(), score=score, label=slot_label(score)))
    # sorted() is stable, so equal scores stay in chronological order
    return sorted(scored, key=lambda s: s.score, reverse=True)[:limit]


def _pick_slot(suggestions: List[ScoredSlot], strategy: str) -> ScoredSlot:
    if strategy == "earliest":
        return min(suggestions, key=lambda s: time_to_minutes(s.start))
    if strategy == "latest":
        return max(suggestions, key=lambda s: time_to_minutes(s.start))
    return suggestions[0]


def resolve_conflicts(conflicting: Iterable[Activity], all_activities: Iterable[Activity],
                      strategy: str = "optimal", window: Optional[DayWindow] = None) -> List[Activity]:
    """
    Moves each conflicting activity into a free slot, one after another.

    Every placed activity joins the fixed schedule before the next one is
    placed, so later moves never land on earlier ones. Activities for which
    no slot is left are not part of the result.

    Args:
        conflicting: Activities to move, in the order they should be placed.
        all_activities: Every activity on the day, conflicting ones included.
        strategy (str): 'optimal' takes the best scored slot; 'earliest' and
                        'latest' take the chronologically first or last of
                        the scored suggestions.
        window (DayWindow): Schedulable hours, 06:00-23:00 by default.

    Returns:
        List[Activity]: Copies of the moved activities with the new
                        start_time, rescheduled=True and original_start_time.
    """
    if strategy not in STRATEGIES:
        raise InvalidArgument(f"Unknown strategy {strategy!r}, expected one of {', '.join(STRATEGIES)}")

    conflicting = list(conflicting)
    moving_ids = {a.id for a in conflicting if a.id is not None}
    fixed = [a for a in all_activities
             if not (a.id in moving_ids or any(a is c for c in conflicting))]

    rescheduled = []
    for activity in conflicting:
        suggestions = suggest_optimal_times(activity, fixed, window)
        if not suggestions:
            continue
        slot = _pick_slot(suggestions, strategy)
        moved = activity.model_copy(update={
            "start_time": slot.start,
            "rescheduled": True,
            "original_start_time": activity.original_start_time or activity.start_time,
        })
        rescheduled.append(moved)
        fixed.append(moved)
    return rescheduled
