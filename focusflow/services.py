import logging
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional

from . import review, scheduling
from .config import DayWindow
from .errors import InvalidArgument
from .models import Activity, Card, ConflictReport, Deck, FreeSlot, ScoredSlot, utc_now
from .storage import Store, generate_id

CARD_CONTENT_FIELDS = ("front", "back", "hint", "difficulty")
DECK_FIELDS = ("title", "description", "subject")
ACTIVITY_FIELDS = ("title", "date", "start_time", "duration_minutes", "activity_type",
                   "is_all_day", "description", "subject", "location")


class FlashcardService:
    def __init__(self, store: Store, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    # --- Decks ---
    def list_decks(self) -> List[Deck]:
        return self.store.get_all_decks()

    def get_deck(self, deck_id: str) -> Optional[Deck]:
        return self.store.get_deck(deck_id)

    def create_deck(self, title: str = "Untitled Deck", description: str = "", subject: str = "General") -> Deck:
        deck = self.store.create_deck(title=title, description=description, subject=subject)
        logging.info(f"Created deck {deck.id} ({deck.title})")
        return deck

    def update_deck(self, deck_id: str, updates: dict) -> Optional[Deck]:
        return self.store.update_deck(deck_id, {k: v for k, v in updates.items() if k in DECK_FIELDS})

    def delete_deck(self, deck_id: str) -> bool:
        deleted = self.store.delete_deck(deck_id)
        if deleted:
            logging.info(f"Deleted deck {deck_id} and its cards")
        return deleted

    def create_deck_with_cards(self, deck_data: dict, cards_data: Iterable[dict]):
        deck = self.create_deck(**{k: v for k, v in deck_data.items() if k in DECK_FIELDS})
        cards = self.add_cards_to_deck(deck.id, cards_data)
        return self.store.get_deck(deck.id), cards

    def add_cards_to_deck(self, deck_id: str, cards_data: Iterable[dict]) -> List[Card]:
        cards = [self.create_card(deck_id, **{k: v for k, v in data.items() if k in CARD_CONTENT_FIELDS})
                 for data in cards_data]
        return [c for c in cards if c is not None]

    # --- Cards ---
    def get_cards(self, deck_id: str) -> List[Card]:
        return self.store.get_cards_by_deck(deck_id)

    def create_card(self, deck_id: str, front: str = "", back: str = "", hint: Optional[str] = None,
                    difficulty: str = "medium") -> Optional[Card]:
        now = self.clock()
        card = Card(
            id=generate_id("card"),
            front=front,
            back=back,
            hint=hint,
            difficulty=difficulty,
            deck_id=deck_id,
            next_review_date=now,
            created_at=now,
        )
        return self.store.create_card(card)

    def edit_card(self, card_id: str, updates: dict) -> Optional[Card]:
        """Changes card content. Scheduling fields are left alone."""
        return self.store.update_card(card_id, {k: v for k, v in updates.items() if k in CARD_CONTENT_FIELDS})

    def delete_card(self, card_id: str) -> bool:
        return self.store.delete_card(card_id)

    # --- Reviews ---
    def review_card(self, card_id: str, rating: int) -> Optional[Card]:
        card = self.store.get_card(card_id)
        if card is None:
            return None
        updated = review.record_review(card, rating, self.clock())
        logging.info(f"Reviewed card {card_id} with rating {rating}: "
                     f"interval {updated.interval}d, status {updated.status}")
        return self.store.update_card(card_id, updated.model_dump(exclude={"id"}))

    def get_due_cards(self, deck_id: Optional[str] = None) -> List[Card]:
        return review.get_due_cards(self.store.get_all_cards(), self.clock(), deck_id)

    def get_due_card_count(self, deck_id: Optional[str] = None) -> int:
        return len(self.get_due_cards(deck_id))

    def get_study_session(self, deck_id: str, count: int = 20) -> List[Card]:
        return review.get_study_session(self.store.get_all_cards(), self.clock(), deck_id, count)

    # --- Statistics ---
    def get_deck_stats(self, deck_id: str) -> Optional[Dict[str, int]]:
        if self.store.get_deck(deck_id) is None:
            return None
        return review.summarize(self.store.get_cards_by_deck(deck_id), self.clock())

    def get_overall_stats(self) -> Dict[str, int]:
        stats = review.summarize(self.store.get_all_cards(), self.clock())
        stats["total_decks"] = len(self.store.get_all_decks())
        return stats


class PlannerService:
    def __init__(self, store: Store, window: Optional[DayWindow] = None):
        self.store = store
        self.window = window or DayWindow()

    def get_activities_for_date(self, day: date) -> List[Activity]:
        return self.store.get_activities_for_date(day)

    def get_activities_for_range(self, start: date, end: date) -> List[Activity]:
        if end < start:
            raise InvalidArgument(f"Range end {end} is before start {start}")
        return self.store.get_activities_for_range(start, end)

    def create_activity(self, data: dict) -> Activity:
        activity = Activity(**{k: v for k, v in data.items() if k in ACTIVITY_FIELDS})
        activity = self.store.create_activity(activity)
        logging.info(f"Created activity {activity.id} on {activity.date}")
        return activity

    def update_activity(self, activity_id: str, updates: dict) -> Optional[Activity]:
        return self.store.update_activity(
            activity_id, {k: v for k, v in updates.items() if k in ACTIVITY_FIELDS})

    def delete_activity(self, activity_id: str) -> bool:
        return self.store.delete_activity(activity_id)

    def toggle_completion(self, activity_id: str, is_completed: bool) -> Optional[Activity]:
        return self.store.update_activity(activity_id, {"is_completed": is_completed})

    # --- Scheduling ---
    def check_activity(self, candidate: Activity) -> ConflictReport:
        existing = self.store.get_activities_for_date(candidate.date)
        report = scheduling.check_conflicts(candidate, existing, self.window)
        if report.has_conflict:
            logging.info(f"'{candidate.title}' conflicts with {len(report.conflicts)} activities on {candidate.date}")
        return report

    def get_free_slots(self, day: date, min_duration: int = 30) -> List[FreeSlot]:
        return scheduling.find_free_slots(self.store.get_activities_for_date(day), min_duration, self.window)

    def suggest_times(self, candidate: Activity) -> List[ScoredSlot]:
        existing = [a for a in self.store.get_activities_for_date(candidate.date)
                    if candidate.id is None or a.id != candidate.id]
        return scheduling.suggest_optimal_times(candidate, existing, self.window)

    def resolve(self, day: date, activity_ids: List[str], strategy: str = "optimal",
                commit: bool = True) -> Optional[List[Activity]]:
        """
        Reschedules the given activities of `day` into free slots.

        Returns None when an id is unknown or belongs to another day. With
        commit=False the new times are computed but not saved.
        """
        # The same activity asked for twice is placed once
        activity_ids = list(dict.fromkeys(activity_ids))
        activities = self.store.get_activities_for_date(day)
        by_id = {a.id: a for a in activities}
        missing = [i for i in activity_ids if i not in by_id]
        if missing:
            logging.warning(f"Cannot resolve conflicts on {day}, unknown activities: {missing}")
            return None

        rescheduled = scheduling.resolve_conflicts(
            [by_id[i] for i in activity_ids], activities, strategy, self.window)

        if commit:
            for activity in rescheduled:
                self.store.update_activity(activity.id, {
                    "start_time": activity.start_time,
                    "rescheduled": True,
                    "original_start_time": activity.original_start_time,
                })
            logging.info(f"Rescheduled {len(rescheduled)} of {len(activity_ids)} activities on {day} ({strategy})")
        return rescheduled
