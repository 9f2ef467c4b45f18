import os
import uuid
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from .models import Activity, Card, Deck, utc_now


def generate_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def _activity_sort_key(activity: Activity):
    # Untimed activities go after the timed ones of the same day
    return (activity.date, activity.start_time is None, activity.start_time or "")


class Store(ABC):
    """Data access used by the services. Unknown ids give None/False, never an exception."""

    # --- Decks ---
    @abstractmethod
    def get_all_decks(self) -> List[Deck]: ...

    @abstractmethod
    def get_deck(self, deck_id: str) -> Optional[Deck]: ...

    @abstractmethod
    def create_deck(self, title: str = "Untitled Deck", description: str = "", subject: str = "General") -> Deck: ...

    @abstractmethod
    def update_deck(self, deck_id: str, updates: dict) -> Optional[Deck]: ...

    @abstractmethod
    def delete_deck(self, deck_id: str) -> bool: ...

    # --- Cards ---
    @abstractmethod
    def get_all_cards(self) -> List[Card]: ...

    @abstractmethod
    def get_cards_by_deck(self, deck_id: str) -> List[Card]: ...

    @abstractmethod
    def get_card(self, card_id: str) -> Optional[Card]: ...

    @abstractmethod
    def create_card(self, card: Card) -> Optional[Card]: ...

    @abstractmethod
    def update_card(self, card_id: str, updates: dict) -> Optional[Card]: ...

    @abstractmethod
    def delete_card(self, card_id: str) -> bool: ...

    # --- Activities ---
    @abstractmethod
    def get_activities_for_date(self, day: date) -> List[Activity]: ...

    @abstractmethod
    def get_activities_for_range(self, start: date, end: date) -> List[Activity]: ...

    @abstractmethod
    def get_activity(self, activity_id: str) -> Optional[Activity]: ...

    @abstractmethod
    def create_activity(self, activity: Activity) -> Activity: ...

    @abstractmethod
    def update_activity(self, activity_id: str, updates: dict) -> Optional[Activity]: ...

    @abstractmethod
    def delete_activity(self, activity_id: str) -> bool: ...


class InMemoryStore(Store):
    def __init__(self):
        self.decks: Dict[str, Deck] = {}
        self.cards: Dict[str, Card] = {}
        self.activities: Dict[str, Activity] = {}

    def _persist(self, table: str):
        """Hook called after every mutation of `table` ('decks', 'cards' or 'activities')."""

    # --- Decks ---
    def get_all_decks(self) -> List[Deck]:
        return sorted(self.decks.values(), key=lambda d: d.updated_at, reverse=True)

    def get_deck(self, deck_id: str) -> Optional[Deck]:
        return self.decks.get(deck_id)

    def create_deck(self, title: str = "Untitled Deck", description: str = "", subject: str = "General") -> Deck:
        deck = Deck(id=generate_id("deck"), title=title, description=description, subject=subject)
        self.decks[deck.id] = deck
        self._persist("decks")
        return deck

    def update_deck(self, deck_id: str, updates: dict) -> Optional[Deck]:
        deck = self.decks.get(deck_id)
        if deck is None:
            return None
        updates = {k: v for k, v in updates.items() if k in Deck.model_fields and k != "id"}
        updates["updated_at"] = utc_now()
        deck = self.decks[deck_id] = deck.model_copy(update=updates)
        self._persist("decks")
        return deck

    def delete_deck(self, deck_id: str) -> bool:
        deck = self.decks.pop(deck_id, None)
        if deck is None:
            return False
        for card_id in deck.card_ids:
            self.cards.pop(card_id, None)
        self._persist("cards")
        self._persist("decks")
        return True

    # --- Cards ---
    def get_all_cards(self) -> List[Card]:
        return list(self.cards.values())

    def get_cards_by_deck(self, deck_id: str) -> List[Card]:
        deck = self.decks.get(deck_id)
        if deck is None:
            return []
        return [self.cards[cid] for cid in deck.card_ids if cid in self.cards]

    def get_card(self, card_id: str) -> Optional[Card]:
        return self.cards.get(card_id)

    def create_card(self, card: Card) -> Optional[Card]:
        deck = self.decks.get(card.deck_id)
        if deck is None:
            logging.error(f"Deck {card.deck_id} not found, card not created")
            return None
        self.cards[card.id] = card
        deck.card_ids.append(card.id)
        self._persist("cards")
        self._persist("decks")
        return card

    def update_card(self, card_id: str, updates: dict) -> Optional[Card]:
        card = self.cards.get(card_id)
        if card is None:
            return None
        updates = {k: v for k, v in updates.items() if k in Card.model_fields and k != "id"}
        card = self.cards[card_id] = card.model_copy(update=updates)
        self._persist("cards")
        return card

    def delete_card(self, card_id: str) -> bool:
        card = self.cards.pop(card_id, None)
        if card is None:
            return False
        deck = self.decks.get(card.deck_id)
        if deck is not None and card_id in deck.card_ids:
            deck.card_ids.remove(card_id)
            self._persist("decks")
        self._persist("cards")
        return True

    # --- Activities ---
    def get_activities_for_date(self, day: date) -> List[Activity]:
        return self.get_activities_for_range(day, day)

    def get_activities_for_range(self, start: date, end: date) -> List[Activity]:
        found = [a for a in self.activities.values() if start <= a.date <= end]
        return sorted(found, key=_activity_sort_key)

    def get_activity(self, activity_id: str) -> Optional[Activity]:
        return self.activities.get(activity_id)

    def create_activity(self, activity: Activity) -> Activity:
        activity = activity.model_copy(update={"id": activity.id or generate_id("activity")})
        self.activities[activity.id] = activity
        self._persist("activities")
        return activity

    def update_activity(self, activity_id: str, updates: dict) -> Optional[Activity]:
        activity = self.activities.get(activity_id)
        if activity is None:
            return None
        data = activity.model_dump()
        data.update({k: v for k, v in updates.items() if k in Activity.model_fields and k != "id"})
        # Re-validate so start_time edits go through the same checks as new records
        activity = self.activities[activity_id] = Activity.model_validate(data)
        self._persist("activities")
        return activity

    def delete_activity(self, activity_id: str) -> bool:
        if self.activities.pop(activity_id, None) is None:
            return False
        self._persist("activities")
        return True


class CsvStore(InMemoryStore):
    """Keeps decks, cards and activities in three CSV files under `data_dir`."""

    MODELS = {"decks": Deck, "cards": Card, "activities": Activity}

    def __init__(self, data_dir: str = "data"):
        super().__init__()
        self.data_dir = data_dir

    def _path(self, table: str) -> str:
        return os.path.join(self.data_dir, f"{table}.csv")

    def load(self) -> bool:
        """Loads all three tables. Missing files leave that table empty."""
        loaded = True
        for table, model in self.MODELS.items():
            path = self._path(table)
            if not os.path.exists(path):
                logging.warning(f"File not found: {path}")
                loaded = False
                continue
            try:
                df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding='utf-8-sig')
            except Exception as e:
                logging.error(f"Error loading CSV {path}: {e}")
                raise
            records = {}
            for row in df.to_dict(orient="records"):
                item = model.model_validate(self._from_row(table, row))
                records[item.id] = item
            setattr(self, table, records)
            logging.info(f"Loaded {len(records)} {table} from {path}")
        return loaded

    def _from_row(self, table: str, row: dict) -> dict:
        fields = self.MODELS[table].model_fields
        # Empty cells are missing values, except in plain text columns where "" is the value
        data = {k: v for k, v in row.items()
                if v != "" or (k in fields and fields[k].annotation is str)}
        if table == "decks":
            data["card_ids"] = [cid for cid in row.get("card_ids", "").split(";") if cid]
        return data

    def _to_row(self, table: str, item) -> dict:
        row = item.model_dump(mode="json")
        if table == "decks":
            row["card_ids"] = ";".join(row["card_ids"])
        return row

    def _persist(self, table: str):
        model = self.MODELS[table]
        rows = [self._to_row(table, item) for item in getattr(self, table).values()]
        df = pd.DataFrame(rows, columns=list(model.model_fields), dtype=object)
        os.makedirs(self.data_dir, exist_ok=True)
        df.to_csv(self._path(table), index=False, encoding='utf-8-sig')
