from datetime import date

from conftest import DAY, NOW, make_activity, make_card
from focusflow.storage import CsvStore, InMemoryStore


def test_deck_delete_cascades_to_cards():
    store = InMemoryStore()
    deck = store.create_deck("Biology")
    other = store.create_deck("Chemistry")
    store.create_card(make_card(id="c1", deck_id=deck.id))
    store.create_card(make_card(id="c2", deck_id=deck.id))
    store.create_card(make_card(id="c3", deck_id=other.id))

    assert store.delete_deck(deck.id)
    assert store.get_deck(deck.id) is None
    assert store.get_card("c1") is None and store.get_card("c2") is None
    assert store.get_card("c3") is not None


def test_card_delete_detaches_from_deck():
    store = InMemoryStore()
    deck = store.create_deck()
    store.create_card(make_card(id="c1", deck_id=deck.id))
    store.create_card(make_card(id="c2", deck_id=deck.id))
    assert store.delete_card("c1")
    assert store.get_deck(deck.id).card_ids == ["c2"]
    assert [c.id for c in store.get_cards_by_deck(deck.id)] == ["c2"]


def test_unknown_ids_are_no_ops():
    store = InMemoryStore()
    assert store.update_card("missing", {"front": "x"}) is None
    assert store.delete_card("missing") is False
    assert store.update_deck("missing", {"title": "x"}) is None
    assert store.delete_deck("missing") is False
    assert store.update_activity("missing", {"title": "x"}) is None
    assert store.delete_activity("missing") is False
    assert store.get_cards_by_deck("missing") == []


def test_card_needs_existing_deck():
    assert InMemoryStore().create_card(make_card(deck_id="nope")) is None


def test_update_cannot_change_id():
    store = InMemoryStore()
    deck = store.create_deck()
    store.create_card(make_card(id="c1", deck_id=deck.id))
    updated = store.update_card("c1", {"id": "other", "front": "New"})
    assert updated.id == "c1"
    assert updated.front == "New"


def test_activities_by_date_and_range():
    store = InMemoryStore()
    store.create_activity(make_activity("14:00", 60, title="late"))
    store.create_activity(make_activity(None, None, title="untimed"))
    store.create_activity(make_activity("08:00", 60, title="early"))
    store.create_activity(make_activity("08:00", 60, title="tomorrow", date=date(2026, 10, 19)))

    assert [a.title for a in store.get_activities_for_date(DAY)] == ["early", "late", "untimed"]
    in_range = store.get_activities_for_range(DAY, date(2026, 10, 19))
    assert [a.title for a in in_range] == ["early", "late", "untimed", "tomorrow"]
    assert all(a.id for a in in_range)


def test_csv_store_round_trips_all_tables(tmp_path):
    store = CsvStore(str(tmp_path))
    deck = store.create_deck("Spanish", subject="Languages")
    store.create_card(make_card(id="c1", deck_id=deck.id, hint=None))
    store.create_card(make_card(id="c2", deck_id=deck.id, status="reviewing", interval=8,
                                repetitions=2, ease_factor=2.36, last_reviewed=NOW))
    activity = store.create_activity(make_activity("09:30", 45, title="Lab", activity_type="class"))
    store.create_activity(make_activity(None, None, title="Reading", is_completed=True))

    reloaded = CsvStore(str(tmp_path))
    assert reloaded.load()

    assert reloaded.get_deck(deck.id).card_ids == ["c1", "c2"]
    assert reloaded.get_deck(deck.id).subject == "Languages"
    assert reloaded.get_card("c1") == store.get_card("c1")
    assert reloaded.get_card("c2") == store.get_card("c2")
    assert reloaded.get_activity(activity.id) == activity
    untimed = [a for a in reloaded.get_activities_for_date(DAY) if a.title == "Reading"][0]
    assert untimed.start_time is None
    assert untimed.duration_minutes is None
    assert untimed.is_completed is True


def test_csv_store_with_missing_files_starts_empty(tmp_path):
    store = CsvStore(str(tmp_path / "nothing_here"))
    assert store.load() is False
    assert store.get_all_decks() == []
    assert store.get_all_cards() == []


def test_csv_store_keeps_empty_text(tmp_path):
    store = CsvStore(str(tmp_path))
    deck = store.create_deck(title="", description="")
    store.create_card(make_card(id="blank", deck_id=deck.id, front="", back=""))
    activity = store.create_activity(make_activity("10:00", 30, title=""))

    reloaded = CsvStore(str(tmp_path))
    assert reloaded.load()
    assert reloaded.get_deck(deck.id).title == ""
    assert reloaded.get_card("blank").front == ""
    assert reloaded.get_card("blank").hint is None
    assert reloaded.get_activity(activity.id).title == ""
    assert reloaded.get_activity(activity.id).description is None
