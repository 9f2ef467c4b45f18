from datetime import timedelta

import pytest

from conftest import NOW, make_card
from focusflow import review
from focusflow.errors import InvalidArgument


def test_first_pass_schedules_tomorrow():
    card = make_card(ease_factor=2.5, interval=0, repetitions=0)
    updated = review.record_review(card, 4, NOW)
    assert updated.interval == 1
    assert updated.status == "learning"
    assert updated.repetitions == 1
    assert updated.ease_factor == 2.5
    assert updated.next_review_date == NOW + timedelta(days=1)
    assert updated.last_reviewed == NOW


def test_second_pass_uses_new_ease_factor():
    card = make_card(ease_factor=2.5, interval=6, repetitions=1)
    updated = review.record_review(card, 5, NOW)
    assert updated.ease_factor == pytest.approx(2.6)
    assert updated.interval == 6
    assert updated.status == "reviewing"


def test_later_pass_multiplies_interval():
    card = make_card(ease_factor=2.5, interval=6, repetitions=2)
    updated = review.record_review(card, 5, NOW)
    assert updated.ease_factor == pytest.approx(2.6)
    assert updated.interval == 16  # round(6 * 2.6)
    assert updated.status == "reviewing"
    assert updated.next_review_date == NOW + timedelta(days=16)


def test_interval_rounds_half_up():
    card = make_card(ease_factor=2.5, interval=5, repetitions=3)
    # rating 4 keeps the ease factor at 2.5, 5 * 2.5 = 12.5
    assert review.record_review(card, 4, NOW).interval == 13


def test_long_interval_is_mastered():
    card = make_card(ease_factor=2.5, interval=16, repetitions=3, status="reviewing")
    updated = review.record_review(card, 4, NOW)
    assert updated.interval == 40
    assert updated.status == "mastered"


@pytest.mark.parametrize("rating", [0, 1, 2])
def test_failed_review_resets_interval(rating):
    card = make_card(ease_factor=2.1, interval=30, repetitions=5, status="mastered")
    updated = review.record_review(card, rating, NOW)
    assert updated.interval == 1
    assert updated.status == "learning"
    assert updated.ease_factor == 2.1
    assert updated.repetitions == 6
    assert updated.next_review_date == NOW + timedelta(days=1)


@pytest.mark.parametrize("rating", [3, 4, 5])
def test_first_pass_is_one_day_for_any_passing_rating(rating):
    updated = review.record_review(make_card(), rating, NOW)
    assert updated.interval == 1


def test_ease_factor_never_drops_below_minimum():
    card = make_card(ease_factor=1.3, interval=10, repetitions=4)
    for _ in range(5):
        card = review.record_review(card, 3, NOW)
        assert card.ease_factor >= review.MIN_EASE_FACTOR
    assert card.ease_factor == 1.3


def test_record_review_does_not_mutate_input():
    card = make_card()
    review.record_review(card, 5, NOW)
    assert card.repetitions == 0
    assert card.status == "new"


@pytest.mark.parametrize("rating", [-1, 6, 2.5, "4", True, None])
def test_invalid_rating_is_rejected(rating):
    with pytest.raises(InvalidArgument):
        review.record_review(make_card(), rating, NOW)


def test_status_is_monotonic_in_interval():
    tiers = [review.STATUS_ORDER[review.derive_status(i, 1)] for i in range(0, 60)]
    assert tiers == sorted(tiers)
    assert review.derive_status(5, 1) == "learning"
    assert review.derive_status(6, 1) == "reviewing"
    assert review.derive_status(20, 1) == "reviewing"
    assert review.derive_status(21, 1) == "mastered"
    assert review.derive_status(0, 0) == "new"


def test_due_cards_ordered_by_status_and_stable():
    cards = [
        make_card(id="m", status="mastered", interval=30, repetitions=4),
        make_card(id="l1", status="learning", interval=1, repetitions=1),
        make_card(id="n", status="new"),
        make_card(id="future", next_review_date=NOW + timedelta(days=3)),
        make_card(id="l2", status="learning", interval=1, repetitions=1),
        make_card(id="r", status="reviewing", interval=8, repetitions=2, deck_id="deck_2"),
    ]
    due = review.get_due_cards(cards, NOW)
    assert [c.id for c in due] == ["n", "l1", "l2", "r", "m"]
    assert [c.id for c in review.get_due_cards(cards, NOW, "deck_2")] == ["r"]


def test_study_session_takes_first_due_cards():
    cards = [make_card(id=f"c{i}") for i in range(5)]
    session = review.get_study_session(cards, NOW, "deck_1", count=3)
    assert [c.id for c in session] == ["c0", "c1", "c2"]
    with pytest.raises(InvalidArgument):
        review.get_study_session(cards, NOW, count=-1)


def test_summarize_counts_statuses():
    cards = [
        make_card(id="a"),
        make_card(id="b", status="mastered", interval=30, repetitions=4, next_review_date=NOW + timedelta(days=30)),
    ]
    stats = review.summarize(cards, NOW)
    assert stats == {"total_cards": 2, "new": 1, "learning": 0, "reviewing": 0, "mastered": 1, "due_today": 1}


def test_ease_factor_stays_on_two_decimal_grid():
    card = make_card(ease_factor=2.5, interval=6, repetitions=2)
    for rating in (3, 5, 3, 4, 5, 3, 5):
        card = review.record_review(card, rating, NOW)
        assert card.ease_factor == round(card.ease_factor, 2)
    # 2.5 - 0.14 + 0.1 - 0.14 + 0 + 0.1 - 0.14 + 0.1
    assert card.ease_factor == 2.38
