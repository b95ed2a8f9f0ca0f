"""Tests for the food ledger."""

from datetime import datetime, timedelta

import pytest

from protein_buddy.domain.ledger import Meal
from protein_buddy.services.ledger import FoodLedger
from tests.conftest import EMAIL, InMemoryDocumentRepository, make_food

DAY = "25_01_01"


def test_log_then_remove_restores_zero_intake(
    ledger: FoodLedger, repository: InMemoryDocumentRepository
) -> None:
    food = make_food(protein_per_gram=0.2, mass_grams=150.0, multiplier=2.0)

    logged = ledger.log_food(EMAIL, food, Meal.LUNCH, DAY)

    assert logged is not None
    assert logged.consumption_time == "25_01_01 08:00:00"
    assert ledger.fetch_protein_intake(EMAIL, DAY) == 60.0
    assert ledger.fetch_foods(EMAIL, DAY)["lunch"] == [logged]

    assert ledger.remove_food(EMAIL, logged, "lunch", DAY) is True

    intake = ledger.fetch_protein_intake(EMAIL, DAY)
    assert intake == 0.0
    assert str(intake) == "0.0"
    assert repository.documents[EMAIL][DAY]["lunch"] == []


def test_intake_matches_sum_of_entries(ledger: FoodLedger) -> None:
    eggs = make_food(name="eggs", protein_per_gram=0.13, mass_grams=50.0)
    yogurt = make_food(name="yogurt", protein_per_gram=0.1, mass_grams=170.0)

    ledger.log_food(EMAIL, eggs, "breakfast", DAY)
    ledger.log_food(EMAIL, yogurt, "snacks", DAY)

    foods = ledger.fetch_foods(EMAIL, DAY)
    total = sum(food.protein_grams for entries in foods.values() for food in entries)
    assert ledger.fetch_protein_intake(EMAIL, DAY) == pytest.approx(total, abs=0.05)
    assert ledger.fetch_protein_intake(EMAIL, DAY) == 23.5
    assert list(foods) == ["breakfast", "lunch", "dinner", "snacks"]


def test_logging_identical_entry_twice_is_a_no_op(ledger: FoodLedger) -> None:
    food = make_food()

    first = ledger.log_food(EMAIL, food, "dinner", DAY)
    second = ledger.log_food(EMAIL, food, "dinner", DAY)

    assert first == second
    assert len(ledger.fetch_foods(EMAIL, DAY)["dinner"]) == 1
    assert ledger.fetch_protein_intake(EMAIL, DAY) == 30.0


def test_removing_absent_entry_succeeds_without_changes(
    ledger: FoodLedger, repository: InMemoryDocumentRepository
) -> None:
    logged = ledger.log_food(EMAIL, make_food(), "lunch", DAY)
    before = repository.get_document(EMAIL)

    stranger = make_food(name="tofu", consumption_time="25_01_01 09:00:00")
    assert ledger.remove_food(EMAIL, stranger, "lunch", DAY) is True
    assert ledger.remove_food(EMAIL, logged, "dinner", DAY) is True
    assert ledger.remove_food(EMAIL, logged, "lunch", "25_01_02") is True

    assert repository.get_document(EMAIL) == before


def test_unknown_meal_and_bad_day_are_rejected(ledger: FoodLedger) -> None:
    with pytest.raises(ValueError):
        ledger.log_food(EMAIL, make_food(), "brunch", DAY)
    with pytest.raises(ValueError):
        ledger.log_food(EMAIL, make_food(), "lunch", "2025-01-01")


def test_write_failure_returns_failure(
    ledger: FoodLedger, repository: InMemoryDocumentRepository
) -> None:
    repository.fail_writes = True

    assert ledger.log_food(EMAIL, make_food(), "lunch", DAY) is None
    assert ledger.remove_food(EMAIL, make_food(), "lunch", DAY) is False
    assert ledger.set_protein_goal(EMAIL, 120) is False
    assert ledger.add_to_recent_foods(EMAIL, make_food()) is False


def test_edit_replaces_entry_and_adjusts_intake(ledger: FoodLedger) -> None:
    logged = ledger.log_food(EMAIL, make_food(), "lunch", DAY)
    assert logged is not None

    edited = ledger.edit_food(
        EMAIL,
        logged,
        "lunch",
        DAY,
        measure=logged.measures[1],
        multiplier=2.0,
        new_meal="dinner",
    )

    assert edited is not None
    assert edited.selected_measure.expression == "100 g"
    foods = ledger.fetch_foods(EMAIL, DAY)
    assert foods["lunch"] == []
    assert foods["dinner"] == [edited]
    assert ledger.fetch_protein_intake(EMAIL, DAY) == 40.0


def test_edit_with_unknown_measure_is_rejected(ledger: FoodLedger) -> None:
    logged = ledger.log_food(EMAIL, make_food(), "lunch", DAY)
    assert logged is not None
    other = make_food(mass_grams=10.0).selected_measure

    with pytest.raises(ValueError):
        ledger.edit_food(EMAIL, logged, "lunch", DAY, measure=other, multiplier=1.0)


def test_protein_goal_roundtrip(ledger: FoodLedger) -> None:
    assert ledger.fetch_protein_goal(EMAIL) is None

    assert ledger.set_protein_goal(EMAIL, 120) is True

    assert ledger.fetch_protein_goal(EMAIL) == 120


@pytest.mark.parametrize("grams", [0, -5, 12.5, True])
def test_invalid_protein_goal_is_rejected(ledger: FoodLedger, grams: object) -> None:
    with pytest.raises(ValueError):
        ledger.set_protein_goal(EMAIL, grams)  # type: ignore[arg-type]


def test_fetch_day_reports_progress(ledger: FoodLedger) -> None:
    ledger.set_protein_goal(EMAIL, 120)
    ledger.log_food(EMAIL, make_food(multiplier=2.0), "lunch", DAY)

    day_log = ledger.fetch_day(EMAIL, DAY)

    assert day_log.day == DAY
    assert day_log.protein_intake == 60.0
    assert day_log.protein_goal == 120
    assert day_log.progress_percent == 50


def test_fetch_history_lists_days_newest_first(ledger: FoodLedger) -> None:
    ledger.log_food(EMAIL, make_food(), "lunch", "24_12_31")
    ledger.log_food(EMAIL, make_food(), "lunch", "25_01_02")
    ledger.log_food(EMAIL, make_food(name="eggs"), "dinner", "25_01_02")
    ledger.set_protein_goal(EMAIL, 100)

    history = ledger.fetch_history(EMAIL)

    assert [entry.day for entry in history] == ["25_01_02", "24_12_31"]
    assert history[0].food_count == 2
    assert history[0].protein_intake == 60.0


def test_malformed_stored_entries_are_skipped(
    ledger: FoodLedger, repository: InMemoryDocumentRepository
) -> None:
    repository.documents[EMAIL] = {
        DAY: {
            "lunch": [{"food": "broken"}, make_food().to_document()],
            "proteinIntake": 30.0,
        }
    }

    foods = ledger.fetch_foods(EMAIL, DAY)

    assert [food.name for food in foods["lunch"]] == ["chicken breast"]


def test_recent_foods_keep_ten_newest(repository: InMemoryDocumentRepository) -> None:
    start = datetime(2025, 1, 1, 8)
    moments = iter(start + timedelta(minutes=index) for index in range(11))
    ledger = FoodLedger(repository=repository, clock=lambda: next(moments))

    for index in range(11):
        ledger.add_to_recent_foods(EMAIL, make_food(name=f"food {index}"))

    recent = ledger.fetch_recent_foods(EMAIL)

    assert [food.name for food in recent] == [
        f"food {index}" for index in range(10, 0, -1)
    ]
    assert len(repository.documents[EMAIL]["recentFoods"]) == 10


def test_recent_foods_do_not_duplicate_entries(ledger: FoodLedger) -> None:
    food = make_food(consumption_time="25_01_01 08:00:00")

    ledger.add_to_recent_foods(EMAIL, food)
    ledger.add_to_recent_foods(EMAIL, food)

    assert ledger.fetch_recent_foods(EMAIL) == [food]
