"""Food ledger: per-day meal logs and the running protein total.

Every write is expressed as a mutation of the user's document and handed to
the repository, which applies it atomically. The protein total is therefore
always adjusted from the value stored at write time, keeping it equal to the
sum of the logged entries even when several clients write the same day.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from protein_buddy.dates import (
    format_timestamp,
    is_day_key,
    parse_day,
    parse_timestamp,
)
from protein_buddy.domain.foods import Food, Measure
from protein_buddy.domain.ledger import (
    MEAL_NAMES,
    PROTEIN_GOAL_FIELD,
    PROTEIN_INTAKE_FIELD,
    RECENT_FOODS_FIELD,
    RECENT_FOODS_LIMIT,
    DailyIntake,
    DayLog,
    Meal,
    parse_meal,
)
from protein_buddy.services.goals import progress_percent

_logger = logging.getLogger(__name__)

INTAKE_EPSILON = 1e-9

Document = dict[str, object]


class DocumentRepository(Protocol):
    """Persistence interface for per-user documents."""

    def get_document(self, email: str) -> Document:
        """Return the user's document, empty when none exists."""

    def update_document(
        self, email: str, mutate: Callable[[Document], None]
    ) -> Document:
        """Apply ``mutate`` to the user's document atomically and return it."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class FoodLedger:
    """Service that keeps meal logs and protein totals consistent."""

    repository: DocumentRepository
    clock: Callable[[], datetime] = _utc_now

    def log_food(
        self, email: str, food: Food, meal: Meal | str, day: str
    ) -> Food | None:
        """Log a food under a meal and add its protein to the day's total.

        Returns the stored entry, stamped with its consumption time, or None
        when the write failed.
        """
        bucket = _meal_name(meal)
        _check_day(day)
        entry = food.stamped(format_timestamp(self.clock()))

        def mutate(document: Document) -> None:
            day_log = _day_log(document, day)
            if _add_entry(day_log, bucket, entry):
                _adjust_intake(day_log, entry.protein_grams)

        if not self._write(email, mutate, action=f"log_food:{day}:{bucket}"):
            return None
        return entry

    def remove_food(self, email: str, food: Food, meal: Meal | str, day: str) -> bool:
        """Remove a previously logged entry and subtract its protein.

        The entry must match a stored one exactly; otherwise nothing changes
        and the call still succeeds.
        """
        bucket = _meal_name(meal)
        _check_day(day)

        def mutate(document: Document) -> None:
            day_log = document.get(day)
            if isinstance(day_log, dict) and _remove_entry(day_log, bucket, food):
                _adjust_intake(day_log, -food.protein_grams)

        return self._write(email, mutate, action=f"remove_food:{day}:{bucket}")

    def edit_food(  # noqa: PLR0913
        self,
        email: str,
        original: Food,
        meal: Meal | str,
        day: str,
        *,
        measure: Measure,
        multiplier: float,
        new_meal: Meal | str | None = None,
    ) -> Food | None:
        """Replace a logged entry with a re-served copy in one write."""
        old_bucket = _meal_name(meal)
        new_bucket = _meal_name(new_meal) if new_meal is not None else old_bucket
        _check_day(day)
        entry = original.with_serving(measure, multiplier).stamped(
            format_timestamp(self.clock())
        )

        def mutate(document: Document) -> None:
            day_log = _day_log(document, day)
            if _remove_entry(day_log, old_bucket, original):
                _adjust_intake(day_log, -original.protein_grams)
            if _add_entry(day_log, new_bucket, entry):
                _adjust_intake(day_log, entry.protein_grams)

        if not self._write(email, mutate, action=f"edit_food:{day}:{old_bucket}"):
            return None
        return entry

    def fetch_foods(self, email: str, day: str) -> dict[str, list[Food]]:
        """Return the day's foods grouped by meal; missing meals are empty."""
        _check_day(day)
        return _meals_from(self.repository.get_document(email).get(day))

    def fetch_protein_intake(self, email: str, day: str) -> float:
        """Return the day's protein total rounded to one decimal place."""
        _check_day(day)
        return _intake_from(self.repository.get_document(email).get(day))

    def fetch_protein_goal(self, email: str) -> int | None:
        """Return the user's protein goal, or None when unset."""
        return _goal_from(self.repository.get_document(email))

    def set_protein_goal(self, email: str, grams: int) -> bool:
        """Store a positive protein goal in grams."""
        if isinstance(grams, bool) or not isinstance(grams, int) or grams <= 0:
            raise ValueError("Protein goal must be a positive whole number of grams")

        def mutate(document: Document) -> None:
            document[PROTEIN_GOAL_FIELD] = grams

        return self._write(email, mutate, action="set_protein_goal")

    def fetch_day(self, email: str, day: str) -> DayLog:
        """Return foods, intake and goal progress for a day in one read."""
        _check_day(day)
        document = self.repository.get_document(email)
        intake = _intake_from(document.get(day))
        goal = _goal_from(document)
        return DayLog(
            day=day,
            meals=_meals_from(document.get(day)),
            protein_intake=intake,
            protein_goal=goal,
            progress_percent=progress_percent(intake, goal),
        )

    def fetch_history(self, email: str) -> list[DailyIntake]:
        """Return every logged day, newest first."""
        document = self.repository.get_document(email)
        history = []
        for key, value in document.items():
            if not is_day_key(key) or not isinstance(value, dict):
                continue
            meals = _meals_from(value)
            history.append(
                DailyIntake(
                    day=key,
                    protein_intake=_intake_from(value),
                    food_count=sum(len(foods) for foods in meals.values()),
                )
            )
        history.sort(key=lambda entry: parse_day(entry.day), reverse=True)
        return history

    def fetch_recent_foods(self, email: str) -> list[Food]:
        """Return up to ten recently logged foods, newest first."""
        document = self.repository.get_document(email)
        foods = _parse_foods(document.get(RECENT_FOODS_FIELD))
        return sorted(foods, key=_consumed_at, reverse=True)[:RECENT_FOODS_LIMIT]

    def add_to_recent_foods(self, email: str, food: Food) -> bool:
        """Add a logged food to the recent list, evicting the oldest beyond ten."""
        entry = food
        if entry.consumption_time is None:
            entry = food.stamped(format_timestamp(self.clock()))
        entry_document = entry.to_document()

        def mutate(document: Document) -> None:
            recent = _entry_list(document, RECENT_FOODS_FIELD)
            if entry_document not in recent:
                recent.append(entry_document)
            while len(recent) > RECENT_FOODS_LIMIT:
                oldest = min(recent, key=_stored_consumed_at)
                recent.remove(oldest)

        return self._write(email, mutate, action="add_to_recent_foods")

    def _write(
        self, email: str, mutate: Callable[[Document], None], *, action: str
    ) -> bool:
        try:
            self.repository.update_document(email, mutate)
        except Exception:
            _logger.exception("Ledger %s failed for %s", action, email)
            return False
        return True


def _meal_name(meal: Meal | str) -> str:
    if isinstance(meal, Meal):
        return meal.value
    return parse_meal(meal).value


def _check_day(day: str) -> None:
    if not is_day_key(day):
        raise ValueError(f"Invalid ledger day {day!r}; expected yy_MM_dd")


def _day_log(document: Document, day: str) -> Document:
    day_log = document.get(day)
    if not isinstance(day_log, dict):
        day_log = {}
        document[day] = day_log
    return day_log


def _entry_list(container: Document, key: str) -> list[object]:
    entries = container.get(key)
    if not isinstance(entries, list):
        entries = []
        container[key] = entries
    return entries


def _add_entry(day_log: Document, bucket: str, food: Food) -> bool:
    """Union the entry into a bucket; identical entries are not duplicated."""
    entries = _entry_list(day_log, bucket)
    entry = food.to_document()
    if entry in entries:
        return False
    entries.append(entry)
    return True


def _remove_entry(day_log: Document, bucket: str, food: Food) -> bool:
    """Remove every exact match of the entry; return True if one existed."""
    entries = day_log.get(bucket)
    if not isinstance(entries, list):
        return False
    entry = food.to_document()
    kept = [existing for existing in entries if existing != entry]
    if len(kept) == len(entries):
        return False
    day_log[bucket] = kept
    return True


def _adjust_intake(day_log: Document, delta: float) -> None:
    stored = day_log.get(PROTEIN_INTAKE_FIELD)
    current = float(stored) if isinstance(stored, int | float) else 0.0
    updated = current + delta
    day_log[PROTEIN_INTAKE_FIELD] = updated if updated > INTAKE_EPSILON else 0.0


def _intake_from(day_log: object) -> float:
    if not isinstance(day_log, dict):
        return 0.0
    stored = day_log.get(PROTEIN_INTAKE_FIELD)
    if isinstance(stored, bool) or not isinstance(stored, int | float):
        return 0.0
    return _round_tenth(float(stored))


def _round_tenth(value: float) -> float:
    """Round half away from zero for non-negative totals; never yields -0.0."""
    return math.floor(value * 10 + 0.5) / 10


def _goal_from(document: Document) -> int | None:
    goal = document.get(PROTEIN_GOAL_FIELD)
    if isinstance(goal, bool) or not isinstance(goal, int):
        return None
    return goal


def _meals_from(day_log: object) -> dict[str, list[Food]]:
    meals: dict[str, list[Food]] = {name: [] for name in MEAL_NAMES}
    if not isinstance(day_log, dict):
        return meals
    for name in MEAL_NAMES:
        meals[name] = _parse_foods(day_log.get(name))
    return meals


def _parse_foods(entries: object) -> list[Food]:
    if not isinstance(entries, list):
        return []
    foods = []
    for entry in entries:
        try:
            foods.append(Food.from_document(entry))
        except (KeyError, TypeError, ValueError):
            _logger.warning("Skipping malformed food entry: %r", entry)
    return foods


def _consumed_at(food: Food) -> datetime:
    return _timestamp_or_min(food.consumption_time)


def _stored_consumed_at(entry: object) -> datetime:
    value = entry.get("consumptionTime") if isinstance(entry, dict) else None
    return _timestamp_or_min(value if isinstance(value, str) else None)


def _timestamp_or_min(value: str | None) -> datetime:
    if value is None:
        return datetime.min
    try:
        return parse_timestamp(value)
    except ValueError:
        return datetime.min
