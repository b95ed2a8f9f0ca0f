"""Domain models for the daily food ledger."""

from dataclasses import dataclass
from enum import Enum

from protein_buddy.domain.foods import Food


class Meal(Enum):
    """Meal buckets of a ledger day, in display order."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACKS = "snacks"


MEAL_NAMES: tuple[str, ...] = tuple(meal.value for meal in Meal)
RECENT_FOODS_LIMIT = 10
PROTEIN_INTAKE_FIELD = "proteinIntake"
PROTEIN_GOAL_FIELD = "proteinGoal"
RECENT_FOODS_FIELD = "recentFoods"


def parse_meal(value: str) -> Meal:
    """Return the meal for a bucket name, case-insensitively."""
    try:
        return Meal(value.strip().lower())
    except ValueError as exc:
        raise ValueError(
            f"Unknown meal {value!r}; expected one of {', '.join(MEAL_NAMES)}"
        ) from exc


@dataclass(frozen=True)
class DayLog:
    """Foods grouped by meal for one day, with intake and goal progress."""

    day: str
    meals: dict[str, list[Food]]
    protein_intake: float
    protein_goal: int | None
    progress_percent: int | None


@dataclass(frozen=True)
class DailyIntake:
    """Protein intake total for one logged day."""

    day: str
    protein_intake: float
    food_count: int
