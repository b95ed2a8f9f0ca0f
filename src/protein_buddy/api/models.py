"""Pydantic request and response bodies for the HTTP API."""

from datetime import date

from pydantic import BaseModel, Field

from protein_buddy.dates import parse_day
from protein_buddy.domain.foods import Food, Measure
from protein_buddy.domain.ledger import DailyIntake, DayLog


class MeasureModel(BaseModel):
    """Serving measure payload."""

    expression: str
    mass_grams: float = Field(gt=0)

    def to_measure(self) -> Measure:
        return Measure(expression=self.expression, mass_grams=self.mass_grams)

    @classmethod
    def from_measure(cls, measure: Measure) -> "MeasureModel":
        return cls(expression=measure.expression, mass_grams=measure.mass_grams)


class FoodModel(BaseModel):
    """Food payload, with the serving currently selected."""

    name: str
    protein_per_gram: float = Field(ge=0)
    brand_name: str
    measures: list[MeasureModel] = Field(min_length=1)
    selected_measure: MeasureModel
    multiplier: float = Field(default=1.0, gt=0)
    consumption_time: str | None = None
    protein_grams: float | None = None

    def to_food(self) -> Food:
        return Food(
            name=self.name,
            protein_per_gram=self.protein_per_gram,
            brand_name=self.brand_name,
            measures=tuple(measure.to_measure() for measure in self.measures),
            selected_measure=self.selected_measure.to_measure(),
            multiplier=self.multiplier,
            consumption_time=self.consumption_time,
        )

    @classmethod
    def from_food(cls, food: Food) -> "FoodModel":
        return cls(
            name=food.name,
            protein_per_gram=food.protein_per_gram,
            brand_name=food.brand_name,
            measures=[MeasureModel.from_measure(measure) for measure in food.measures],
            selected_measure=MeasureModel.from_measure(food.selected_measure),
            multiplier=food.multiplier,
            consumption_time=food.consumption_time,
            protein_grams=food.protein_grams,
        )


class EditFoodRequest(BaseModel):
    """Replace a logged entry with a new serving, optionally in another meal."""

    original: FoodModel
    measure: MeasureModel
    multiplier: float = Field(gt=0)
    new_meal: str | None = None


class DayLogResponse(BaseModel):
    """Foods, intake and goal progress for one day."""

    day: date
    meals: dict[str, list[FoodModel]]
    protein_intake: float
    protein_goal: int | None
    progress_percent: int | None

    @classmethod
    def from_day_log(cls, day_log: DayLog) -> "DayLogResponse":
        return cls(
            day=parse_day(day_log.day),
            meals={
                meal: [FoodModel.from_food(food) for food in foods]
                for meal, foods in day_log.meals.items()
            },
            protein_intake=day_log.protein_intake,
            protein_goal=day_log.protein_goal,
            progress_percent=day_log.progress_percent,
        )


class DailyIntakeModel(BaseModel):
    """One calendar entry of the history view."""

    day: date
    protein_intake: float
    food_count: int

    @classmethod
    def from_daily_intake(cls, intake: DailyIntake) -> "DailyIntakeModel":
        return cls(
            day=parse_day(intake.day),
            protein_intake=intake.protein_intake,
            food_count=intake.food_count,
        )


class ProteinGoalModel(BaseModel):
    """Stored daily protein goal in grams."""

    grams: int | None


class SetProteinGoalRequest(BaseModel):
    """New daily protein goal in grams."""

    grams: int = Field(gt=0)


class GoalCalculationRequest(BaseModel):
    """Body measurements and activity level for the goal calculator."""

    height_m: float = Field(gt=0)
    weight_kg: float = Field(gt=0)
    activity: float = Field(ge=0, le=1)


class GoalCalculationResponse(BaseModel):
    """Suggested goal for the given measurements."""

    grams: int
    activity_label: str
