"""Domain models for foods and their serving measures."""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Measure:
    """A named serving size mapped to a gram mass."""

    expression: str
    mass_grams: float

    def __post_init__(self) -> None:
        if self.mass_grams <= 0:
            raise ValueError(f"Measure mass must be positive, got {self.mass_grams}")

    def to_document(self) -> dict[str, object]:
        """Return the stored representation of the measure."""
        return {"measureExpression": self.expression, "measureMass": self.mass_grams}

    @classmethod
    def from_document(cls, data: dict[str, object]) -> "Measure":
        """Build a measure from its stored representation."""
        return cls(
            expression=str(data["measureExpression"]),
            mass_grams=float(data["measureMass"]),
        )


@dataclass(frozen=True)
class Food:
    """Canonical food with protein density and the chosen serving.

    ``consumption_time`` is only set once the food has been logged; it keeps
    otherwise identical entries distinct in the store.
    """

    name: str
    protein_per_gram: float
    brand_name: str
    measures: tuple[Measure, ...]
    selected_measure: Measure
    multiplier: float = 1.0
    consumption_time: str | None = None

    def __post_init__(self) -> None:
        if not self.measures:
            raise ValueError("Food requires at least one measure")
        if self.multiplier <= 0:
            raise ValueError(f"Multiplier must be positive, got {self.multiplier}")

    @property
    def protein_grams(self) -> float:
        """Protein in the selected serving times the multiplier."""
        return protein_grams(self)

    @property
    def consumed_grams(self) -> float:
        """Total mass consumed."""
        return self.selected_measure.mass_grams * self.multiplier

    def with_serving(self, measure: Measure, multiplier: float) -> "Food":
        """Return a copy with a different serving selection."""
        if measure not in self.measures:
            raise ValueError(f"Measure {measure.expression!r} is not offered")
        return replace(self, selected_measure=measure, multiplier=multiplier)

    def stamped(self, consumption_time: str) -> "Food":
        """Return a copy carrying the given consumption timestamp."""
        return replace(self, consumption_time=consumption_time)

    def to_document(self) -> dict[str, object]:
        """Return the stored representation of the food."""
        return {
            "food": self.name,
            "proteinPerGram": self.protein_per_gram,
            "brandName": self.brand_name,
            "measures": [measure.to_document() for measure in self.measures],
            "selectedMeasure": self.selected_measure.to_document(),
            "multiplier": self.multiplier,
            "consumptionTime": self.consumption_time,
        }

    @classmethod
    def from_document(cls, data: dict[str, object]) -> "Food":
        """Build a food from its stored representation."""
        measures = tuple(
            Measure.from_document(measure) for measure in data.get("measures") or []
        )
        consumption_time = data.get("consumptionTime")
        return cls(
            name=str(data["food"]),
            protein_per_gram=float(data["proteinPerGram"]),
            brand_name=str(data["brandName"]),
            measures=measures,
            selected_measure=Measure.from_document(data["selectedMeasure"]),
            multiplier=float(data["multiplier"]),
            consumption_time=str(consumption_time) if consumption_time else None,
        )


@dataclass(frozen=True)
class SearchHit:
    """Lightweight search result pointing at a resolvable food record."""

    identifier: str
    kind: str
    name: str | None = None


def protein_grams(food: Food) -> float:
    """Return grams of protein consumed for a food entry."""
    return food.protein_per_gram * food.selected_measure.mass_grams * food.multiplier
