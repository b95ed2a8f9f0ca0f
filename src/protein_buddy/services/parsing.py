"""Provider payload models and normalization into canonical foods.

FatSecret and Nutritionix describe the same thing, a food with a list of
servings, in different shapes. The pydantic models below validate the fields
we rely on. The food parsers return None whenever a payload cannot produce a
food with a usable measure; the search parsers raise ``ProviderResponseError``
so that callers can tell a failed search from an empty one.
"""

import logging

from pydantic import BaseModel, Field, ValidationError, field_validator

from protein_buddy.domain.foods import Food, Measure, SearchHit

_logger = logging.getLogger(__name__)

UNBRANDED = "unbranded"


class ProviderResponseError(ValueError):
    """Raised when a search payload is an error body or cannot be decoded."""


def _one_or_many(value: object) -> object:
    """Wrap a lone object in a list; FatSecret collapses 1-element arrays."""
    if value is None:
        return []
    if isinstance(value, dict):
        return [value]
    return value


class FatSecretServing(BaseModel):
    """Single serving option of a FatSecret food."""

    serving_description: str | None = None
    metric_serving_amount: float | None = None
    metric_serving_unit: str | None = None
    number_of_units: float | None = None
    measurement_description: str
    protein: float | None = None


class FatSecretServings(BaseModel):
    """Servings container; ``serving`` is an object or an array upstream."""

    serving: list[FatSecretServing] = []

    @field_validator("serving", mode="before")
    @classmethod
    def _wrap_single_serving(cls, value: object) -> object:
        return _one_or_many(value)


class FatSecretFoodDetail(BaseModel):
    """Detailed FatSecret food record."""

    food_id: str
    food_name: str
    brand_name: str | None = None
    servings: FatSecretServings


class FatSecretFoodResponse(BaseModel):
    """Response of the food detail and barcode endpoints."""

    food: FatSecretFoodDetail


class FatSecretSearchItem(BaseModel):
    """Search result row."""

    food_id: str
    food_name: str
    brand_name: str | None = None
    food_type: str | None = None


class FatSecretFoodList(BaseModel):
    """Search results container; ``food`` is absent when nothing matched."""

    food: list[FatSecretSearchItem] = []

    @field_validator("food", mode="before")
    @classmethod
    def _wrap_single_food(cls, value: object) -> object:
        return _one_or_many(value)


class FatSecretSearchResponse(BaseModel):
    """Response of the foods search endpoint."""

    foods: FatSecretFoodList = Field(default_factory=FatSecretFoodList)


class NutritionixCommonItem(BaseModel):
    """Common (generic) instant-search result."""

    food_name: str


class NutritionixBrandedItem(BaseModel):
    """Branded instant-search result."""

    nix_item_id: str
    food_name: str | None = None


class NutritionixInstantResponse(BaseModel):
    """Response of the instant search endpoint."""

    common: list[NutritionixCommonItem] = []
    branded: list[NutritionixBrandedItem] = []


class NutritionixAltMeasure(BaseModel):
    """Alternative measure of a Nutritionix food."""

    serving_weight: float | None = None
    qty: float | None = None
    measure: str


class NutritionixFood(BaseModel):
    """Nutrient record of a Nutritionix food."""

    food_name: str
    brand_name: str | None = None
    nf_protein: float | None = None
    serving_qty: float | None = None
    serving_unit: str | None = None
    serving_weight_grams: float | None = None
    alt_measures: list[NutritionixAltMeasure] | None = None


class NutritionixFoodsResponse(BaseModel):
    """Response of the nutrients and item endpoints."""

    foods: list[NutritionixFood]


def parse_fatsecret_search(payload: object) -> list[SearchHit]:
    """Return search hits in server order.

    Raises ProviderResponseError for error bodies and malformed payloads so a
    failed search is never mistaken for one that matched nothing.
    """
    _raise_for_error_body(payload, "error", "FatSecret")
    try:
        response = FatSecretSearchResponse.model_validate(payload)
    except ValidationError as exc:
        raise ProviderResponseError(
            f"Malformed FatSecret search response: {exc}"
        ) from exc
    return [
        SearchHit(
            identifier=item.food_id,
            kind=(item.food_type or "generic").lower(),
            name=item.food_name.lower(),
        )
        for item in response.foods.food
    ]


def parse_fatsecret_food(payload: object) -> Food | None:
    """Normalize a FatSecret detail or barcode response into a food."""
    try:
        detail = FatSecretFoodResponse.model_validate(payload).food
    except ValidationError as exc:
        _logger.warning("Malformed FatSecret food response: %s", exc)
        return None

    measures: list[Measure] = []
    protein_per_gram: float | None = None
    for serving in detail.servings.serving:
        grams = serving.metric_serving_amount
        if grams is None or grams <= 0:
            continue
        expression = _expression(
            serving.number_of_units, serving.measurement_description
        )
        measure = Measure(expression=expression, mass_grams=grams)
        if not measures:
            if serving.protein is None:
                return None
            protein_per_gram = serving.protein / grams
        if measure not in measures:
            measures.append(measure)

    if not measures or protein_per_gram is None:
        return None
    return Food(
        name=detail.food_name.lower(),
        protein_per_gram=protein_per_gram,
        brand_name=(detail.brand_name or UNBRANDED).lower(),
        measures=tuple(measures),
        selected_measure=measures[0],
    )


def parse_nutritionix_search(payload: object) -> list[SearchHit]:
    """Return common hits followed by branded hits, each in server order."""
    _raise_for_error_body(payload, "message", "Nutritionix")
    try:
        response = NutritionixInstantResponse.model_validate(payload)
    except ValidationError as exc:
        raise ProviderResponseError(
            f"Malformed Nutritionix search response: {exc}"
        ) from exc
    hits = [
        SearchHit(identifier=item.food_name, kind="common", name=item.food_name.lower())
        for item in response.common
    ]
    hits.extend(
        SearchHit(
            identifier=item.nix_item_id,
            kind="branded",
            name=item.food_name.lower() if item.food_name else None,
        )
        for item in response.branded
    )
    return hits


def parse_nutritionix_food(payload: object) -> Food | None:
    """Normalize the first food of a Nutritionix nutrients/item response."""
    try:
        foods = NutritionixFoodsResponse.model_validate(payload).foods
    except ValidationError as exc:
        _logger.warning("Malformed Nutritionix food response: %s", exc)
        return None
    if not foods:
        return None
    food = foods[0]

    grams = food.serving_weight_grams
    if grams is None or grams <= 0 or food.nf_protein is None:
        return None
    primary = Measure(
        expression=_expression(food.serving_qty, food.serving_unit or "serving"),
        mass_grams=grams,
    )
    measures = [primary]
    for alt in food.alt_measures or []:
        if alt.serving_weight is None or alt.serving_weight <= 0:
            continue
        measure = Measure(
            expression=_expression(alt.qty, alt.measure), mass_grams=alt.serving_weight
        )
        if measure not in measures:
            measures.append(measure)

    return Food(
        name=food.food_name.lower(),
        protein_per_gram=food.nf_protein / grams,
        brand_name=(food.brand_name or UNBRANDED).lower(),
        measures=tuple(measures),
        selected_measure=primary,
    )


def _expression(count: float | None, unit: str) -> str:
    quantity = f"{count:g}" if count is not None else "1"
    return f"{quantity} {unit}".strip().lower()


def _raise_for_error_body(payload: object, key: str, provider: str) -> None:
    if isinstance(payload, dict) and key in payload:
        raise ProviderResponseError(f"{provider} returned an error: {payload[key]}")
