"""Protein goal calculator and progress helpers."""

BMI_THRESHOLD = 24.9
POUNDS_PER_KG = 2.2


def calculate_protein_goal(height_m: float, weight_kg: float, activity: float) -> int:
    """Return a daily protein goal in grams.

    ``activity`` is a 0-1 slider value. Below the BMI threshold the goal scales
    body weight in pounds by 0.8, 1.0 or 1.2 with activity; at or above it the
    least active band uses height in centimetres instead.
    """
    if height_m <= 0 or weight_kg <= 0:
        raise ValueError("Height and weight must be positive")
    if not 0.0 <= activity <= 1.0:
        raise ValueError("Activity must be between 0 and 1")

    weight_lb = weight_kg * POUNDS_PER_KG
    bmi = weight_kg / (height_m * height_m)
    if bmi < BMI_THRESHOLD:
        if activity < 0.25:  # noqa: PLR2004
            return int(weight_lb * 0.8)
        if activity < 0.75:  # noqa: PLR2004
            return int(weight_lb * 1.0)
        return int(weight_lb * 1.2)
    if activity < 0.33:  # noqa: PLR2004
        return int(round(height_m * 100, 6))
    if activity < 0.66:  # noqa: PLR2004
        return int(weight_lb * 1.0)
    return int(weight_lb * 1.2)


def activity_label(activity: float) -> str:
    """Describe a 0-1 activity slider value."""
    if activity < 0.33:  # noqa: PLR2004
        return "less active"
    if activity < 0.66:  # noqa: PLR2004
        return "moderately active"
    return "very active"


def progress_percent(protein_grams: float, goal: int | None) -> int | None:
    """Return the share of the goal reached, or None when no goal is set."""
    if goal is None or goal <= 0:
        return None
    return int(protein_grams / goal * 100)
