import math
from typing import Dict, Optional

from ..calculators.numbers import coerce_finite_number


def _median(band: Optional[Dict]) -> Optional[float]:
    if not isinstance(band, dict):
        return None
    value = coerce_finite_number(band.get("p50"), fallback=float("nan"))
    return None if math.isnan(value) else value


def generate_insights(results: Dict) -> str:
    """Return a short plain-language insight about Monte Carlo results.

    ``results`` is the dict returned by
    :func:`fedplanner.calculators.monte_carlo.simulate` (or just its
    ``outcomes``).  The message is rule based, so it works offline and in tests.
    """
    results = results or {}
    if results.get("applicable") is False:
        return "Set a FIRE income goal or monthly expenses to analyze this plan."

    outcomes = results.get("outcomes", results)
    inputs = results.get("inputs", {})
    success = coerce_finite_number(outcomes.get("probability_funds_last_to_end_age"), min_value=0.0, max_value=1.0)
    fire_prob = coerce_finite_number(outcomes.get("probability_fire_by_desired_age"), min_value=0.0, max_value=1.0)
    desired_age = inputs.get("desired_fire_age")
    at_age = f"at age {desired_age:g}" if isinstance(desired_age, (int, float)) else "at your desired FIRE age"

    if success >= 0.85:
        outlook = "Your plan has a high chance of success"
    elif success >= 0.6:
        outlook = "Your plan has a moderate chance of success"
    else:
        outlook = "Your plan may be at risk"

    text = (
        f"{outlook}: funds last in {success*100:.0f}% of simulations, "
        f"and passive income meets the goal {at_age} in {fire_prob*100:.0f}%."
    )
    median = _median(outcomes.get("balance_at_desired_fire_age"))
    if median is not None:
        text += f" Median projected TSP balance {at_age} is ${median:,.0f}."
    return text
