"""FERS basic annuity (pension) calculator.

The FERS annuity is ``high-3 salary × years of service × multiplier`` where
the multiplier is 1.1% for employees retiring at 62 or later with at least 20
years of service and 1.0% otherwise.

Regular retirement eligibility is evaluated in priority order:

* **Unreduced immediate** – age 62 with 5 years, age 60 with 20 years, or
  MRA with 30 years.
* **MRA+10 (reduced immediate)** – MRA with 10 years when not unreduced.
* **Deferred** – at least 5 years of service otherwise.
* **Ineligible** – everything else.

The MRA+10 reduction is modelled as a flat 5% for every year the annuity
starts before age 62, a simplification of the OPM reduction rules.

Example
-------

>>> pension_multiplier(62, 20)
0.011
>>> mra10_reduction_percent(57, mra=57)
25.0
>>> regular_eligibility(58, 12, mra=57).status.value
'mra_10'
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from .numbers import coerce_finite_number

DEFAULT_RETIREMENT_END_AGE = 85
DEFAULT_MRA = 57
DEFAULT_DEFERRED_YEARS = 20
DEFAULT_MAX_AGE_TO_CHECK = 70

ENHANCED_MULTIPLIER = 0.011
STANDARD_MULTIPLIER = 0.01
REDUCTION_PER_YEAR = 5.0


class EligibilityStatus(enum.Enum):
    UNREDUCED = "unreduced"
    MRA_10 = "mra_10"
    DEFERRED = "deferred"
    INELIGIBLE = "ineligible"


@dataclass(frozen=True)
class EligibilityVerdict:
    """Outcome of :func:`regular_eligibility` for one (age, service) pair."""

    age: float
    total_years_of_service: float
    mra: float
    status: EligibilityStatus
    reduction_percent: float = 0.0
    messages: Tuple[str, ...] = ()

    @property
    def is_eligible_immediate_unreduced(self) -> bool:
        return self.status is EligibilityStatus.UNREDUCED

    @property
    def is_eligible_immediate_mra10(self) -> bool:
        return self.status is EligibilityStatus.MRA_10

    @property
    def is_eligible_immediate(self) -> bool:
        return self.status in (EligibilityStatus.UNREDUCED, EligibilityStatus.MRA_10)

    @property
    def is_eligible_deferred(self) -> bool:
        return self.status is EligibilityStatus.DEFERRED

    @property
    def is_ineligible(self) -> bool:
        return self.status is EligibilityStatus.INELIGIBLE

    def to_dict(self) -> Dict:
        return {
            "age": self.age,
            "total_years_of_service": self.total_years_of_service,
            "mra": self.mra,
            "status": self.status.value,
            "reduction_percent": self.reduction_percent,
            "messages": list(self.messages),
        }


def pension_multiplier(retirement_age: float, total_years_of_service: float) -> float:
    age = coerce_finite_number(retirement_age)
    years = coerce_finite_number(total_years_of_service)
    if age >= 62 and years >= 20:
        return ENHANCED_MULTIPLIER
    return STANDARD_MULTIPLIER


def mra10_reduction_percent(annuity_start_age: float, mra: float = DEFAULT_MRA) -> float:
    """Simplified MRA+10 reduction: 5% per year the annuity starts before 62."""
    start = coerce_finite_number(annuity_start_age)
    mra_age = coerce_finite_number(mra, DEFAULT_MRA)
    if start <= 0 or start >= 62 or start < mra_age:
        return 0.0
    return max(0.0, (62 - start) * REDUCTION_PER_YEAR)


def regular_eligibility(
    age: float,
    total_years_of_service: float,
    mra: float = DEFAULT_MRA,
) -> EligibilityVerdict:
    """Classify ``(age, years of service)`` into exactly one eligibility state."""
    a = coerce_finite_number(age)
    y = coerce_finite_number(total_years_of_service)
    mra_age = coerce_finite_number(mra, DEFAULT_MRA)

    unreduced = (a >= 62 and y >= 5) or (a >= 60 and y >= 20) or (a >= mra_age and y >= 30)
    reduction = 0.0
    if unreduced:
        status = EligibilityStatus.UNREDUCED
        messages = ["Eligible for immediate retirement (unreduced annuity)"]
    elif a >= mra_age and y >= 10:
        status = EligibilityStatus.MRA_10
        reduction = mra10_reduction_percent(a, mra_age)
        messages = [
            f"Eligible for immediate retirement under MRA+10 (simplified reduction: ~{reduction:.1f}%)",
            "Postponing the annuity start reduces or eliminates the reduction.",
        ]
    elif y >= 5:
        status = EligibilityStatus.DEFERRED
        messages = ["Not eligible for immediate retirement; may be eligible for deferred retirement."]
    else:
        status = EligibilityStatus.INELIGIBLE
        messages = ["Not eligible yet (needs at least 5 years of service for deferred options)."]

    return EligibilityVerdict(
        age=a,
        total_years_of_service=y,
        mra=mra_age,
        status=status,
        reduction_percent=reduction,
        messages=tuple(messages),
    )


def earliest_immediate_retirement_age(
    current_age: float,
    current_years_of_service: float,
    mra: float = DEFAULT_MRA,
    max_age_to_check: float = DEFAULT_MAX_AGE_TO_CHECK,
) -> Optional[int]:
    """First whole age at which an immediate annuity (unreduced or MRA+10) is available.

    Service is assumed to accrue one year per year of age.  Returns ``None``
    when no such age exists up to ``max_age_to_check``.
    """
    age_now = coerce_finite_number(current_age)
    years_now = coerce_finite_number(current_years_of_service)
    max_age = coerce_finite_number(max_age_to_check, DEFAULT_MAX_AGE_TO_CHECK)
    if age_now <= 0 or max_age < age_now:
        return None

    for a in range(int(math.ceil(age_now)), int(math.floor(max_age)) + 1):
        projected = years_now + max(0.0, a - age_now)
        if regular_eligibility(a, projected, mra).is_eligible_immediate:
            return a
    return None


def annual_pension(high3_salary: float, total_years_of_service: float, retirement_age: float) -> Dict[str, float]:
    multiplier = pension_multiplier(retirement_age, total_years_of_service)
    annual = (coerce_finite_number(high3_salary, min_value=0.0)
              * coerce_finite_number(total_years_of_service, min_value=0.0) * multiplier)
    return {"annual_pension": annual, "monthly_pension": annual / 12, "multiplier": multiplier}


def pension_results(
    years_of_service: float,
    months_of_service: float,
    high3_salary: float,
    current_age: float,
    retirement_age: float,
    comparison: Optional[Mapping] = None,
    include_future_service: bool = False,
    retirement_end_age: float = DEFAULT_RETIREMENT_END_AGE,
    mra: float = DEFAULT_MRA,
    deferred_years_assumption: float = DEFAULT_DEFERRED_YEARS,
) -> Dict:
    """Compare staying federal to the planned age with leaving early.

    Parameters
    ----------
    years_of_service, months_of_service : float
        Creditable service to date.
    high3_salary : float
        Average of the highest three consecutive years of basic pay.
    current_age, retirement_age : float
        Age today and the planned retirement age.
    comparison : mapping, optional
        ``{"private_job_salary", "private_job_years"}`` for the hypothetical
        private-sector departure.  The break-even age is only computed when
        this is supplied.
    include_future_service : bool, optional
        Add the years between ``current_age`` and ``retirement_age`` to the
        service total.
    retirement_end_age : float, optional
        Age the pension is assumed to stop (life expectancy proxy).
    mra : float, optional
        Minimum retirement age; the deferred annuity starts here.
    deferred_years_assumption : float, optional
        Service years credited in the leave-early path, paid at 1.0%.

    Returns
    -------
    dict
        ``total_years``, ``projected_years``, ``stay_federal`` and
        ``leave_early`` sub-dicts.
    """
    total_years = (coerce_finite_number(years_of_service, min_value=0.0)
                   + coerce_finite_number(months_of_service, min_value=0.0) / 12)
    age_now = coerce_finite_number(current_age, min_value=0.0)
    retire_age = coerce_finite_number(retirement_age, min_value=0.0)
    end_age = coerce_finite_number(retirement_end_age, DEFAULT_RETIREMENT_END_AGE)
    mra_age = coerce_finite_number(mra, DEFAULT_MRA)
    high3 = coerce_finite_number(high3_salary, min_value=0.0)

    projected_years = total_years + max(0.0, retire_age - age_now) if include_future_service else total_years

    pension = annual_pension(high3, projected_years, retire_age)
    lifetime_pension = pension["annual_pension"] * max(0.0, end_age - retire_age)
    verdict = regular_eligibility(retire_age, projected_years, mra_age)

    working_years = max(0.0, retire_age - age_now)
    total_lifetime_earnings = working_years * high3 + lifetime_pension

    # Leave early: deferred annuity at the standard multiplier, starting at MRA.
    deferred_years = coerce_finite_number(deferred_years_assumption, DEFAULT_DEFERRED_YEARS, min_value=0.0)
    deferred_pension = high3 * deferred_years * STANDARD_MULTIPLIER
    lifetime_deferred = deferred_pension * max(0.0, end_age - mra_age)

    comp = comparison if isinstance(comparison, Mapping) else {}
    private_earnings = (coerce_finite_number(comp.get("private_job_years"), min_value=0.0)
                        * coerce_finite_number(comp.get("private_job_salary"), min_value=0.0))
    leave_early_earnings = deferred_years * high3 + private_earnings + lifetime_deferred

    break_even_age = 0.0
    if comparison is not None:
        annual_difference = pension["annual_pension"] - deferred_pension
        earnings_gap = leave_early_earnings - total_lifetime_earnings
        if annual_difference > 0 and earnings_gap > 0:
            break_even_age = retire_age + earnings_gap / annual_difference

    return {
        "total_years": total_years,
        "projected_years": projected_years,
        "stay_federal": {
            "annual_pension": pension["annual_pension"],
            "monthly_pension": pension["monthly_pension"],
            "multiplier": pension["multiplier"],
            "lifetime_pension": lifetime_pension,
            "eligibility": verdict.to_dict(),
            "is_eligible": verdict.is_eligible_immediate_unreduced,
            "eligibility_message": verdict.messages[0],
            "total_lifetime_earnings": total_lifetime_earnings,
        },
        "leave_early": {
            "deferred_pension": deferred_pension,
            "mra": mra_age,
            "lifetime_deferred": lifetime_deferred,
            "total_lifetime_earnings": leave_early_earnings,
            "break_even_age": break_even_age,
        },
    }


def scenario_pension_start_age(scenario, retirement_age: Optional[float] = None) -> float:
    """Age the annuity starts for ``scenario``.

    The FIRE record's ``pension_start_age`` wins when it is set and positive;
    otherwise the annuity starts at ``retirement_age`` (the FERS retirement
    age when omitted).
    """
    start = coerce_finite_number(getattr(scenario.fire, "pension_start_age", None), min_value=0.0)
    if start > 0:
        return start
    if retirement_age is None:
        retirement_age = scenario.fers.retirement_age
    return coerce_finite_number(retirement_age, min_value=0.0)


def pension_from_scenario(scenario) -> Dict[str, float]:
    """Monthly pension (future service included) and its start age for a scenario."""
    f = scenario.fers
    res = pension_results(
        years_of_service=f.years_of_service,
        months_of_service=f.months_of_service,
        high3_salary=f.high3_salary,
        current_age=f.current_age,
        retirement_age=f.retirement_age,
        include_future_service=True,
        retirement_end_age=scenario.summary.pension_end_age,
        mra=f.mra,
    )
    return {
        "pension_monthly": res["stay_federal"]["monthly_pension"],
        "pension_start_age": scenario_pension_start_age(scenario),
    }


__all__ = [
    "DEFAULT_MRA",
    "DEFAULT_RETIREMENT_END_AGE",
    "EligibilityStatus",
    "EligibilityVerdict",
    "pension_multiplier",
    "mra10_reduction_percent",
    "regular_eligibility",
    "earliest_immediate_retirement_age",
    "annual_pension",
    "pension_results",
    "scenario_pension_start_age",
    "pension_from_scenario",
]
