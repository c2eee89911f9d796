"""Feature flags for free and Pro accounts.

The calculation engine never checks these; callers decide whether to offer
features such as advanced analytics before invoking it.

Example
-------

>>> ent = get_entitlements(is_authenticated=True, is_pro_user=False)
>>> ent["scenario_limit"], has_entitlement(ent, ADVANCED_ANALYTICS)
(3, False)
"""

from __future__ import annotations

from typing import Any, Dict, Optional

UNLIMITED_SCENARIOS = "unlimited_scenarios"
PDF_EXPORT = "pdf_export"
SCENARIO_COMPARE = "scenario_compare"
ADVANCED_ANALYTICS = "advanced_analytics"
AI_INSIGHTS = "ai_insights"

FEATURES = (UNLIMITED_SCENARIOS, PDF_EXPORT, SCENARIO_COMPARE, ADVANCED_ANALYTICS, AI_INSIGHTS)

DEFAULT_FREE_SCENARIO_LIMIT = 3


def get_entitlements(is_authenticated: bool = False, is_pro_user: bool = False) -> Dict[str, Any]:
    """Pro features require both a signed-in user and an active Pro plan.

    ``scenario_limit`` is ``None`` when the number of scenarios is unlimited.
    """
    pro = bool(is_authenticated and is_pro_user)
    return {
        "is_authenticated": bool(is_authenticated),
        "is_pro": pro,
        "scenario_limit": None if pro else DEFAULT_FREE_SCENARIO_LIMIT,
        "features": {f: pro for f in FEATURES},
    }


def has_entitlement(entitlements: Optional[Dict[str, Any]], feature: str) -> bool:
    return bool(((entitlements or {}).get("features") or {}).get(feature))


__all__ = ["FEATURES", "DEFAULT_FREE_SCENARIO_LIMIT", "get_entitlements", "has_entitlement"]
