"""Reward redemption domain helpers."""

from .eligibility import (  # noqa: F401
    EligibilityDecision,
    IneligibilityReason,
    evaluate,
    list_eligibility,
)
from .privileges import (  # noqa: F401
    UNRANKED,
    PrivilegeHierarchy,
    dominates,
    get_privilege_hierarchy,
    rank,
)
from .quantity import max_quantity, total_cost  # noqa: F401
