from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class DecisionStatus(str, Enum):
    """
    Enumerated validation outcome.

    Using str Enum ensures stable serialization and safe comparisons.
    """

    ALLOW = "ALLOW"
    DENY = "DENY"


@dataclass(frozen=True)
class ValidationDecision:
    """
    Immutable stored-HTML validation record.

    Security invariants
    - Frozen dataclass prevents post-hoc tampering
    - status is a DecisionStatus enum (not free-form text)
    - to_dict returns JSON-safe primitives
    """

    status: DecisionStatus
    rule_id: Optional[str] = None
    reason: Optional[str] = None
    figure_count: int = 0
    metadata: Optional[Dict[str, Any]] = None

    @property
    def allowed(self) -> bool:
        return self.status is DecisionStatus.ALLOW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "rule_id": self.rule_id,
            "reason": self.reason,
            "figure_count": self.figure_count,
            "metadata": dict(self.metadata) if self.metadata else {},
        }
