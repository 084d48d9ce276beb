"""Engine layer: goal ledger, badge registry, verdict admission."""

from timevault.engine.admission import OracleSigner, build_admission
from timevault.engine.badge_registry import BadgeRegistry
from timevault.engine.goal_ledger import GoalLedger

__all__ = ["BadgeRegistry", "GoalLedger", "OracleSigner", "build_admission"]
