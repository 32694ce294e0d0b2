"""Migration execution and orchestration.

Usage:
    from module_upgrade.migration import apply_plan, upgrade_database
"""

from module_upgrade.migration.executor import MigrationResult, StepOutcome, apply_plan
from module_upgrade.migration.orchestrator import UpgradeResult, UpgradeStatus, upgrade_database

__all__ = [
    "apply_plan",
    "MigrationResult",
    "StepOutcome",
    "upgrade_database",
    "UpgradeResult",
    "UpgradeStatus",
]
