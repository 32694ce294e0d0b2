"""Migration orchestrator -- one module upgrade run.

Sequence:
    discover -> translate (collecting failures) -> capture current schema
    -> diff -> report failures -> stop if nothing differs -> confirmation
    gate -> apply statements one by one.

Translation failures never stop the run; they are returned with the
result.  A missing current snapshot (``SnapshotUnavailableError``) or a
missing module (``DiscoveryError``) propagates before any statement is
applied.

Usage:
    from module_upgrade.migration.orchestrator import upgrade_database

    async with SchemaIntrospector(url) as introspector:
        result = await upgrade_database(
            "blog",
            JsonDefinitionDiscovery("definitions"),
            introspector,
            adapter,
            confirm=lambda plan: input("Apply? ") == "y",
        )
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from module_upgrade.definitions.discovery import ModelDiscoveryService
from module_upgrade.migration.executor import MigrationResult, ProgressCallback, apply_plan
from module_upgrade.schema.differ import MigrationPlan, diff
from module_upgrade.schema.naming import NamingConvention, default_naming
from module_upgrade.schema.snapshot import (
    SnapshotSource,
    TranslationFailure,
    build_target,
    capture_current,
)

if TYPE_CHECKING:
    from module_upgrade.adapters.base import DatabaseClient

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[MigrationPlan], bool]


class UpgradeStatus(str, Enum):
    """How an upgrade run ended."""

    NO_MODELS = "no-models"
    NO_DIFFERENCES = "no-differences"
    PLANNED = "planned"
    DECLINED = "declined"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass
class UpgradeResult:
    """Outcome of ``upgrade_database()``.

    Attributes:
        module: Module that was upgraded.
        status: How the run ended.
        definitions: Number of discovered definitions.
        failures: Models that could not be translated (non-fatal).
        plan: Computed migration plan (empty when nothing differs).
        migration: Executor result, only when statements were applied.
    """

    module: str
    status: UpgradeStatus
    definitions: int = 0
    failures: list[TranslationFailure] = field(default_factory=list)
    plan: MigrationPlan = field(default_factory=MigrationPlan)
    migration: MigrationResult | None = None

    @property
    def success(self) -> bool:
        return self.status != UpgradeStatus.FAILED


async def upgrade_database(
    module: str,
    discovery: ModelDiscoveryService,
    snapshot_source: SnapshotSource,
    client: "DatabaseClient",
    naming: NamingConvention = default_naming,
    schema_name: str = "public",
    confirm: bool | ConfirmCallback = False,
    dry_run: bool = False,
    on_progress: ProgressCallback | None = None,
) -> UpgradeResult:
    """Reconcile the database schema with a module's model definitions.

    Args:
        module: Module (model group) identifier passed to discovery.
        discovery: Returns the module's raw definitions.
        snapshot_source: Introspection collaborator (already connected).
        client: Database client used to apply statements.
        naming: Table naming convention.
        schema_name: Schema qualifying every table.
        confirm: ``True`` to apply without asking, ``False`` to decline, or
            a callback receiving the plan and returning the decision.
        dry_run: Compute the plan but never ask nor apply.
        on_progress: Forwarded to the executor.

    Returns:
        ``UpgradeResult`` describing the run.

    Raises:
        DiscoveryError: If the module cannot be located.
        SnapshotUnavailableError: If the current schema cannot be captured.
    """
    definitions = discovery.discover(module)
    logger.info("Detected %d model definitions for %s", len(definitions), module)
    if not definitions:
        logger.info("No model definitions found for %s, halting", module)
        return UpgradeResult(module=module, status=UpgradeStatus.NO_MODELS)

    target, failures = build_target(definitions, naming=naming, schema_name=schema_name)
    current = await capture_current(snapshot_source)
    plan = diff(current, target)

    result = UpgradeResult(
        module=module,
        status=UpgradeStatus.PLANNED,
        definitions=len(definitions),
        failures=failures,
        plan=plan,
    )
    if failures:
        logger.warning("%d of %d definitions could not be read", len(failures), len(definitions))

    if not plan.has_steps:
        logger.info("No differences detected for %s", module)
        result.status = UpgradeStatus.NO_DIFFERENCES
        return result

    if dry_run:
        return result

    confirmed = confirm if isinstance(confirm, bool) else confirm(plan)
    if not confirmed:
        logger.info("Migration of %s declined, no statements applied", module)
        result.status = UpgradeStatus.DECLINED
        return result

    logger.info("Executing %d statements without deletes or drops", plan.step_count)
    result.migration = await apply_plan(client, plan, confirm=True, on_progress=on_progress)
    result.status = UpgradeStatus.APPLIED if result.migration.success else UpgradeStatus.FAILED
    return result
