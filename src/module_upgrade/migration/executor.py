"""Migration executor -- apply a plan one statement at a time.

Statements are executed sequentially through the
``DatabaseClient.execute()`` Protocol method.  There is no transaction
spanning the plan: each statement commits on its own, a failing
statement is recorded against its step, and the remaining steps still
run.

Usage:
    from module_upgrade.migration.executor import apply_plan

    result = await apply_plan(adapter, plan, confirm=True)
    if not result.success:
        for outcome in result.failures:
            print(outcome.sql, outcome.error)
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from module_upgrade.schema.differ import MigrationPlan, MigrationStep

if TYPE_CHECKING:
    from module_upgrade.adapters.base import DatabaseClient

logger = logging.getLogger(__name__)

# on_progress(event, step, position, total); event is "started",
# "completed" or "failed", position is 1-based
ProgressCallback = Callable[[str, MigrationStep, int, int], None]


class StepOutcome(BaseModel):
    """Outcome of one applied statement."""

    position: int
    kind: str
    table: str
    sql: str
    success: bool
    error: str | None = None


class MigrationResult(BaseModel):
    """Result of applying a migration plan.

    Attributes:
        success: True if every statement was applied.
        aborted: True if the plan was not confirmed (nothing applied).
        applied: Number of statements applied.
        failed: Number of statements that raised.
        outcomes: Per-statement outcomes in plan order.
        error: Summary error message.
    """

    success: bool = False
    aborted: bool = False
    applied: int = 0
    failed: int = 0
    outcomes: list[StepOutcome] = Field(default_factory=list)
    error: str | None = None

    @property
    def failures(self) -> list[StepOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]


async def apply_plan(
    client: "DatabaseClient",
    plan: MigrationPlan,
    confirm: bool = False,
    on_progress: ProgressCallback | None = None,
) -> MigrationResult:
    """Apply every step of *plan* in order.

    Args:
        client: Database adapter implementing ``DatabaseClient`` Protocol.
        plan: Plan from ``diff()``.
        confirm: Must be True to apply anything (all-or-nothing gate).
        on_progress: Optional callback invoked when a step starts,
            completes, or fails.

    Returns:
        ``MigrationResult`` with one ``StepOutcome`` per executed step.

    Raises:
        RuntimeError: If the adapter does not support DDL operations
            (raises ``NotImplementedError`` on ``execute()``).
    """
    result = MigrationResult()

    if not plan.has_steps:
        result.success = True
        return result

    if not confirm:
        result.aborted = True
        result.error = "Migration requires confirm=True"
        return result

    total = plan.step_count
    for position, step in enumerate(plan.steps, start=1):
        if on_progress is not None:
            on_progress("started", step, position, total)

        sql = step.to_sql()
        logger.debug("Executing [%d/%d] %s", position, total, sql)
        try:
            await client.execute(sql)
        except NotImplementedError:
            raise RuntimeError("DDL operations not supported for this adapter type")
        except Exception as e:
            logger.error("Statement %d/%d failed: %s -- %s", position, total, sql, e)
            result.failed += 1
            result.outcomes.append(
                StepOutcome(
                    position=position,
                    kind=step.kind.value,
                    table=step.table,
                    sql=sql,
                    success=False,
                    error=str(e),
                )
            )
            if on_progress is not None:
                on_progress("failed", step, position, total)
            continue

        result.applied += 1
        result.outcomes.append(
            StepOutcome(
                position=position,
                kind=step.kind.value,
                table=step.table,
                sql=sql,
                success=True,
            )
        )
        if on_progress is not None:
            on_progress("completed", step, position, total)

    result.success = result.failed == 0
    if not result.success:
        result.error = f"{result.failed} of {total} statements failed"
    return result
