"""Schema differ -- compute a non-destructive migration plan.

Compares the current snapshot against the target snapshot and emits an
ordered list of additive or alterative statements.  Nothing that exists
only in the current snapshot is ever dropped: extra tables, columns and
indexes are left alone.

Usage:
    from module_upgrade.schema.differ import diff

    plan = diff(current_snapshot, target_snapshot)
    for step in plan.steps:
        print(step.to_sql())

Ordering:
    1. CREATE TABLE for every target table missing from current, in
       target order.
    2. For every table present in both, in target order: ADD COLUMN,
       then ALTER COLUMN, then CREATE UNIQUE INDEX.
"""

from dataclasses import dataclass, field
from enum import Enum

from module_upgrade.errors import SnapshotUnavailableError
from module_upgrade.schema.models import SchemaSnapshot, TableSchema
from module_upgrade.schema.sql import (
    add_column_sql,
    alter_column_sql,
    create_table_sql,
    create_unique_index_sql,
)


# ------------------------------------------------------------------
# Plan data classes
# ------------------------------------------------------------------


class StepKind(str, Enum):
    """Intent of a migration step."""

    CREATE_TABLE = "create-table"
    ADD_COLUMN = "add-column"
    ALTER_COLUMN = "alter-column"
    ADD_INDEX = "add-index"


@dataclass(frozen=True)
class MigrationStep:
    """One SQL statement of a migration plan.

    Example:
        step = MigrationStep(StepKind.ADD_COLUMN, "foo", "ALTER TABLE ...;", column="name")
        step.to_sql()
        # 'ALTER TABLE ...;'
    """

    kind: StepKind
    table: str
    sql: str
    column: str | None = None

    def to_sql(self) -> str:
        """Return the SQL statement."""
        return self.sql

    @property
    def target(self) -> str:
        """``table`` or ``table.column`` for display."""
        return f"{self.table}.{self.column}" if self.column else self.table


@dataclass
class MigrationPlan:
    """Ordered, non-destructive list of migration steps."""

    steps: list[MigrationStep] = field(default_factory=list)

    @property
    def has_steps(self) -> bool:
        """True if there is anything to apply."""
        return bool(self.steps)

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def statements(self) -> list[str]:
        """Rendered SQL statements in plan order."""
        return [step.to_sql() for step in self.steps]

    def count(self, kind: StepKind) -> int:
        """Number of steps of the given kind."""
        return sum(1 for step in self.steps if step.kind == kind)


# ------------------------------------------------------------------
# Diff computation
# ------------------------------------------------------------------


def _table_steps(schema_name: str, current: TableSchema, target: TableSchema) -> list[MigrationStep]:
    """Steps reconciling one existing table with its target definition."""
    additions: list[MigrationStep] = []
    alterations: list[MigrationStep] = []

    for column in target.columns:
        existing = current.get_column(column.name)
        if existing is None:
            additions.append(
                MigrationStep(
                    StepKind.ADD_COLUMN,
                    target.name,
                    add_column_sql(schema_name, target.name, column),
                    column=column.name,
                )
            )
            continue

        sql = alter_column_sql(schema_name, target.name, existing, column)
        if sql is not None:
            alterations.append(
                MigrationStep(StepKind.ALTER_COLUMN, target.name, sql, column=column.name)
            )

    unique_sets = {frozenset(index.columns) for index in current.unique_indexes}
    if current.primary_key:
        unique_sets.add(frozenset(current.primary_key))

    indexes: list[MigrationStep] = []
    for index in target.unique_indexes:
        if frozenset(index.columns) in unique_sets:
            continue
        indexes.append(
            MigrationStep(
                StepKind.ADD_INDEX,
                target.name,
                create_unique_index_sql(schema_name, target.name, index),
            )
        )

    return additions + alterations + indexes


def diff(current: SchemaSnapshot | None, target: SchemaSnapshot) -> MigrationPlan:
    """Compute the migration plan moving *current* towards *target*.

    Args:
        current: Live schema snapshot.  ``None`` means it could not be
            captured.
        target: Desired schema snapshot from the model definitions.

    Returns:
        ``MigrationPlan`` with CREATE TABLE steps first, then per-table
        ADD COLUMN / ALTER COLUMN / CREATE UNIQUE INDEX steps.  Tables,
        columns and indexes only present in *current* produce no steps.

    Raises:
        SnapshotUnavailableError: If *current* is ``None``.

    Example:
        >>> empty = SchemaSnapshot()
        >>> diff(empty, empty).has_steps
        False
    """
    if current is None:
        raise SnapshotUnavailableError("Current schema snapshot is unavailable")

    creates: list[MigrationStep] = []
    changes: list[MigrationStep] = []

    for key, table in target.tables.items():
        existing = current.tables.get(key)
        if existing is None:
            creates.append(
                MigrationStep(
                    StepKind.CREATE_TABLE,
                    table.name,
                    create_table_sql(target.schema_name, table),
                )
            )
        else:
            changes.extend(_table_steps(target.schema_name, existing, table))

    return MigrationPlan(steps=creates + changes)
