"""Schema snapshot builder.

Builds the target snapshot from discovered model definitions and
captures the current snapshot through the introspection collaborator.

Per-model translation errors stop here: they become
``TranslationFailure`` records and the remaining models are still
translated.

Usage:
    from module_upgrade.schema.snapshot import build_target, capture_current

    target, failures = build_target(definitions, naming=prefixed_naming("ps_"))
    async with SchemaIntrospector(url) as introspector:
        current = await capture_current(introspector)
"""

import logging
from collections.abc import Iterable
from typing import Protocol

from pydantic import BaseModel

from module_upgrade.definitions.models import RawModelDefinition
from module_upgrade.definitions.translator import translate
from module_upgrade.errors import (
    InvalidDefinitionError,
    SnapshotUnavailableError,
    UnsupportedTypeError,
)
from module_upgrade.schema.models import SchemaSnapshot, TableSchema
from module_upgrade.schema.naming import NamingConvention, default_naming

logger = logging.getLogger(__name__)


class TranslationFailure(BaseModel):
    """A model whose definition could not be translated."""

    model: str
    message: str


class SnapshotSource(Protocol):
    """Anything able to produce the live schema snapshot."""

    async def introspect(self) -> SchemaSnapshot: ...


def build_target(
    definitions: Iterable[RawModelDefinition],
    naming: NamingConvention = default_naming,
    schema_name: str = "public",
) -> tuple[SchemaSnapshot, list[TranslationFailure]]:
    """Translate every definition into the target snapshot.

    Tables are keyed by ``"<schema_name>.<table>"``.  When two models map
    to the same table the later one wins; the collision is logged.

    Args:
        definitions: Raw definitions from discovery.
        naming: Table naming convention passed to the translator.
        schema_name: Schema qualifying every table name.

    Returns:
        Tuple of the target ``SchemaSnapshot`` and the list of
        ``TranslationFailure`` records, in input order.
    """
    tables: dict[str, TableSchema] = {}
    owners: dict[str, str] = {}
    failures: list[TranslationFailure] = []

    for definition in definitions:
        try:
            model = translate(definition, naming=naming)
        except (InvalidDefinitionError, UnsupportedTypeError) as e:
            logger.warning("Could not read definition of %s: %s", definition.identifier, e)
            failures.append(TranslationFailure(model=definition.identifier, message=str(e)))
            continue

        for table in model.tables:
            key = f"{schema_name}.{table.name}"
            if key in tables:
                logger.warning(
                    "Table %s from %s overrides the definition from %s",
                    key,
                    definition.identifier,
                    owners[key],
                )
            tables[key] = table
            owners[key] = definition.identifier

    return SchemaSnapshot(schema_name=schema_name, tables=tables), failures


async def capture_current(source: SnapshotSource) -> SchemaSnapshot:
    """Capture the live schema through the introspection collaborator.

    The snapshot is returned unmodified.

    Raises:
        SnapshotUnavailableError: If the collaborator fails.
    """
    try:
        return await source.introspect()
    except SnapshotUnavailableError:
        raise
    except Exception as e:
        raise SnapshotUnavailableError(f"Could not capture current schema: {e}") from e
