"""Exception taxonomy for definition translation and schema reconciliation.

Per-model errors (``InvalidDefinitionError``, ``UnsupportedTypeError``)
abort the translation of a single model and are converted to
``TranslationFailure`` records by the snapshot builder.  Run-level errors
(``SnapshotUnavailableError``, ``DiscoveryError``) propagate to the caller
and stop the run before any statement is applied.
"""

from typing import Any


class ModuleUpgradeError(Exception):
    """Base class for all module-upgrade errors."""


class InvalidDefinitionError(ModuleUpgradeError):
    """Raised when a model definition lacks its table, primary key, or fields."""


class UnsupportedTypeError(ModuleUpgradeError):
    """Raised when a logical field type has no storage type.

    Example:
        >>> err = UnsupportedTypeError(99)
        >>> err.value
        99
    """

    def __init__(self, value: Any, message: str | None = None) -> None:
        self.value = value
        super().__init__(message or f"Logical field type {value!r} is not supported")


class SnapshotUnavailableError(ModuleUpgradeError):
    """Raised when the current database schema cannot be obtained."""


class DiscoveryError(ModuleUpgradeError):
    """Raised when model definitions for a module cannot be located."""
