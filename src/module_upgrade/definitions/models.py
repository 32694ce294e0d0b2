"""Pydantic models for raw model definitions.

Raw definitions are the records returned by a model discovery service.
They mirror the loose legacy definition shape::

    {
        "table": "foo",
        "primary": "id_foo",
        "multilang": True,
        "multilang_shop": False,
        "fields": {
            "name": {"type": 3, "required": True, "size": 64, "lang": True},
            "price": {"type": "float", "validate": "isUnsignedFloat"},
        },
    }

Parsing is deliberately lenient: missing ``table``/``primary``/``fields``
and unknown field types are kept as-is so that the translator can reject
the one model they belong to.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from module_upgrade.errors import UnsupportedTypeError
from module_upgrade.schema.types import coerce_logical_type


class RawFieldDefinition(BaseModel):
    """One declared field of a model definition.

    Example:
        >>> field = RawFieldDefinition(name="name", logical_type="string", required=True)
        >>> field.logical_type
        <LogicalType.STRING: 'string'>
    """

    model_config = ConfigDict(frozen=True)

    name: str
    logical_type: Any = None
    required: bool = False
    size: int | None = None
    validate_hint: str | None = None
    lang: bool = False

    @field_validator("logical_type", mode="before")
    @classmethod
    def _known_types_as_enum(cls, value: Any) -> Any:
        """Normalize known types; keep unknown ones for the type mapper to reject."""
        try:
            return coerce_logical_type(value)
        except UnsupportedTypeError:
            return value

    @classmethod
    def from_definition(cls, name: str, entry: Mapping[str, Any]) -> "RawFieldDefinition":
        """Build a field from its legacy definition entry.

        Raises:
            TypeError: If *entry* is not a mapping.
        """
        if not isinstance(entry, Mapping):
            raise TypeError(f"field '{name}' is not an object")
        return cls(
            name=name,
            logical_type=entry.get("type"),
            required=bool(entry.get("required", False)),
            size=entry.get("size"),
            validate_hint=entry.get("validate"),
            lang=bool(entry.get("lang", False)),
        )


class RawModelDefinition(BaseModel):
    """A model definition as produced by discovery.

    ``fields`` is an ordered list rather than a mapping so that duplicate
    field names reach the translator, which keeps the first one.

    ``error`` is set by discovery when the entry could not be parsed; the
    translator rejects such a definition with that message.
    """

    model_config = ConfigDict(frozen=True)

    table: str | None = None
    primary: str | None = None
    fields: list[RawFieldDefinition] | None = Field(default=None)
    multilang: bool = False
    multilang_shop: bool = False
    source: str | None = None
    error: str | None = None

    @property
    def identifier(self) -> str:
        """Best available name for reports (source, then table)."""
        return self.source or self.table or "<unnamed definition>"

    @classmethod
    def from_definition(
        cls, definition: Mapping[str, Any], source: str | None = None
    ) -> "RawModelDefinition":
        """Parse a legacy definition mapping.

        ``fields`` may be a mapping of name to entry, or an iterable of
        ``(name, entry)`` pairs (used when the source may repeat names).
        A ``fields`` value of any other shape is dropped and later rejected
        by the translator.

        Args:
            definition: The legacy definition mapping.
            source: Where the definition came from (file path, class name).

        Returns:
            ``RawModelDefinition`` with fields in declaration order.
        """
        raw_fields = definition.get("fields")
        fields: list[RawFieldDefinition] | None = None

        if isinstance(raw_fields, Mapping):
            fields = [
                RawFieldDefinition.from_definition(str(name), entry or {})
                for name, entry in raw_fields.items()
            ]
        elif isinstance(raw_fields, Iterable) and not isinstance(raw_fields, (str, bytes)):
            fields = [
                RawFieldDefinition.from_definition(str(name), entry or {})
                for name, entry in raw_fields
            ]

        return cls(
            table=definition.get("table"),
            primary=definition.get("primary"),
            fields=fields,
            multilang=bool(definition.get("multilang", False)),
            multilang_shop=bool(definition.get("multilang_shop", False)),
            source=source,
        )
