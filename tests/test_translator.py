"""Tests for translating model definitions into table schemas."""

import pytest

from module_upgrade.definitions.models import RawModelDefinition
from module_upgrade.definitions.translator import (
    LANG_COLUMN,
    SHOP_COLUMN,
    ObjectModelDefinition,
    translate,
)
from module_upgrade.errors import InvalidDefinitionError, UnsupportedTypeError
from module_upgrade.schema.models import StorageType
from module_upgrade.schema.naming import prefixed_naming


def _definition(fields=None, **overrides) -> RawModelDefinition:
    data = {
        "table": "foo",
        "primary": "id_foo",
        "fields": fields if fields is not None else {"name": {"type": "string", "required": True}},
    }
    data.update(overrides)
    return RawModelDefinition.from_definition(data)


# ------------------------------------------------------------------
# Scenarios
# ------------------------------------------------------------------


class TestSimpleModel:
    """A model without localization."""

    def test_main_table(self):
        model = translate(_definition())

        assert isinstance(model, ObjectModelDefinition)
        assert model.main_table.name == "foo"
        assert model.main_table.column_names == ["id_foo", "name"]
        assert model.lang_table is None
        assert model.tables == [model.main_table]

    def test_primary_key_column(self):
        table = translate(_definition()).main_table
        key = table.get_column("id_foo")

        assert table.primary_key == ["id_foo"]
        assert key.storage_type == StorageType.INTEGER
        assert key.unsigned is True
        assert key.autoincrement is True
        assert key.nullable is False

    def test_field_column(self):
        name = translate(_definition()).main_table.get_column("name")

        assert name.storage_type == StorageType.STRING
        assert name.nullable is False
        assert name.length is None
        assert name.unsigned is None
        assert name.autoincrement is False

    def test_not_required_is_nullable(self):
        table = translate(_definition({"note": {"type": "html"}})).main_table
        assert table.get_column("note").nullable is True

    def test_size_becomes_length(self):
        table = translate(_definition({"code": {"type": "string", "size": 32}})).main_table
        assert table.get_column("code").length == 32

    def test_main_table_has_no_unique_index(self):
        assert translate(_definition()).main_table.unique_indexes == []


class TestLocalizedModel:
    """Multi-language models get a language table."""

    def test_lang_table_per_shop(self):
        model = translate(_definition(multilang=True, multilang_shop=True))
        lang = model.lang_table

        assert lang.name == "foo_lang"
        assert lang.column_names == ["id_foo", LANG_COLUMN, SHOP_COLUMN]
        assert len(lang.unique_indexes) == 1
        assert lang.unique_indexes[0].columns == ["id_foo", "id_lang", "id_shop"]
        assert model.multilang is True
        assert model.multilang_shop is True

    def test_lang_table_without_shop(self):
        lang = translate(_definition(multilang=True)).lang_table

        assert lang.column_names == ["id_foo", "id_lang"]
        assert len(lang.unique_indexes) == 1
        assert lang.unique_indexes[0].columns == ["id_foo", "id_lang"]

    def test_lang_key_columns_are_unsigned_integers(self):
        lang = translate(_definition(multilang=True, multilang_shop=True)).lang_table
        for column in lang.columns:
            assert column.storage_type == StorageType.INTEGER
            assert column.unsigned is True
            assert column.nullable is False
            assert column.autoincrement is False

    def test_lang_table_uses_unique_index_not_primary_key(self):
        lang = translate(_definition(multilang=True)).lang_table
        assert lang.primary_key == []

    def test_unique_index_name(self):
        lang = translate(_definition(multilang=True, multilang_shop=True)).lang_table
        assert lang.unique_indexes[0].name == "foo_lang_id_foo_id_lang_id_shop_key"

    def test_non_lang_field_stays_in_main_table(self):
        model = translate(_definition(multilang=True, multilang_shop=True))

        assert model.main_table.has_column("name")
        assert not model.lang_table.has_column("name")

    def test_tables_order(self):
        model = translate(_definition(multilang=True))
        assert [table.name for table in model.tables] == ["foo", "foo_lang"]


class TestRouting:
    """Fields flagged lang are routed to the language table when one exists."""

    def test_lang_field_goes_to_lang_table(self):
        model = translate(
            _definition({"title": {"type": "string", "lang": True}}, multilang=True)
        )
        assert model.lang_table.has_column("title")
        assert not model.main_table.has_column("title")

    def test_lang_field_without_lang_table_stays_in_main(self):
        model = translate(_definition({"title": {"type": "string", "lang": True}}))
        assert model.lang_table is None
        assert model.main_table.has_column("title")

    def test_lang_field_named_like_key_is_skipped(self):
        model = translate(
            _definition({"id_lang": {"type": "string", "lang": True}}, multilang=True)
        )
        id_lang = model.lang_table.get_column("id_lang")
        assert id_lang.storage_type == StorageType.INTEGER
        assert model.lang_table.column_names.count("id_lang") == 1


class TestDuplicateFields:
    """The first declaration of a column wins."""

    def test_first_duplicate_wins(self):
        definition = RawModelDefinition.from_definition(
            {
                "table": "foo",
                "primary": "id_foo",
                "fields": [
                    ["name", {"type": "string", "size": 64}],
                    ["name", {"type": "integer"}],
                ],
            }
        )
        table = translate(definition).main_table

        assert table.column_names == ["id_foo", "name"]
        assert table.get_column("name").storage_type == StorageType.STRING
        assert table.get_column("name").length == 64

    def test_field_named_like_primary_key_is_skipped(self):
        table = translate(_definition({"id_foo": {"type": "string"}})).main_table
        assert table.get_column("id_foo").storage_type == StorageType.INTEGER
        assert table.get_column("id_foo").autoincrement is True

    def test_translation_is_repeatable(self):
        definition = _definition(multilang=True, multilang_shop=True)
        assert translate(definition) == translate(definition)


class TestUnsignedHeuristic:
    """Numeric columns whose validation hint mentions unsigned are unsigned."""

    @pytest.mark.parametrize("hint", ["isUnsignedInt", "isunsignedid", "UNSIGNED"])
    def test_integer_with_hint(self, hint):
        table = translate(_definition({"qty": {"type": "integer", "validate": hint}})).main_table
        assert table.get_column("qty").unsigned is True

    def test_float_with_hint(self):
        table = translate(
            _definition({"price": {"type": "float", "validate": "isUnsignedFloat"}})
        ).main_table
        assert table.get_column("price").unsigned is True

    def test_string_ignores_hint(self):
        table = translate(
            _definition({"ref": {"type": "string", "validate": "isUnsignedInt"}})
        ).main_table
        assert table.get_column("ref").unsigned is None

    def test_numeric_without_hint(self):
        table = translate(_definition({"qty": {"type": "integer", "validate": "isInt"}})).main_table
        assert table.get_column("qty").unsigned is None


class TestNamingConvention:
    """The naming convention is applied to both tables."""

    def test_prefixed(self):
        model = translate(_definition(multilang=True), naming=prefixed_naming("ps_"))

        assert model.main_table.name == "ps_foo"
        assert model.lang_table.name == "ps_foo_lang"
        assert model.lang_table.unique_indexes[0].name == "ps_foo_lang_id_foo_id_lang_key"


class TestInvalidDefinitions:
    """Invalid definitions raise before any table is built."""

    @pytest.mark.parametrize("missing", ["table", "primary"])
    def test_missing_name(self, missing):
        with pytest.raises(InvalidDefinitionError, match=missing):
            translate(_definition(**{missing: None}))

    def test_empty_table_name(self):
        with pytest.raises(InvalidDefinitionError):
            translate(_definition(table=""))

    def test_empty_fields(self):
        with pytest.raises(InvalidDefinitionError, match="fields"):
            translate(_definition(fields={}))

    def test_missing_fields(self):
        with pytest.raises(InvalidDefinitionError):
            translate(RawModelDefinition(table="foo", primary="id_foo"))

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedTypeError):
            translate(_definition({"data": {"type": 7}}))

    def test_malformed_definition(self):
        definition = RawModelDefinition(table="tag", source="all.json#1", error="size is not an int")
        with pytest.raises(InvalidDefinitionError, match="all.json#1.*size is not an int"):
            translate(definition)
