"""Tests for building primary-key scoped UPDATE statements from cell edits."""

from __future__ import annotations

from dataclasses import replace

import pytest

from dbscope.domains.inspect.app import update_builder
from dbscope.domains.inspect.app.update_builder import (
    ColumnType,
    build_row_edit,
    coerce_value,
    construct_update_statement,
    is_updatable,
    render_literal,
)
from dbscope.domains.inspect.domain.models import InspectorState, Page, Structure, ViewMode
from dbscope.domains.inspect.domain.values import Value
from dbscope.shared.core.errors import CoercionError, MetadataShapeError

STRUCTURE_COLUMNS = ["column_name", "data_type", "nullable", "default_value", "primary_key"]


def _structure(*columns: tuple[str, str, bool, bool], metadata: list[str] | None = None) -> Structure:
    return Structure(
        database_id=1,
        table="users",
        columns=metadata or STRUCTURE_COLUMNS,
        rows=[
            [Value.string(name), Value.string(kind), Value.boolean(nullable), Value.null(), Value.boolean(pk)]
            for name, kind, nullable, pk in columns
        ],
    )


USERS_STRUCTURE = _structure(
    ("id", "INTEGER", False, True),
    ("name", "TEXT", True, False),
    ("score", "REAL", True, False),
    ("active", "BOOLEAN", False, False),
)


def _page() -> Page:
    return Page(
        database_id=1,
        table="users",
        columns=["id", "name", "score", "active"],
        rows=[
            [Value.number(3), Value.string("Alice"), Value.number(1.5), Value.boolean(True)],
            [Value.number(7), Value.string("Carl"), Value.null(), Value.boolean(False)],
        ],
        start=0,
        count=2,
        total=2,
        highlighted_rows=(1,),
    )


def _state(**changes) -> InspectorState:
    base = InspectorState(
        selected_database=1,
        selected_table="users",
        current_page=_page(),
        current_structure=USERS_STRUCTURE,
        view_mode=ViewMode.DATA,
    )
    return replace(base, **changes)


class TestBuildRowEdit:
    def test_single_column_edit(self):
        edit = build_row_edit(_state(), {"name": "Bob"})

        assert edit.statement == "UPDATE `users` SET `name` = 'Bob' WHERE `id` = 7"
        assert edit.page.rows[1][1] == Value.string("Bob")
        assert edit.page.rows[1][0] == Value.number(7)
        assert edit.page.rows[1][3] == Value.boolean(False)
        assert edit.page.rows[0] == _page().rows[0]

    def test_multiple_columns_are_coerced(self):
        edit = build_row_edit(_state(), {"score": "2.75", "active": "yes"})

        assert edit.statement == "UPDATE `users` SET `score` = 2.75, `active` = TRUE WHERE `id` = 7"
        assert edit.values == {"score": Value.number(2.75), "active": Value.boolean(True)}

    def test_empty_nullable_becomes_null(self):
        edit = build_row_edit(_state(), {"name": ""})

        assert edit.statement == "UPDATE `users` SET `name` = NULL WHERE `id` = 7"

    def test_uncoercible_value_is_skipped(self):
        edit = build_row_edit(_state(), {"score": "lots", "name": "Bob"})

        assert edit.statement == "UPDATE `users` SET `name` = 'Bob' WHERE `id` = 7"
        assert edit.page.rows[1][2] == Value.null()

    def test_all_values_uncoercible_aborts(self):
        assert build_row_edit(_state(), {"id": "seven"}) is None

    def test_string_is_escaped(self):
        edit = build_row_edit(_state(), {"name": "O'Brien"})

        assert edit.statement.endswith("SET `name` = 'O''Brien' WHERE `id` = 7")

    def test_composite_key(self):
        structure = _structure(
            ("id", "INTEGER", False, True),
            ("name", "TEXT", True, True),
            ("score", "REAL", True, False),
        )

        edit = build_row_edit(_state(current_structure=structure), {"score": "1"})

        assert edit.statement == "UPDATE `users` SET `score` = 1.0 WHERE `id` = 7 AND `name` = 'Carl'"

    def test_null_key_uses_is_null(self):
        page = replace(_page(), rows=[_page().rows[0], [Value.null(), Value.string("Carl"), Value.null(), Value.boolean(False)]])

        edit = build_row_edit(_state(current_page=page), {"name": "Dee"})

        assert edit.statement == "UPDATE `users` SET `name` = 'Dee' WHERE `id` IS NULL"

    @pytest.mark.parametrize(
        "changes",
        [
            {"view_mode": ViewMode.SQL},
            {"view_mode": ViewMode.STRUCTURE},
            {"selected_table": None},
            {"current_page": None},
            {"current_structure": None},
        ],
    )
    def test_aborts_without_editable_context(self, changes):
        assert build_row_edit(_state(**changes), {"name": "Bob"}) is None

    @pytest.mark.parametrize("highlighted", [(), (0, 1), (5,)])
    def test_requires_exactly_one_valid_highlight(self, highlighted):
        page = replace(_page(), highlighted_rows=highlighted)

        assert build_row_edit(_state(current_page=page), {"name": "Bob"}) is None

    def test_empty_change_aborts(self):
        assert build_row_edit(_state(), {}) is None

    def test_missing_metadata_column_aborts(self):
        structure = _structure(
            ("id", "INTEGER", False, True),
            metadata=["column_name", "data_type", "nullable", "default_value", "is_pk"],
        )

        assert build_row_edit(_state(current_structure=structure), {"name": "Bob"}) is None

    def test_table_without_primary_key_aborts(self):
        structure = _structure(("id", "INTEGER", False, False), ("name", "TEXT", True, False))

        assert build_row_edit(_state(current_structure=structure), {"name": "Bob"}) is None


class TestCoerceValue:
    TYPES = {
        "id": ColumnType("INTEGER", nullable=False),
        "ratio": ColumnType("DECIMAL(5,2)"),
        "flag": ColumnType("BOOL", nullable=False),
        "data": ColumnType("BLOB"),
        "label": ColumnType("VARCHAR(20)", nullable=False),
    }

    def test_integer(self):
        assert coerce_value(self.TYPES, "id", " 12 ") == Value.number(12)

    def test_integer_failure(self):
        with pytest.raises(CoercionError, match="id"):
            coerce_value(self.TYPES, "id", "1.5")

    def test_non_nullable_null_fails(self):
        with pytest.raises(CoercionError):
            coerce_value(self.TYPES, "flag", None)

    def test_decimal_with_precision(self):
        assert coerce_value(self.TYPES, "ratio", "0.25") == Value.number(0.25)

    def test_boolean_words(self):
        assert coerce_value(self.TYPES, "flag", "F") == Value.boolean(False)
        with pytest.raises(CoercionError):
            coerce_value(self.TYPES, "flag", "maybe")

    def test_blob_hex_and_text(self):
        assert coerce_value(self.TYPES, "data", "0xdeadbeef") == Value.bytes_(b"\xde\xad\xbe\xef")
        assert coerce_value(self.TYPES, "data", "X'00ff'") == Value.bytes_(b"\x00\xff")
        assert coerce_value(self.TYPES, "data", "raw") == Value.bytes_(b"raw")

    def test_empty_string_on_non_nullable_text(self):
        assert coerce_value(self.TYPES, "label", "") == Value.string("")

    def test_unknown_column_is_nullable_text(self):
        assert coerce_value(self.TYPES, "other", "x") == Value.string("x")
        assert coerce_value(self.TYPES, "other", "") == Value.null()


class TestRendering:
    @pytest.mark.parametrize(
        ("value", "literal"),
        [
            (Value.null(), "NULL"),
            (Value.boolean(False), "FALSE"),
            (Value.number(-3), "-3"),
            (Value.bigint(2**60), str(2**60)),
            (Value.string("it's"), "'it''s'"),
            (Value.bytes_(b"\x01\xab"), "X'01ab'"),
        ],
    )
    def test_render_literal(self, value, literal):
        assert render_literal(value) == literal

    def test_identifiers_are_quoted(self):
        statement = construct_update_statement(
            "odd`table", {"k": Value.number(1)}, {"my col": Value.string("v")}
        )

        assert statement == "UPDATE `odd``table` SET `my col` = 'v' WHERE `k` = 1"


class TestMetadata:
    def test_is_updatable(self):
        assert is_updatable(USERS_STRUCTURE)
        assert not is_updatable(None)
        assert not is_updatable(_structure(("a", "TEXT", True, False)))

    def test_primary_key_columns_requires_metadata(self):
        structure = _structure(("a", "TEXT", True, True), metadata=["name", "data_type", "nullable", "d", "primary_key"])

        with pytest.raises(MetadataShapeError):
            update_builder.primary_key_columns(structure)

    def test_nullable_defaults_to_true_when_absent(self):
        structure = Structure(
            database_id=1,
            table="t",
            columns=["column_name", "data_type", "primary_key"],
            rows=[[Value.string("a"), Value.string("INT"), Value.boolean(True)]],
        )

        assert update_builder.column_types(structure) == {"a": ColumnType("INT", nullable=True)}

    def test_base_type(self):
        assert update_builder.base_type("varchar(255)") == "VARCHAR"
        assert update_builder.base_type("") == ""


def test_full_blob_prefill_coerces_back_to_the_same_bytes():
    from dbscope.domains.inspect.ui.presenter import edit_prefill

    payload = bytes(range(40))
    types = {"data": ColumnType("BLOB")}

    assert coerce_value(types, "data", edit_prefill(Value.bytes_(payload))) == Value.bytes_(payload)
