"""Tests for folio.core.field_ops: coercion, validation, change reporting."""

import pytest
from rich.console import Console

from folio.core.field_ops import (
    ChangeResult,
    FieldDef,
    FieldType,
    coerce_value,
    print_change,
    split_list,
    validate_value,
)


class TestSplitList:

    def test_comma_separated(self):
        assert split_list("a, b,,c ") == ["a", "b", "c"]

    def test_json_array(self):
        assert split_list('["a, b", "c"]') == ["a, b", "c"]

    def test_invalid_json_falls_back_to_commas(self):
        assert split_list("[a, b") == ["[a", "b"]

    def test_empty(self):
        assert split_list("") == []


class TestCoerceValue:

    def test_string(self):
        assert coerce_value("  hi ", FieldDef(FieldType.STRING, "")) == "  hi "

    def test_optional_string_blank_is_none(self):
        fdef = FieldDef(FieldType.OPTIONAL_STRING, "")
        assert coerce_value("   ", fdef) is None
        assert coerce_value("x", fdef) == "x"

    def test_string_list(self):
        assert coerce_value("a,b", FieldDef(FieldType.STRING_LIST, "")) == ["a", "b"]

    def test_csv(self):
        fdef = FieldDef(FieldType.CSV, "")
        assert coerce_value("Physics, Biology", fdef) == "Physics,Biology"
        assert coerce_value("", fdef) is None


class TestValidateValue:

    def test_no_choices_accepts_anything(self):
        assert validate_value("f", "x", FieldDef(FieldType.STRING, "")) == []

    def test_choice_mismatch(self):
        fdef = FieldDef(FieldType.STRING, "", choices=["a", "b"])
        errors = validate_value("f", "c", fdef)
        assert len(errors) == 1
        assert "'c' is not a valid choice" in errors[0]

    def test_override_choices(self):
        fdef = FieldDef(FieldType.STRING, "", choices=["a"])
        assert validate_value("f", "z", fdef, choices=["z"]) == []

    def test_list_items_checked(self):
        fdef = FieldDef(FieldType.STRING_LIST, "", choices=["a", "b"])
        assert validate_value("f", ["a", "x", "y"], fdef) == [
            "f: 'x' is not a valid choice. Options: a, b.",
            "f: 'y' is not a valid choice. Options: a, b.",
        ]

    def test_csv_items_checked(self):
        fdef = FieldDef(FieldType.CSV, "", choices=["a", "b"])
        assert validate_value("f", "a,b", fdef) == []
        assert len(validate_value("f", "a,q", fdef)) == 1

    def test_none_is_valid(self):
        fdef = FieldDef(FieldType.OPTIONAL_STRING, "", choices=["a"])
        assert validate_value("f", None, fdef) == []


class TestChangeResult:

    def test_changed(self):
        assert ChangeResult("s", "f", 1, 2, "set").changed
        assert not ChangeResult("s", "f", [1], [1], "set").changed

    @pytest.mark.parametrize(
        ("result", "expected"),
        [
            (ChangeResult("proj", "title", "Old", "New", "set"), ["proj: title", "old: Old", "new: New"]),
            (ChangeResult("proj", "category", "X", None, "unset"), ["old: X", "(removed)"]),
        ],
    )
    def test_print_change(self, result, expected):
        console = Console(record=True, width=120)
        print_change(result, console)
        text = console.export_text()
        for fragment in expected:
            assert fragment in text
