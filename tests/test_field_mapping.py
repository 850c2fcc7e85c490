from __future__ import annotations

import unittest

from app.domain.errors import CoercionError, UnknownEntityError
from app.mappers.coercion import DateCoercion, IntegerCoercion, is_placeholder, normalize_cell
from app.mappers.entity_mappings import (
    IT_EQUIPMENT,
    MONITOR_INVENTORY,
    build_entity_mapping,
)
from app.mappers.field_mapping import FieldMapping, FieldSpec, HeaderResolver, normalize_header
from app.domain.inventory_import import NO_VALUE
from app.validators.mapping_validator import SchemaError


class TestNormalizeHeader(unittest.TestCase):
    def test_spellings_of_one_field_are_equivalent(self) -> None:
        spellings = ["seatNumber", "Seat Number", "seat_number", "SEATNUMBER", " seat-number "]
        self.assertEqual({normalize_header(item) for item in spellings}, {"seatnumber"})

    def test_normalization_is_idempotent(self) -> None:
        once = normalize_header("Date Released (YYYY)")
        self.assertEqual(normalize_header(once), once)


class TestCoercion(unittest.TestCase):
    def test_placeholders(self) -> None:
        for value in ("", "  ", "-", "N/A", "null", "NULL", None):
            self.assertTrue(is_placeholder(value), value)
        self.assertFalse(is_placeholder("0"))
        self.assertIs(normalize_cell(" n/a "), NO_VALUE)
        self.assertEqual(normalize_cell("  A001 "), "A001")

    def test_lenient_integer_reads_leading_digits_or_falls_back(self) -> None:
        coerce = IntegerCoercion(fallback=1)
        self.assertEqual(coerce("3 pcs"), 3)
        self.assertEqual(coerce("1,200"), 1200)
        self.assertEqual(coerce("abc"), 1)

    def test_strict_integer_rejects_non_numbers(self) -> None:
        coerce = IntegerCoercion(strict=True)
        self.assertEqual(coerce("-4"), -4)
        with self.assertRaises(CoercionError):
            coerce("3 pcs")

    def test_dates_normalize_to_iso(self) -> None:
        coerce = DateCoercion()
        self.assertEqual(coerce("2024/03/05"), "2024-03-05")
        self.assertEqual(coerce("03/05/2024"), "2024-03-05")
        self.assertEqual(coerce("2024-03-05T10:00:00Z"), "2024-03-05")
        self.assertEqual(coerce("next week"), "next week")
        with self.assertRaises(CoercionError):
            DateCoercion(strict=True)("next week")


class TestFieldMapping(unittest.TestCase):
    def test_alias_collision_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            FieldMapping(
                entity="broken",
                fields=(
                    FieldSpec("serial_number", aliases=("serial",)),
                    FieldSpec("identifier", aliases=("Serial",)),
                ),
            )

    def test_natural_key_must_name_known_fields(self) -> None:
        with self.assertRaises(ValueError):
            FieldMapping(entity="broken", fields=(FieldSpec("name"),), natural_key=("code",))

    def test_with_coercion_replaces_one_rule(self) -> None:
        mapping = build_entity_mapping(IT_EQUIPMENT)
        strict = mapping.with_coercion("total_quantity", IntegerCoercion(strict=True))
        with self.assertRaises(CoercionError):
            strict.field("total_quantity").coerce("many")
        self.assertEqual(mapping.field("total_quantity").coerce("many"), 1)

    def test_unknown_entity_raises(self) -> None:
        with self.assertRaises(UnknownEntityError):
            build_entity_mapping("printers")

    def test_entity_name_accepts_dashes(self) -> None:
        self.assertEqual(build_entity_mapping("it-equipment").entity, IT_EQUIPMENT)


class TestHeaderResolver(unittest.TestCase):
    def setUp(self) -> None:
        self.resolver = HeaderResolver()
        self.mapping = build_entity_mapping(MONITOR_INVENTORY)

    def test_resolves_aliases_and_keeps_extra_columns(self) -> None:
        resolution = self.resolver.resolve(
            ["Seat Number", "knoxId", "Serial", "Floor", ""],
            self.mapping,
        )

        self.assertEqual(
            resolution.column_fields,
            {0: "seat_number", 1: "knox_id", 2: "serial_number"},
        )
        self.assertEqual(resolution.extra_columns, {3: "Floor"})
        self.assertEqual(resolution.match_strategies["seat_number"], "exact")
        self.assertEqual(resolution.match_strategies["serial_number"], "alias")
        self.assertEqual(resolution.source_column("knox_id"), "knoxId")
        self.assertEqual(resolution.width, 5)

    def test_first_matching_column_wins(self) -> None:
        resolution = self.resolver.resolve(["seat", "Seat Number"], self.mapping)
        self.assertEqual(resolution.column_fields, {1: "seat_number"})
        self.assertEqual(resolution.extra_columns, {0: "seat"})

    def test_manual_override_mapping_takes_precedence(self) -> None:
        resolution = self.resolver.resolve(
            ["Desk", "Owner"],
            self.mapping,
            manual_overrides={"seat_number": "Desk", "knox_id": "Owner"},
        )

        self.assertEqual(resolution.column_fields, {0: "seat_number", 1: "knox_id"})
        self.assertEqual(resolution.match_strategies["seat_number"], "override")

    def test_invalid_manual_override_raises_structured_error(self) -> None:
        with self.assertRaises(SchemaError) as ctx:
            self.resolver.resolve(
                ["seat_number"],
                self.mapping,
                manual_overrides={"unknown_field": "seat_number", "knox_id": "Owner"},
            )

        codes = {error.code for error in ctx.exception.errors}
        self.assertIn("invalid_override_field", codes)
        self.assertIn("override_source_not_found", codes)

    def test_missing_required_column_raises(self) -> None:
        with self.assertRaises(SchemaError) as ctx:
            self.resolver.resolve(["knox_id", "model"], self.mapping)

        codes = {error.code for error in ctx.exception.errors}
        self.assertEqual(codes, {"required_field_unmapped"})
        self.assertIn("seat_number", ctx.exception.message)

    def test_blank_header_row_raises(self) -> None:
        with self.assertRaises(SchemaError) as ctx:
            self.resolver.resolve(["", " "], self.mapping)
        self.assertEqual(ctx.exception.errors[0].code, "empty_headers")

    def test_fuzzy_matching_is_opt_in(self) -> None:
        headers = ["Seat Numbr", "Knox"]
        with self.assertRaises(SchemaError):
            self.resolver.resolve(headers, self.mapping)

        resolution = HeaderResolver(fuzzy_threshold=0.8).resolve(headers, self.mapping)
        self.assertEqual(resolution.column_fields[0], "seat_number")
        self.assertEqual(resolution.match_strategies["seat_number"], "fuzzy")


if __name__ == "__main__":
    unittest.main()
