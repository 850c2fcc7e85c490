from __future__ import annotations

import unittest

from app.validators.mapping_validator import MappingErrorDetail, MappingValidator, SchemaError


class TestMappingValidator(unittest.TestCase):
    def setUp(self) -> None:
        self.headers = ("Item", "Type", "Qty", "Room")
        self.validator = MappingValidator(
            field_names=("name", "category", "total_quantity", "location", "serial_number"),
            required_fields=("name", "category"),
            natural_key=("name", "category"),
        )

    def test_accepts_layout_with_required_and_key_fields(self) -> None:
        self.validator.validate(
            column_fields={0: "name", 1: "category", 2: "total_quantity"},
            source_headers=self.headers,
        )

    def test_missing_required_field_is_reported_once(self) -> None:
        with self.assertRaises(SchemaError) as ctx:
            self.validator.validate(column_fields={0: "name"}, source_headers=self.headers)

        codes = [error.code for error in ctx.exception.errors]
        self.assertEqual(codes, ["required_field_unmapped"])
        self.assertEqual(ctx.exception.missing_fields, ("category",))
        self.assertEqual(ctx.exception.message, "Header row is missing required columns: category.")

    def test_optional_natural_key_field_must_be_mapped(self) -> None:
        validator = MappingValidator(
            field_names=("name", "serial_number"),
            required_fields=("name",),
            natural_key=("serial_number",),
        )

        with self.assertRaises(SchemaError) as ctx:
            validator.validate(column_fields={0: "name"}, source_headers=("Item",))

        self.assertEqual(ctx.exception.errors[0].code, "natural_key_unmapped")
        self.assertEqual(ctx.exception.errors[0].context, {"source_headers": ["Item"]})

    def test_same_field_on_two_columns_is_rejected(self) -> None:
        errors = self.validator.collect_errors(
            column_fields={0: "name", 1: "category", 3: "category"},
            source_headers=self.headers,
        )

        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].code, "duplicate_field_mapping")
        self.assertEqual(errors[0].source_column, "Room")
        self.assertEqual(errors[0].context, {"first_column": "Type"})

    def test_column_outside_header_row_and_unknown_field(self) -> None:
        with self.assertRaises(SchemaError) as ctx:
            self.validator.validate(
                column_fields={0: "name", 1: "category", 2: "colour", 9: "location"},
                source_headers=self.headers,
            )

        codes = [error.code for error in ctx.exception.errors]
        self.assertEqual(codes, ["invalid_canonical_field", "unknown_source_column"])
        self.assertEqual(ctx.exception.message, "Header row cannot be mapped onto the entity fields.")

    def test_pre_errors_come_first_in_payload(self) -> None:
        with self.assertRaises(SchemaError) as ctx:
            self.validator.validate(
                column_fields={0: "name", 1: "category"},
                source_headers=self.headers,
                pre_errors=[
                    MappingErrorDetail(
                        code="override_source_not_found",
                        message="manual override missing header",
                        canonical_field="location",
                        source_column="Office",
                    )
                ],
            )

        payload = ctx.exception.to_dict()
        self.assertEqual(payload["missing_fields"], [])
        self.assertEqual(payload["errors"][0]["code"], "override_source_not_found")
        self.assertEqual(payload["errors"][0]["source_column"], "Office")


if __name__ == "__main__":
    unittest.main()
