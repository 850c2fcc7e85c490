"""
app/mappers/field_mapping.py

Declarative field mappings and header resolution for delimited imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from difflib import SequenceMatcher
from typing import Mapping, Sequence

from app.mappers.coercion import Coercion, text
from app.validators.mapping_validator import MappingErrorDetail, MappingValidator, SchemaError


def normalize_header(header: str) -> str:
    """
    Normalize a column name for flexible matching.

    ``"Seat Number"``, ``"seat_number"``, ``"seatNumber"`` and
    ``"SEATNUMBER"`` all normalize to ``"seatnumber"``.
    """

    return "".join(ch for ch in header.strip().lower() if ch.isalnum())


@dataclass(frozen=True)
class FieldSpec:
    """
    One canonical field: accepted header aliases, required flag, coercion.
    """

    name: str
    aliases: tuple[str, ...] = ()
    required: bool = False
    coerce: Coercion = text

    def candidates(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)


@dataclass(frozen=True)
class FieldMapping:
    """
    Field specification for one importable entity type.
    """

    entity: str
    fields: tuple[FieldSpec, ...]
    natural_key: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        seen: dict[str, str] = {}
        for spec in self.fields:
            for candidate in spec.candidates():
                normalized = normalize_header(candidate)
                owner = seen.setdefault(normalized, spec.name)
                if owner != spec.name:
                    raise ValueError(
                        f"Alias {candidate!r} of {spec.name!r} collides with field {owner!r}."
                    )
        unknown_keys = [name for name in self.natural_key if name not in self.field_names]
        if unknown_keys:
            raise ValueError(f"Natural key references unknown fields: {', '.join(unknown_keys)}.")

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields if spec.required)

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def with_coercion(self, name: str, coerce: Coercion) -> FieldMapping:
        """
        Return a copy with one field's coercion rule replaced.
        """

        self.field(name)
        return replace(
            self,
            fields=tuple(
                replace(spec, coerce=coerce) if spec.name == name else spec
                for spec in self.fields
            ),
        )


@dataclass(frozen=True)
class HeaderResolution:
    """
    Resolved header layout for one table.

    ``column_fields`` maps column index to canonical field; ``extra_columns``
    maps the remaining non-blank columns to their literal header text.
    """

    headers: tuple[str, ...]
    column_fields: dict[int, str]
    extra_columns: dict[int, str] = field(default_factory=dict)
    match_strategies: dict[str, str] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return len(self.headers)

    def source_column(self, canonical_field: str) -> str | None:
        for index, name in self.column_fields.items():
            if name == canonical_field:
                return self.headers[index]
        return None


class HeaderResolver:
    """
    Resolves a header row into canonical field positions.
    """

    def __init__(self, *, fuzzy_threshold: float | None = None) -> None:
        self._fuzzy_threshold = (
            None if fuzzy_threshold is None else max(0.0, min(1.0, fuzzy_threshold))
        )

    def resolve(
        self,
        headers: Sequence[str],
        mapping: FieldMapping,
        *,
        manual_overrides: Mapping[str, str] | None = None,
        natural_key: Sequence[str] | None = None,
    ) -> HeaderResolution:
        """
        Resolve canonical fields from headers and optional manual overrides.

        ``natural_key`` defaults to the mapping's own key; each of its fields
        must resolve to a column just like a required field.

        Raises ``SchemaError`` when a required or natural-key field has no column.
        """

        source_headers = tuple((header or "").strip() for header in headers)
        if not any(source_headers):
            raise SchemaError(
                message="Header row is empty; cannot resolve field mapping.",
                errors=[
                    MappingErrorDetail(
                        code="empty_headers",
                        message="No header names were provided.",
                    )
                ],
            )

        normalized_lookup: dict[str, int] = {}
        for index, header in enumerate(source_headers):
            normalized = normalize_header(header)
            if normalized:
                normalized_lookup.setdefault(normalized, index)

        column_fields: dict[int, str] = {}
        strategies: dict[str, str] = {}
        mapping_errors: list[MappingErrorDetail] = []

        for canonical_field, source_column in (manual_overrides or {}).items():
            name = canonical_field.strip()
            if name not in mapping.field_names:
                mapping_errors.append(
                    MappingErrorDetail(
                        code="invalid_override_field",
                        message="Manual override names an unknown field.",
                        canonical_field=name,
                        source_column=source_column,
                    )
                )
                continue

            index = normalized_lookup.get(normalize_header(source_column))
            if index is None:
                mapping_errors.append(
                    MappingErrorDetail(
                        code="override_source_not_found",
                        message="Manual override points to a column not present in the header row.",
                        canonical_field=name,
                        source_column=source_column,
                        context={"source_headers": list(source_headers)},
                    )
                )
                continue

            column_fields[index] = name
            strategies[name] = "override"

        for spec in mapping.fields:
            if spec.name in strategies:
                continue

            index, strategy = self._find_exact_or_alias_match(spec, normalized_lookup)
            if index is None or index in column_fields:
                index, strategy = self._find_best_fuzzy_match(spec, normalized_lookup, column_fields)
            if index is None:
                continue

            column_fields[index] = spec.name
            strategies[spec.name] = strategy

        extra_columns = {
            index: header
            for index, header in enumerate(source_headers)
            if header and index not in column_fields
        }

        MappingValidator(
            field_names=mapping.field_names,
            required_fields=mapping.required_fields,
            natural_key=mapping.natural_key if natural_key is None else natural_key,
        ).validate(
            column_fields=column_fields,
            source_headers=source_headers,
            pre_errors=mapping_errors,
        )

        return HeaderResolution(
            headers=source_headers,
            column_fields=dict(sorted(column_fields.items())),
            extra_columns=extra_columns,
            match_strategies=strategies,
        )

    @staticmethod
    def _find_exact_or_alias_match(
        spec: FieldSpec,
        normalized_lookup: Mapping[str, int],
    ) -> tuple[int | None, str]:
        for position, candidate in enumerate(spec.candidates()):
            index = normalized_lookup.get(normalize_header(candidate))
            if index is not None:
                return index, "exact" if position == 0 else "alias"
        return None, ""

    def _find_best_fuzzy_match(
        self,
        spec: FieldSpec,
        normalized_lookup: Mapping[str, int],
        used_columns: Mapping[int, str],
    ) -> tuple[int | None, str]:
        if self._fuzzy_threshold is None:
            return None, ""

        candidates = [normalize_header(item) for item in spec.candidates() if normalize_header(item)]
        best_index: int | None = None
        best_score = 0.0
        for header_norm, index in normalized_lookup.items():
            if index in used_columns:
                continue
            for candidate in candidates:
                score = SequenceMatcher(None, header_norm, candidate).ratio()
                if score > best_score:
                    best_score = score
                    best_index = index

        if best_index is not None and best_score >= self._fuzzy_threshold:
            return best_index, "fuzzy"
        return None, ""
