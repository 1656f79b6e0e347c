"""Apply a ViewSpec to warehouse rows.

Normalization is pure and synchronous: one output record per input record,
same order, every declared key present. Map views additionally drop records
missing a required coordinate, as a separate step after normalization.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from core.coerce import resolve_value, to_float, to_int, to_text
from core.fields import FLOAT, INTEGER, FieldSpec, ViewSpec

logger = logging.getLogger(__name__)

RawRecord = Mapping[str, Any]
NormalizedRecord = Dict[str, Any]


_FAILED = object()


def coerce_field(record: RawRecord, spec: FieldSpec) -> Any:
    if spec.is_constant:
        return spec.default

    found, raw = resolve_value(record, spec.candidates)
    if not found:
        return spec.default

    if spec.type == INTEGER:
        value = to_int(raw, _FAILED)
    elif spec.type == FLOAT:
        value = to_float(raw, _FAILED)
    else:
        value = to_text(raw, _FAILED)
    if value is _FAILED:
        logger.debug("field %s fell back to default for %r", spec.key, raw)
        return spec.default

    if spec.transform is not None:
        try:
            value = spec.transform(value)
        except Exception:
            logger.debug("transform for %s failed on %r", spec.key, value)
            return spec.default
    if spec.choices and value not in spec.choices:
        return spec.default
    return value


def normalize_record(record: RawRecord, view: ViewSpec) -> NormalizedRecord:
    return {spec.key: coerce_field(record, spec) for spec in view.fields}


def normalize_records(
    records: Iterable[RawRecord],
    view: ViewSpec,
    *,
    index_key: Optional[str] = None,
) -> List[NormalizedRecord]:
    out: List[NormalizedRecord] = []
    for idx, record in enumerate(records):
        row = normalize_record(record or {}, view)
        if index_key:
            row[index_key] = idx
        out.append(row)
    return out


def drop_incomplete(records: Iterable[NormalizedRecord], view: ViewSpec) -> List[NormalizedRecord]:
    required = view.required_keys
    if not required:
        return list(records)
    return [r for r in records if all(r.get(k) is not None for k in required)]


def apply_view(
    records: Iterable[RawRecord],
    view: ViewSpec,
    *,
    index_key: Optional[str] = None,
) -> List[NormalizedRecord]:
    rows = normalize_records(records, view, index_key=index_key)
    if view.drop_incomplete:
        kept = drop_incomplete(rows, view)
        if len(kept) != len(rows):
            logger.debug("view %s dropped %d rows without coordinates", view.name, len(rows) - len(kept))
        return kept
    return rows
