# app/query/aggregates.py
"""
Per-row aggregate post-processing.

Aggregates are not SQL aggregates: each one adds a derived field to every
result row, computed from that row's own values. ``aggregate_label`` is the
one place the output field name is derived; the compiler, the engine and the
saved-query views all call it so generated names always match.
"""

import math
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from app.query.schemas import AggregateSpec, AggregateType

Number = Union[int, float, Decimal]


def aggregate_label(agg_type: Union[AggregateType, str], columns: Sequence[str], alias: Optional[str] = None) -> str:
    """Output column name of an aggregate: its alias, or ``{type}_{col1}_{col2}``."""
    if alias:
        return alias
    type_name = agg_type.value if isinstance(agg_type, AggregateType) else str(agg_type).upper()
    if type_name == AggregateType.COUNT.value and not columns:
        return "count_all"
    return f"{type_name.lower()}_{'_'.join(columns)}"


def spec_label(spec: AggregateSpec) -> str:
    return aggregate_label(spec.type, spec.columns, spec.alias)


def _as_number(value: Any) -> Optional[Number]:
    """Numeric view of a cell, or None when it cannot contribute."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, float):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        # Same rule as literal coercion: no digit separators
        if "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _contributing(row: Dict[str, Any], columns: Iterable[str]) -> List[Number]:
    values = [_as_number(row.get(column)) for column in columns]
    values = [value for value in values if value is not None]
    # Decimals stay exact unless a float joins them
    if any(isinstance(value, float) for value in values):
        return [float(value) if isinstance(value, Decimal) else value for value in values]
    return values


def compute_aggregate(row: Dict[str, Any], spec: AggregateSpec, output_name: str) -> Optional[Number]:
    """Value of one aggregate for one row."""
    if spec.type == AggregateType.SUM:
        values = _contributing(row, spec.columns)
        return sum(values) if values else None

    if spec.type == AggregateType.AVG:
        values = _contributing(row, spec.columns)
        return sum(values) / len(values) if values else None

    if spec.columns:
        return sum(1 for column in spec.columns if row.get(column) is not None)

    # COUNT over the whole row: every non-null field so far, plus this one
    return sum(1 for key, value in row.items() if key != output_name and value is not None) + 1


def apply_aggregates(rows: List[Dict[str, Any]], aggregates: Sequence[AggregateSpec]) -> List[Dict[str, Any]]:
    """Return new rows carrying one extra field per aggregate, in listed order."""
    if not aggregates:
        return rows

    labelled = [(spec, spec_label(spec)) for spec in aggregates]
    processed = []
    for row in rows:
        new_row = dict(row)
        for spec, name in labelled:
            new_row[name] = compute_aggregate(new_row, spec, name)
        processed.append(new_row)
    return processed
