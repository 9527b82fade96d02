# demand_planner/core/abc_classification.py
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, List, Mapping, Sequence

from ..utils.math_utils import coerce_number

A_CLASS_LIMIT = 0.8
B_CLASS_LIMIT = 0.95


def _as_dict(item: Any) -> Dict[str, Any]:
    if isinstance(item, Mapping):
        return dict(item)
    if is_dataclass(item):
        return asdict(item)
    return dict(vars(item))


def _item_value(item: Mapping, value_key: str) -> float:
    value = coerce_number(item.get(value_key), allow_negative=False)
    return value if value is not None else 0.0


def assign_class(cumulative_share: float) -> str:
    """Map a cumulative value share to an ABC class."""
    if cumulative_share <= A_CLASS_LIMIT:
        return 'A'
    if cumulative_share <= B_CLASS_LIMIT:
        return 'B'
    return 'C'


def classify_abc(items: Sequence[Any], value_key: str = 'annual_value') -> List[Dict[str, Any]]:
    """Classify items into A/B/C tiers by cumulative value share.

    Items are ranked by value, highest first; equal values keep their input
    order. An item is A while the running share is at most 80%, B while at
    most 95%, otherwise C. Missing or non-numeric values count as 0. When the
    total value is 0 the shares are undefined and every item is C.

    Args:
        items: Mappings, dataclasses or objects carrying ``value_key``
        value_key: Name of the value field

    Returns:
        New dictionaries in rank order with ``class``, ``rank`` and
        ``cumulative_share`` added; the inputs are not modified
    """
    rows = [_as_dict(item) for item in items]
    ranked = sorted(rows, key=lambda row: _item_value(row, value_key), reverse=True)

    total_value = sum(_item_value(row, value_key) for row in ranked)

    cumulative = 0.0
    result = []
    for rank, row in enumerate(ranked, start=1):
        cumulative += _item_value(row, value_key)

        if total_value > 0:
            share = cumulative / total_value
            row['class'] = assign_class(share)
            row['cumulative_share'] = share
        else:
            row['class'] = 'C'
            row['cumulative_share'] = None

        row['rank'] = rank
        result.append(row)

    return result


def count_classes(classified: Sequence[Mapping]) -> Dict[str, int]:
    """Count classified items per class."""
    counts = {'A': 0, 'B': 0, 'C': 0}
    for row in classified:
        counts[row['class']] += 1
    return counts
