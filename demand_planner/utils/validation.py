# demand_planner/utils/validation.py
import logging
from dataclasses import fields
from typing import Any, Dict, Iterable, List, Mapping, Optional

from demand_planner.models import SalesRecord, Product, ForecastPoint
from demand_planner.exceptions import ValidationError
from demand_planner.utils.date_utils import convert_to_date
from demand_planner.utils.math_utils import coerce_number

logger = logging.getLogger(__name__)

DATE_KEYS = ('date', 'Date', 'timestamp')
QUANTITY_KEYS = ('sales', 'Sales', 'quantity', 'Quantity')
REVENUE_KEYS = ('revenue', 'Revenue')

PRODUCT_NUMERIC_FIELDS = (
    'unit_cost', 'unit_price', 'current_stock', 'lead_time_days', 'reorder_point',
    'safety_stock', 'max_stock', 'service_level', 'daily_demand', 'weekly_demand',
    'annual_sales'
)
PRODUCT_ZERO_DEFAULT_FIELDS = ('unit_cost', 'unit_price', 'current_stock')

MAX_REPORTED_ERRORS = 20


def _first_present(row: Mapping, keys: Iterable[str]) -> Any:
    """Return the first value under ``keys`` that is not None or empty."""
    for key in keys:
        value = row.get(key)
        if value is not None and value != '':
            return value
    return None


def _require_list(rows: Any, name: str) -> List:
    if not isinstance(rows, (list, tuple)):
        raise ValidationError(
            f"{name} must be a list, got {type(rows).__name__}",
            code='INVALID_STRUCTURE'
        )
    return list(rows)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def validate_sales_row(row: Mapping) -> List[str]:
    """Validate a single raw sales row.

    Args:
        row: Raw row mapping

    Returns:
        List of error messages (empty when the row is usable)
    """
    errors = []

    raw_date = _first_present(row, DATE_KEYS)
    if raw_date is None:
        errors.append('Missing required field: date')
    elif convert_to_date(raw_date) is None:
        errors.append(f"Invalid date format: {raw_date}. Use YYYY-MM-DD")

    raw_quantity = _first_present(row, QUANTITY_KEYS)
    if raw_quantity is None:
        errors.append('Missing required field: sales')

    for key in QUANTITY_KEYS + REVENUE_KEYS:
        value = row.get(key)
        if value is None or value == '':
            continue
        number = coerce_number(value)
        if number is None:
            errors.append(f"Field {key} must be a number: {value}")
        elif number < 0:
            errors.append(f"Field {key} cannot be negative: {number}")

    return errors


def normalize_sales_record(row: Any) -> Optional[SalesRecord]:
    """Convert one raw row into a SalesRecord.

    Args:
        row: SalesRecord or mapping

    Returns:
        SalesRecord, or None if the row has no usable date or quantity
    """
    if isinstance(row, SalesRecord):
        return row

    if not isinstance(row, Mapping):
        return None

    record_date = convert_to_date(_first_present(row, DATE_KEYS))
    if record_date is None:
        return None

    quantity = coerce_number(_first_present(row, QUANTITY_KEYS), allow_negative=False)
    if quantity is None:
        return None

    return SalesRecord(
        date=record_date,
        quantity=quantity,
        revenue=coerce_number(_first_present(row, REVENUE_KEYS), allow_negative=False),
        product_id=_optional_text(row.get('product_id')),
        product_name=_optional_text(row.get('product_name'))
    )


def normalize_sales_records(rows: Any) -> List[SalesRecord]:
    """Normalize raw sales rows into chronologically sorted SalesRecords.

    Rows with an unusable date or quantity are skipped rather than failing
    the whole batch.

    Args:
        rows: List of mappings or SalesRecord objects

    Returns:
        List of SalesRecord sorted by date (stable)

    Raises:
        ValidationError: If ``rows`` is not a list
    """
    rows = _require_list(rows, 'Sales data')

    records = []
    skipped = 0
    for row in rows:
        record = normalize_sales_record(row)
        if record is None:
            skipped += 1
            continue
        records.append(record)

    if skipped:
        logger.warning(f"Skipped {skipped} of {len(rows)} sales rows with invalid date or quantity")

    records.sort(key=lambda r: r.date)
    return records


def validate_sales_data(rows: Any) -> Dict[str, Any]:
    """Validate raw sales data and collect quality statistics.

    Args:
        rows: List of raw row mappings

    Returns:
        Dictionary with valid flag, errors, warnings and stats
    """
    if not isinstance(rows, (list, tuple)):
        return {'valid': False, 'errors': ['Data must be an array'], 'warnings': [], 'stats': {}}

    if not rows:
        return {'valid': False, 'errors': ['No data provided'], 'warnings': [], 'stats': {}}

    errors = []
    warnings = []
    stats = {
        'total_rows': len(rows),
        'valid_rows': 0,
        'invalid_rows': 0,
        'date_range': {'min': None, 'max': None},
        'numeric_stats': {}
    }

    for index, row in enumerate(rows):
        row_errors = validate_sales_row(row) if isinstance(row, Mapping) else ['Row must be an object']

        if row_errors:
            stats['invalid_rows'] += 1
            errors.extend(f"Row {index + 1}: {error}" for error in row_errors)
            continue

        stats['valid_rows'] += 1

        row_date = convert_to_date(_first_present(row, DATE_KEYS))
        date_range = stats['date_range']
        if date_range['min'] is None or row_date < date_range['min']:
            date_range['min'] = row_date
        if date_range['max'] is None or row_date > date_range['max']:
            date_range['max'] = row_date

        for field_name in ('sales', 'revenue', 'quantity'):
            value = coerce_number(row.get(field_name))
            if value is None:
                continue
            field_stats = stats['numeric_stats'].setdefault(
                field_name, {'min': value, 'max': value, 'sum': 0.0, 'count': 0}
            )
            field_stats['min'] = min(field_stats['min'], value)
            field_stats['max'] = max(field_stats['max'], value)
            field_stats['sum'] += value
            field_stats['count'] += 1

    for field_stats in stats['numeric_stats'].values():
        field_stats['avg'] = field_stats['sum'] / field_stats['count']

    total = len(rows)
    if stats['valid_rows'] < total * 0.8:
        percent = round(stats['valid_rows'] / total * 100)
        warnings.append(f"Only {stats['valid_rows']} of {total} rows are valid ({percent}%)")

    if stats['valid_rows'] < 10:
        warnings.append('Very few valid data points. Forecast may be unreliable.')

    return {
        'valid': not errors,
        'errors': errors[:MAX_REPORTED_ERRORS],
        'warnings': warnings,
        'stats': stats
    }


def normalize_product(row: Any) -> Product:
    """Convert one raw catalog row into a Product.

    Args:
        row: Product or mapping

    Returns:
        Product

    Raises:
        ValidationError: If the row is not a mapping or has no id
    """
    if isinstance(row, Product):
        return row

    if not isinstance(row, Mapping):
        raise ValidationError(f"Product must be an object, got {type(row).__name__}", code='INVALID_PRODUCT')

    product_id = _optional_text(_first_present(row, ('id', 'product_id')))
    if product_id is None:
        raise ValidationError('Product ID is required', code='INVALID_PRODUCT', details={'row': dict(row)})

    values = {
        'id': product_id,
        'name': _optional_text(_first_present(row, ('name', 'product_name'))) or '',
        'category': _optional_text(row.get('category')) or ''
    }

    for field_name in PRODUCT_NUMERIC_FIELDS:
        number = coerce_number(row.get(field_name), allow_negative=False)
        if number is None and field_name in PRODUCT_ZERO_DEFAULT_FIELDS:
            number = 0.0
        values[field_name] = number

    return Product(**values)


def normalize_products(rows: Any) -> List[Product]:
    """Normalize a product catalog.

    Raises:
        ValidationError: If ``rows`` is not a list or a product has no id
    """
    rows = _require_list(rows, 'Products')
    return [normalize_product(row) for row in rows]


def normalize_forecast_point(item: Any) -> Optional[ForecastPoint]:
    """Convert one raw forecast entry into a ForecastPoint.

    Missing bounds default to +/-10% of the prediction. Bounds are reordered
    so that upper >= predicted >= lower.

    Args:
        item: ForecastPoint or mapping

    Returns:
        ForecastPoint, or None if the entry has no usable date or prediction
    """
    if isinstance(item, ForecastPoint):
        return item

    if not isinstance(item, Mapping):
        return None

    point_date = convert_to_date(item.get('date'))
    predicted = coerce_number(item.get('predicted'))
    if point_date is None or predicted is None:
        return None

    predicted = max(0.0, predicted)
    upper = coerce_number(item.get('upper_bound'))
    lower = coerce_number(item.get('lower_bound'))
    if upper is None:
        upper = predicted * 1.1
    if lower is None:
        lower = predicted * 0.9

    return ForecastPoint(
        date=point_date,
        predicted=predicted,
        upper_bound=max(upper, predicted),
        lower_bound=min(lower, predicted),
        product_id=_optional_text(item.get('product_id')),
        seasonal_factor=coerce_number(item.get('seasonal_factor'))
    )


def normalize_forecast(points: Any) -> List[ForecastPoint]:
    """Normalize a forecast series.

    Args:
        points: List of mappings/ForecastPoints, or a mapping with a
            ``forecast`` key holding that list

    Returns:
        List of ForecastPoint sorted chronologically (stable)

    Raises:
        ValidationError: If no list of points can be found
    """
    if isinstance(points, Mapping):
        points = points.get('forecast', [])

    points = _require_list(points, 'Forecast')

    normalized = []
    for item in points:
        point = normalize_forecast_point(item)
        if point is not None:
            normalized.append(point)

    if len(normalized) < len(points):
        logger.warning(f"Skipped {len(points) - len(normalized)} forecast points with invalid date or prediction")

    normalized.sort(key=lambda p: p.date)
    return normalized


def validate_product(product: Product) -> Dict[str, str]:
    """Validate a product.

    Args:
        product: Product to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not product.id:
        errors['id'] = 'Product ID is required'

    if not product.name:
        errors['name'] = 'Product name is required'

    for f in fields(product):
        value = getattr(product, f.name)
        if isinstance(value, (int, float)) and value < 0:
            errors[f.name] = f"{f.name} cannot be negative"

    if product.max_stock is not None and product.current_stock > product.max_stock:
        errors['current_stock'] = 'Current stock exceeds max stock'

    return errors
