# demand_planner/core/inventory_math.py
import math
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence

from scipy import stats

from ..models import SalesRecord, ForecastPoint
from ..utils.math_utils import clamp, population_std_dev

# Simplified z-score table for the supported service levels
Z_SCORES = {
    0.90: 1.28,
    0.95: 1.65,
    0.99: 2.33
}
DEFAULT_Z_SCORE = 1.65


def calculate_eoq(
    annual_demand: float,
    ordering_cost: float,
    holding_cost: float
) -> Optional[float]:
    """Calculate the economic order quantity.

    EOQ = sqrt(2 * D * S / H)

    Args:
        annual_demand: Annual demand in units (D)
        ordering_cost: Cost per order (S)
        holding_cost: Annual holding cost per unit (H)

    Returns:
        EOQ in units, or None if any input is missing or zero
    """
    if not annual_demand or not ordering_cost or not holding_cost:
        return None

    return math.sqrt((2 * annual_demand * ordering_cost) / holding_cost)


def calculate_reorder_point(
    average_daily_demand: float,
    lead_time_days: float,
    safety_stock: float
) -> float:
    """Calculate the reorder point: demand during lead time plus safety stock."""
    return (average_daily_demand * lead_time_days) + safety_stock


def get_z_score(service_level: float) -> float:
    """Look up the z-score for a service level, 1.65 for unrecognized levels."""
    for level, z_score in Z_SCORES.items():
        if math.isclose(service_level, level):
            return z_score
    return DEFAULT_Z_SCORE


def calculate_safety_stock(
    average_daily_demand: float,
    lead_time_days: float,
    service_level: float,
    demand_std_dev: float
) -> float:
    """Calculate safety stock.

    SS = Z * sigma * sqrt(L)
    where sigma is the standard deviation of demand and L the lead time.
    Average daily demand does not enter the formula; it is accepted so the
    signature mirrors the reorder point calculation.

    Args:
        average_daily_demand: Average daily demand in units
        lead_time_days: Lead time in days
        service_level: Target service level as a fraction (0.90, 0.95, 0.99)
        demand_std_dev: Standard deviation of demand

    Returns:
        Safety stock in units
    """
    z_score = get_z_score(service_level)
    return z_score * demand_std_dev * math.sqrt(max(0.0, lead_time_days))


def calculate_service_level(
    safety_stock: float,
    demand_std_dev: float,
    lead_time_days: float
) -> float:
    """Calculate the cycle service level achieved with a given safety stock.

    Args:
        safety_stock: Safety stock in units
        demand_std_dev: Standard deviation of demand
        lead_time_days: Lead time in days

    Returns:
        Service level as a fraction
    """
    denominator = demand_std_dev * math.sqrt(max(0.0, lead_time_days))

    # Avoid division by zero
    if denominator == 0:
        return 1.0

    z_score = safety_stock / denominator
    return float(min(1.0, stats.norm.cdf(z_score)))


def calculate_turnover(cost_of_goods_sold: float, average_inventory: float) -> float:
    """Inventory turnover, 0 when there is no average inventory."""
    if not average_inventory:
        return 0.0
    return cost_of_goods_sold / average_inventory


def calculate_days_of_inventory_outstanding(
    average_inventory: float,
    cost_of_goods_sold: float,
    days: float = 365
) -> float:
    """Days of inventory outstanding, 0 when cost of goods sold is 0."""
    if not cost_of_goods_sold:
        return 0.0
    return (average_inventory / cost_of_goods_sold) * days


def calculate_fill_rate(units_shipped: float, units_ordered: float) -> float:
    """Fill rate. No orders counts as a perfect fill (1.0)."""
    if not units_ordered:
        return 1.0
    return units_shipped / units_ordered


def calculate_stockout_probability(
    average_demand: float,
    safety_stock: float,
    demand_std_dev: float
) -> float:
    """Approximate the probability that demand exceeds average plus safety stock.

    Uses the closed-form normal tail approximation
    p = exp(-0.717 * z - 0.416 * z^2) with z = SS / sigma.

    Args:
        average_demand: Average demand (kept for signature symmetry)
        safety_stock: Safety stock in units
        demand_std_dev: Standard deviation of demand

    Returns:
        Probability in [0, 1]
    """
    if not demand_std_dev:
        return 0.0

    z = safety_stock / demand_std_dev
    probability = math.exp(-0.717 * z - 0.416 * z * z)

    return clamp(probability, 0.0, 1.0)


def calculate_std_dev(values: Sequence[float]) -> float:
    """Population standard deviation of raw values."""
    return population_std_dev(values)


def aggregate_daily_totals(records: Sequence[SalesRecord]) -> Dict:
    """Sum sales quantities per calendar date, in first-seen order."""
    totals = OrderedDict()
    for record in records:
        totals[record.date] = totals.get(record.date, 0.0) + record.quantity
    return totals


def calculate_daily_demand(records: Sequence[SalesRecord]) -> float:
    """Average demand per day that had sales.

    Args:
        records: Sales records for one product

    Returns:
        Total quantity divided by the number of distinct sales dates
    """
    if not records:
        return 0.0

    totals = aggregate_daily_totals(records)
    return sum(totals.values()) / len(totals)


def calculate_forecast_accuracy(
    records: Sequence[SalesRecord],
    forecast: Sequence[ForecastPoint]
) -> Optional[float]:
    """Calculate forecast accuracy as 1 - MAPE.

    Each sales record is matched to the forecast point with the same date.
    Records with zero actual demand are excluded from the MAPE.

    Args:
        records: Actual sales records
        forecast: Forecast points

    Returns:
        Accuracy in [0, 1], or None if nothing could be matched
    """
    if not records or not forecast:
        return None

    predicted_by_date = {}
    for point in forecast:
        predicted_by_date.setdefault(point.date, point.predicted)

    errors: List[float] = []
    for record in records:
        if record.date not in predicted_by_date or record.quantity <= 0:
            continue
        predicted = predicted_by_date[record.date]
        errors.append(abs((record.quantity - predicted) / record.quantity))

    if not errors:
        return None

    mape = sum(errors) / len(errors)
    return max(0.0, 1.0 - mape)
