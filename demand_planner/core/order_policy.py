# demand_planner/core/order_policy.py
from typing import Optional, Sequence

from ..models import ForecastPoint, OptimalOrder

NEAR_TERM_DAYS = 7
ORDER_BUFFER = 1.2
URGENT_THRESHOLD = 0.5
CRITICAL_THRESHOLD = 0.25


def calculate_forecasted_demand(forecast: Sequence[ForecastPoint], days: int = NEAR_TERM_DAYS) -> float:
    """Sum of predicted demand over the first ``days`` forecast points."""
    return sum(point.predicted for point in list(forecast)[:days])


def calculate_optimal_order(
    forecast: Sequence[ForecastPoint],
    current_stock: float,
    reorder_point: float,
    max_stock: float,
    order_buffer: float = ORDER_BUFFER,
    urgent_threshold: float = URGENT_THRESHOLD,
    critical_threshold: float = CRITICAL_THRESHOLD,
    product_id: Optional[str] = None,
    product_name: Optional[str] = None
) -> OptimalOrder:
    """Calculate the order quantity for a product given capacity constraints.

    The order covers the gap to the reorder point, raised to the near-term
    forecasted draw-down plus a buffer, and capped so stock never exceeds
    ``max_stock``.

    Args:
        forecast: Forecast points for the product (only the first 7 are used)
        current_stock: Units on hand
        reorder_point: Reorder point in units
        max_stock: Storage capacity in units
        order_buffer: Multiplier applied to the near-term forecasted demand
        urgent_threshold: Fraction of the reorder point below which the order is urgent
        critical_threshold: Fraction of the reorder point below which the order is critical
        product_id: Optional product identifier carried on the result
        product_name: Optional product name carried on the result

    Returns:
        OptimalOrder with unrounded quantities
    """
    recommended = max(0.0, reorder_point - current_stock)

    forecasted_demand = calculate_forecasted_demand(forecast)
    adjusted = max(recommended, forecasted_demand * order_buffer)

    final = max(0.0, min(adjusted, max_stock - current_stock))

    return OptimalOrder(
        recommended=recommended,
        adjusted=adjusted,
        final=final,
        urgent=current_stock < reorder_point * urgent_threshold,
        critical=current_stock < reorder_point * critical_threshold,
        product_id=product_id,
        product_name=product_name
    )
