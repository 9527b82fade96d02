# demand_planner/services/health_metrics_service.py
import logging
from typing import Any, Dict, List, Optional, Sequence

from demand_planner.config import config
from demand_planner.models import ForecastPoint, HealthMetric, Product, SalesRecord
from demand_planner.core.inventory_math import (
    calculate_daily_demand, calculate_std_dev, calculate_safety_stock,
    calculate_reorder_point, calculate_stockout_probability, calculate_turnover,
    calculate_days_of_inventory_outstanding, calculate_forecast_accuracy,
    calculate_service_level
)
from demand_planner.utils.validation import (
    normalize_products, normalize_sales_records, normalize_forecast
)

logger = logging.getLogger(__name__)


def filter_product_sales(product: Product, records: Sequence[SalesRecord]) -> List[SalesRecord]:
    """Select the sales records that belong to a product.

    Records whose product id equals the product's id win. When no record
    matches by id, records with the product's name are used, whatever id they
    carry.
    """
    by_id = [record for record in records if record.product_id == product.id]
    if by_id:
        return by_id

    if not product.name:
        return []
    return [record for record in records if record.product_name == product.name]


def filter_product_forecast(product: Product, forecast: Sequence[ForecastPoint]) -> List[ForecastPoint]:
    """Select the forecast points for a product.

    A forecast without any product-tagged points is an aggregate series and
    applies to every product.
    """
    if not any(point.product_id is not None for point in forecast):
        return list(forecast)
    return [point for point in forecast if point.product_id == product.id]


def resolve_service_level(product: Product, default: float) -> float:
    """Service level as a fraction; percentages such as 95 are converted."""
    level = product.service_level if product.service_level else default
    if level > 1:
        level = level / 100.0
    return level


class HealthMetricsService:
    """Service computing per-product inventory health metrics."""

    def __init__(self, business_rules: Optional[Dict[str, Any]] = None):
        """Initialize the health metrics service.

        Args:
            business_rules: Optional override of ``config.business_rules``
        """
        self.business_rules = business_rules or config.business_rules

    def calculate_product_health(
        self,
        product: Product,
        sales_records: Sequence[SalesRecord],
        forecast: Sequence[ForecastPoint]
    ) -> HealthMetric:
        """Calculate the health metric row for one product.

        Daily demand averages the per-date totals, while the demand standard
        deviation is taken over the raw per-record quantities.

        Args:
            product: Product
            sales_records: All normalized sales records
            forecast: All normalized forecast points

        Returns:
            HealthMetric
        """
        rules = self.business_rules
        product_sales = filter_product_sales(product, sales_records)
        product_forecast = filter_product_forecast(product, forecast)

        lead_time = product.lead_time_days or rules['default_lead_time']
        service_level = resolve_service_level(product, rules['default_service_level'])

        daily_demand = calculate_daily_demand(product_sales)
        demand_std_dev = calculate_std_dev([record.quantity for record in product_sales])

        safety_stock = calculate_safety_stock(daily_demand, lead_time, service_level, demand_std_dev)
        reorder_point = calculate_reorder_point(daily_demand, lead_time, safety_stock)

        # Current stock stands in for average inventory
        average_inventory = product.current_stock or rules['default_average_inventory']
        total_revenue = sum(record.revenue or 0.0 for record in product_sales)

        metric = HealthMetric(
            product_id=product.id,
            product_name=product.name,
            daily_demand=daily_demand,
            demand_std_dev=demand_std_dev,
            safety_stock=safety_stock,
            reorder_point=reorder_point,
            stockout_probability=calculate_stockout_probability(daily_demand, safety_stock, demand_std_dev),
            turnover_rate=calculate_turnover(total_revenue, average_inventory),
            days_of_inventory=calculate_days_of_inventory_outstanding(average_inventory, daily_demand, 1),
            forecast_accuracy=calculate_forecast_accuracy(product_sales, product_forecast),
            service_level=calculate_service_level(safety_stock, demand_std_dev, lead_time)
        )

        logger.debug(
            f"Product {product.id}: daily demand {daily_demand:.2f}, "
            f"safety stock {safety_stock:.2f}, reorder point {reorder_point:.2f}"
        )
        return metric

    def compute_health(
        self,
        products: Any,
        sales_records: Any,
        forecast: Any = None
    ) -> List[HealthMetric]:
        """Calculate health metrics for every product, in product order.

        Args:
            products: List of Product objects or raw product mappings
            sales_records: List of SalesRecord objects or raw sales rows
            forecast: Optional forecast (list of points or {'forecast': [...]})

        Returns:
            List of HealthMetric, one per product

        Raises:
            ValidationError: If products or sales are not lists
        """
        products = normalize_products(products)
        sales_records = normalize_sales_records(sales_records if sales_records is not None else [])
        forecast = normalize_forecast(forecast) if forecast else []

        metrics = [self.calculate_product_health(p, sales_records, forecast) for p in products]

        logger.info(f"Calculated health metrics for {len(metrics)} products from {len(sales_records)} sales records")
        return metrics
