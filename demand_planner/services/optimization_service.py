# demand_planner/services/optimization_service.py
import logging
from typing import Any, Dict, List, Optional

from demand_planner.config import config
from demand_planner.models import InventoryReport, Product
from demand_planner.core.abc_classification import classify_abc, count_classes
from demand_planner.core.inventory_math import calculate_safety_stock, calculate_reorder_point
from demand_planner.core.order_policy import calculate_optimal_order, calculate_forecasted_demand
from demand_planner.services.health_metrics_service import (
    HealthMetricsService, filter_product_forecast
)
from demand_planner.utils.math_utils import clamp, round_half_up
from demand_planner.utils.validation import (
    normalize_products, normalize_sales_records, normalize_forecast
)

logger = logging.getLogger(__name__)

# Assumptions used when a product carries no demand statistics
FALLBACK_DEMAND_STD_DEV = 5.0
FALLBACK_SAFETY_STOCK = 20.0


class InventoryOptimizationService:
    """Service producing inventory optimization reports and recommendations."""

    def __init__(
        self,
        business_rules: Optional[Dict[str, Any]] = None,
        default_daily_demand: Optional[float] = None
    ):
        """Initialize the optimization service.

        Args:
            business_rules: Optional override of ``config.business_rules``
            default_daily_demand: Daily demand assumed for products without one
        """
        self.business_rules = business_rules or config.business_rules
        if default_daily_demand is None:
            default_daily_demand = config.scenario_config['default_daily_demand']
        self.default_daily_demand = default_daily_demand
        self.health_service = HealthMetricsService(self.business_rules)

    def annual_value_for(self, product: Product) -> float:
        """Annual consumption value used for ABC ranking."""
        rules = self.business_rules
        volume = product.annual_sales or product.current_stock or rules['default_average_inventory']
        return volume * (product.unit_cost or rules['default_unit_cost'])

    def _daily_demand_for(self, product: Product) -> float:
        if product.daily_demand:
            return product.daily_demand
        if product.weekly_demand:
            return product.weekly_demand / 7
        return self.default_daily_demand

    def optimize(self, products: Any, sales_records: Any = None, forecast: Any = None) -> InventoryReport:
        """Build the inventory optimization report.

        Args:
            products: List of Product objects or raw product mappings
            sales_records: Optional list of SalesRecord objects or raw rows
            forecast: Optional forecast (list of points or {'forecast': [...]})

        Returns:
            InventoryReport with health metrics, ABC classes, orders and summary

        Raises:
            ValidationError: If products is not a list
        """
        rules = self.business_rules
        products = normalize_products(products)
        sales_records = normalize_sales_records(sales_records or [])
        forecast = normalize_forecast(forecast) if forecast else []

        health_metrics = [
            self.health_service.calculate_product_health(product, sales_records, forecast)
            for product in products
        ]

        classified_products = classify_abc([
            {
                'product_id': product.id,
                'product_name': product.name,
                'category': product.category,
                'annual_value': self.annual_value_for(product)
            }
            for product in products
        ])

        optimal_orders = []
        for product, metric in zip(products, health_metrics):
            reorder_point = product.reorder_point if product.reorder_point is not None else metric.reorder_point
            max_stock = product.max_stock if product.max_stock is not None else rules['default_max_stock']

            optimal_orders.append(calculate_optimal_order(
                filter_product_forecast(product, forecast),
                product.current_stock,
                reorder_point,
                max_stock,
                order_buffer=rules['order_buffer'],
                urgent_threshold=rules['urgent_threshold'],
                critical_threshold=rules['critical_threshold'],
                product_id=product.id,
                product_name=product.name
            ))

        class_counts = count_classes(classified_products)
        summary = {
            'total_products': len(products),
            'total_stock': sum(product.current_stock for product in products),
            'total_value': round_half_up(sum(p.current_stock * p.unit_cost for p in products), 2),
            'a_class_items': class_counts['A'],
            'b_class_items': class_counts['B'],
            'c_class_items': class_counts['C'],
            'urgent_orders': sum(1 for order in optimal_orders if order.urgent),
            'critical_orders': sum(1 for order in optimal_orders if order.critical)
        }

        logger.info(
            f"Optimized {summary['total_products']} products: "
            f"{summary['urgent_orders']} urgent, {summary['critical_orders']} critical orders"
        )

        return InventoryReport(
            health_metrics=health_metrics,
            classified_products=classified_products,
            optimal_orders=optimal_orders,
            summary=summary
        )

    def reorder_recommendations(self, products: Any) -> Dict[str, Any]:
        """Calculate reorder recommendations from catalog demand figures.

        Args:
            products: List of Product objects or raw product mappings

        Returns:
            Dictionary with per-product recommendations and a summary
        """
        rules = self.business_rules
        products = normalize_products(products)

        recommendations = []
        for product in products:
            daily_demand = self._daily_demand_for(product)
            lead_time = product.lead_time_days or rules['default_lead_time']
            safety_stock = product.safety_stock or calculate_safety_stock(
                daily_demand, lead_time, rules['default_service_level'], FALLBACK_DEMAND_STD_DEV
            )
            reorder_point = calculate_reorder_point(daily_demand, lead_time, safety_stock)
            current_stock = product.current_stock

            days_until_reorder = max(0.0, (current_stock - reorder_point) / daily_demand)

            recommendations.append({
                'product_id': product.id,
                'product_name': product.name,
                'current_stock': current_stock,
                'reorder_point': round_half_up(reorder_point),
                'safety_stock': round_half_up(safety_stock),
                'days_until_reorder': round_half_up(days_until_reorder, 1),
                'should_reorder': current_stock <= reorder_point,
                'recommended_order': max(0, round_half_up(reorder_point - current_stock + safety_stock)),
                'urgent': current_stock <= reorder_point * rules['urgent_threshold']
            })

        return {
            'recommendations': recommendations,
            'summary': {
                'total_reorder': sum(1 for r in recommendations if r['should_reorder']),
                'urgent_reorder': sum(1 for r in recommendations if r['urgent']),
                'total_recommended_units': sum(r['recommended_order'] for r in recommendations)
            }
        }

    def stockout_risk(self, products: Any, forecast: Any = None) -> Dict[str, Any]:
        """Estimate stockout risk during the replenishment lead time.

        Args:
            products: List of Product objects or raw product mappings
            forecast: Optional forecast (list of points or {'forecast': [...]})

        Returns:
            Dictionary with per-product risks and a summary
        """
        rules = self.business_rules
        products = normalize_products(products)
        forecast = normalize_forecast(forecast) if forecast else []

        risks = []
        for product in products:
            daily_demand = product.daily_demand or self.default_daily_demand
            current_stock = product.current_stock
            lead_time = product.lead_time_days or rules['default_lead_time']
            safety_stock = product.safety_stock or FALLBACK_SAFETY_STOCK

            demand_during_lead_time = daily_demand * lead_time
            probability = max(0.0, (demand_during_lead_time - current_stock + safety_stock) / demand_during_lead_time)

            if probability > 0.7:
                risk_level = 'high'
            elif probability > 0.3:
                risk_level = 'medium'
            else:
                risk_level = 'low'

            risks.append({
                'product_id': product.id,
                'product_name': product.name,
                'current_stock': current_stock,
                'daily_demand': daily_demand,
                'days_until_stockout': round_half_up(current_stock / daily_demand, 1),
                'stockout_probability': clamp(round_half_up(probability, 2)),
                'risk_level': risk_level,
                'forecast_demand_7day': calculate_forecasted_demand(filter_product_forecast(product, forecast)),
                'needs_attention': probability > 0.5
            })

        return {
            'risks': risks,
            'summary': {
                'high_risk': sum(1 for r in risks if r['risk_level'] == 'high'),
                'medium_risk': sum(1 for r in risks if r['risk_level'] == 'medium'),
                'low_risk': sum(1 for r in risks if r['risk_level'] == 'low'),
                'needs_attention': sum(1 for r in risks if r['needs_attention'])
            }
        }
