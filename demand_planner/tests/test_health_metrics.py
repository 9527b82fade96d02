"""
Tests for the health metrics service.
"""
import math
import unittest
from datetime import date

from demand_planner.exceptions import ValidationError
from demand_planner.models import Product, SalesRecord
from demand_planner.services.health_metrics_service import (
    HealthMetricsService,
    filter_product_sales,
    filter_product_forecast,
    resolve_service_level
)
from demand_planner.utils.validation import normalize_forecast

BUSINESS_RULES = {
    'default_service_level': 0.95,
    'default_lead_time': 7,
    'default_average_inventory': 100,
    'default_unit_cost': 10,
    'default_max_stock': 500,
    'order_buffer': 1.2,
    'urgent_threshold': 0.5,
    'critical_threshold': 0.25
}


class TestProductMatching(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.product = Product(id='P1', name='Widget')
        self.records = [
            SalesRecord(date=date(2024, 1, 1), quantity=5, product_id='P1'),
            SalesRecord(date=date(2024, 1, 1), quantity=7, product_id='P2', product_name='Widget'),
            SalesRecord(date=date(2024, 1, 2), quantity=9, product_name='Widget'),
            SalesRecord(date=date(2024, 1, 2), quantity=11)
        ]

    def test_filter_product_sales(self):
        """Id matches take priority over name matches."""
        matched = filter_product_sales(self.product, self.records)

        self.assertEqual([record.quantity for record in matched], [5])

    def test_name_match_when_ids_differ(self):
        records = [SalesRecord(date=date(2024, 1, 1), quantity=10, product_id='SKU-9', product_name='Widget')]

        matched = filter_product_sales(self.product, records)
        self.assertEqual([record.quantity for record in matched], [10])

        metric = HealthMetricsService(BUSINESS_RULES).calculate_product_health(self.product, records, [])
        self.assertEqual(metric.daily_demand, 10)

    def test_name_match_without_id(self):
        matched = filter_product_sales(self.product, self.records[1:])

        self.assertEqual([record.quantity for record in matched], [7, 9])

    def test_no_match(self):
        self.assertEqual(filter_product_sales(Product(id='P9'), self.records), [])

    def test_untagged_forecast_applies_to_all(self):
        forecast = normalize_forecast([{'date': '2024-01-03', 'predicted': 10}])

        self.assertEqual(len(filter_product_forecast(self.product, forecast)), 1)

    def test_tagged_forecast_filters(self):
        forecast = normalize_forecast([
            {'date': '2024-01-03', 'predicted': 10, 'product_id': 'P1'},
            {'date': '2024-01-03', 'predicted': 20, 'product_id': 'P2'}
        ])
        matched = filter_product_forecast(self.product, forecast)

        self.assertEqual([point.predicted for point in matched], [10])

    def test_resolve_service_level(self):
        self.assertEqual(resolve_service_level(Product(id='P1'), 0.95), 0.95)
        self.assertEqual(resolve_service_level(Product(id='P1', service_level=0.99), 0.95), 0.99)
        self.assertAlmostEqual(resolve_service_level(Product(id='P1', service_level=90), 0.95), 0.90)


class TestHealthMetricsService(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.service = HealthMetricsService(BUSINESS_RULES)
        self.products = [{'id': 'P1', 'name': 'Widget', 'current_stock': 50}]
        self.sales = [
            {'date': '2024-01-01', 'sales': 10, 'product_id': 'P1', 'revenue': 100},
            {'date': '2024-01-01', 'sales': 20, 'product_id': 'P1', 'revenue': 200},
            {'date': '2024-01-02', 'sales': 30, 'product_id': 'P1', 'revenue': 300},
            {'date': '2024-01-02', 'sales': 99, 'product_id': 'OTHER'}
        ]
        self.forecast = [
            {'date': '2024-01-01', 'predicted': 20},
            {'date': '2024-01-02', 'predicted': 30}
        ]

    def test_compute_health(self):
        metrics = self.service.compute_health(self.products, self.sales, self.forecast)

        self.assertEqual(len(metrics), 1)
        metric = metrics[0]

        std_dev = math.sqrt(200 / 3)
        safety_stock = 1.65 * std_dev * math.sqrt(7)

        self.assertEqual(metric.product_id, 'P1')
        self.assertAlmostEqual(metric.daily_demand, 30.0)
        self.assertAlmostEqual(metric.demand_std_dev, std_dev)
        self.assertAlmostEqual(metric.safety_stock, safety_stock)
        self.assertAlmostEqual(metric.reorder_point, 30 * 7 + safety_stock)
        self.assertAlmostEqual(metric.turnover_rate, 600 / 50)
        self.assertAlmostEqual(metric.days_of_inventory, 50 / 30)
        self.assertAlmostEqual(metric.forecast_accuracy, 2 / 3)
        self.assertGreater(metric.service_level, 0.9)
        self.assertGreater(metric.stockout_probability, 0.0)
        self.assertLess(metric.stockout_probability, 1.0)

    def test_product_without_sales(self):
        """No sales gives zero demand metrics rather than an error."""
        metrics = self.service.compute_health([{'id': 'P9', 'name': 'Unsold'}], self.sales)
        metric = metrics[0]

        self.assertEqual(metric.daily_demand, 0)
        self.assertEqual(metric.safety_stock, 0)
        self.assertEqual(metric.reorder_point, 0)
        self.assertEqual(metric.stockout_probability, 0)
        self.assertEqual(metric.turnover_rate, 0)
        self.assertIsNone(metric.forecast_accuracy)

    def test_results_follow_product_order(self):
        products = [{'id': 'B'}, {'id': 'A'}, {'id': 'C'}]
        metrics = self.service.compute_health(products, [])

        self.assertEqual([metric.product_id for metric in metrics], ['B', 'A', 'C'])

    def test_invalid_products(self):
        with self.assertRaises(ValidationError):
            self.service.compute_health({'id': 'P1'}, self.sales)

    def test_to_dict_rounds(self):
        payload = self.service.compute_health(self.products, self.sales, self.forecast)[0].to_dict()

        self.assertEqual(payload['daily_demand'], 30.0)
        self.assertEqual(payload['forecast_accuracy'], 0.67)
        self.assertEqual(payload['days_of_inventory'], 1.67)


if __name__ == '__main__':
    unittest.main()
