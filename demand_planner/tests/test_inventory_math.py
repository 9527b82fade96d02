"""
Tests for the inventory math formulas.
"""
import math
import unittest
from datetime import date

from demand_planner.core.inventory_math import (
    calculate_eoq,
    calculate_reorder_point,
    get_z_score,
    calculate_safety_stock,
    calculate_service_level,
    calculate_turnover,
    calculate_days_of_inventory_outstanding,
    calculate_fill_rate,
    calculate_stockout_probability,
    calculate_std_dev,
    calculate_daily_demand,
    calculate_forecast_accuracy
)
from demand_planner.models import SalesRecord, ForecastPoint


class TestOrderQuantityFormulas(unittest.TestCase):
    def test_calculate_eoq(self):
        """EOQ = sqrt(2DS/H)."""
        self.assertAlmostEqual(calculate_eoq(1000, 50, 10), 100.0)

    def test_calculate_eoq_missing_inputs(self):
        """Zero or missing inputs produce no EOQ."""
        self.assertIsNone(calculate_eoq(0, 50, 10))
        self.assertIsNone(calculate_eoq(1000, None, 10))
        self.assertIsNone(calculate_eoq(1000, 50, 0))

    def test_calculate_reorder_point(self):
        self.assertEqual(calculate_reorder_point(10, 7, 20), 90)
        self.assertEqual(calculate_reorder_point(0, 7, 0), 0)


class TestSafetyStock(unittest.TestCase):
    def test_z_score_table(self):
        self.assertEqual(get_z_score(0.90), 1.28)
        self.assertEqual(get_z_score(0.95), 1.65)
        self.assertEqual(get_z_score(0.99), 2.33)

    def test_z_score_unknown_level_defaults(self):
        """Levels outside the table use the 95% z-score."""
        self.assertEqual(get_z_score(0.5), 1.65)
        self.assertEqual(get_z_score(0.975), 1.65)

    def test_calculate_safety_stock(self):
        """SS = Z * sigma * sqrt(L)."""
        self.assertAlmostEqual(calculate_safety_stock(10, 4, 0.95, 10), 33.0)
        self.assertAlmostEqual(calculate_safety_stock(10, 4, 0.99, 10), 46.6)

    def test_safety_stock_ignores_average_demand(self):
        self.assertEqual(
            calculate_safety_stock(5, 9, 0.90, 3),
            calculate_safety_stock(500, 9, 0.90, 3)
        )

    def test_safety_stock_zero_variability(self):
        self.assertEqual(calculate_safety_stock(10, 7, 0.95, 0), 0)

    def test_calculate_service_level(self):
        """Zero safety stock gives a 50% cycle service level."""
        self.assertAlmostEqual(calculate_service_level(0, 10, 4), 0.5)
        self.assertAlmostEqual(calculate_service_level(33, 10, 4), 0.9505, places=3)

    def test_service_level_without_variability(self):
        self.assertEqual(calculate_service_level(10, 0, 7), 1.0)


class TestInventoryRatios(unittest.TestCase):
    def test_calculate_turnover(self):
        self.assertEqual(calculate_turnover(1000, 100), 10)
        self.assertEqual(calculate_turnover(1000, 0), 0)

    def test_days_of_inventory_outstanding(self):
        self.assertAlmostEqual(calculate_days_of_inventory_outstanding(5000, 36500), 50.0)
        self.assertAlmostEqual(calculate_days_of_inventory_outstanding(50, 25, 1), 2.0)
        self.assertEqual(calculate_days_of_inventory_outstanding(5000, 0), 0)

    def test_calculate_fill_rate(self):
        self.assertAlmostEqual(calculate_fill_rate(95, 100), 0.95)
        self.assertEqual(calculate_fill_rate(0, 0), 1)

    def test_stockout_probability_bounds(self):
        """Probability stays within [0, 1] and shrinks as safety stock grows."""
        self.assertEqual(calculate_stockout_probability(10, 0, 5), 1.0)
        self.assertEqual(calculate_stockout_probability(10, 20, 0), 0.0)

        low = calculate_stockout_probability(10, 20, 5)
        high = calculate_stockout_probability(10, 5, 5)
        self.assertLess(low, high)
        self.assertGreaterEqual(low, 0.0)

        z = 1.0
        self.assertAlmostEqual(
            calculate_stockout_probability(10, 5, 5),
            math.exp(-0.717 * z - 0.416 * z * z)
        )


class TestDemandStatistics(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.records = [
            SalesRecord(date=date(2024, 1, 1), quantity=10),
            SalesRecord(date=date(2024, 1, 1), quantity=20),
            SalesRecord(date=date(2024, 1, 2), quantity=30)
        ]

    def test_std_dev_is_population(self):
        self.assertAlmostEqual(calculate_std_dev([10, 20, 30]), math.sqrt(200 / 3))
        self.assertEqual(calculate_std_dev([]), 0)

    def test_daily_demand_averages_per_date_totals(self):
        self.assertAlmostEqual(calculate_daily_demand(self.records), 30.0)
        self.assertEqual(calculate_daily_demand([]), 0)

    def test_forecast_accuracy(self):
        """Accuracy is 1 - MAPE over records with a forecast for their date."""
        forecast = [
            ForecastPoint(date=date(2024, 1, 1), predicted=20, upper_bound=22, lower_bound=18),
            ForecastPoint(date=date(2024, 1, 2), predicted=30, upper_bound=33, lower_bound=27)
        ]

        self.assertAlmostEqual(calculate_forecast_accuracy(self.records, forecast), 2 / 3)

    def test_forecast_accuracy_without_matches(self):
        forecast = [ForecastPoint(date=date(2024, 2, 1), predicted=20, upper_bound=22, lower_bound=18)]

        self.assertIsNone(calculate_forecast_accuracy(self.records, forecast))
        self.assertIsNone(calculate_forecast_accuracy(self.records, []))

    def test_forecast_accuracy_skips_zero_actuals(self):
        records = [
            SalesRecord(date=date(2024, 1, 1), quantity=0),
            SalesRecord(date=date(2024, 1, 2), quantity=30)
        ]
        forecast = [
            ForecastPoint(date=date(2024, 1, 1), predicted=5, upper_bound=6, lower_bound=4),
            ForecastPoint(date=date(2024, 1, 2), predicted=30, upper_bound=33, lower_bound=27)
        ]

        self.assertAlmostEqual(calculate_forecast_accuracy(records, forecast), 1.0)

    def test_forecast_accuracy_floor(self):
        records = [SalesRecord(date=date(2024, 1, 1), quantity=10)]
        forecast = [ForecastPoint(date=date(2024, 1, 1), predicted=100, upper_bound=110, lower_bound=90)]

        self.assertEqual(calculate_forecast_accuracy(records, forecast), 0.0)


if __name__ == '__main__':
    unittest.main()
