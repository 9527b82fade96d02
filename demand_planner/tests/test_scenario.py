"""
Tests for what-if scenario projection.
"""
import unittest
from datetime import date, timedelta

from demand_planner.core.scenario import (
    apply_scenario, get_severity, get_risk_level, scale_forecast, to_scenario
)
from demand_planner.exceptions import ScenarioError, ValidationError
from demand_planner.models import ForecastPoint, Product, Scenario, ScenarioType, Severity
from demand_planner.services.scenario_service import ScenarioService


def flat_forecast(value=100.0, days=10, start=date(2024, 3, 1)):
    return [
        ForecastPoint(
            date=start + timedelta(days=i),
            predicted=value,
            upper_bound=value * 1.1,
            lower_bound=value * 0.9
        )
        for i in range(days)
    ]


class TestScenarioHelpers(unittest.TestCase):
    def test_to_scenario(self):
        scenario = to_scenario({'type': 'promotion', 'parameters': {'multiplier': 3}})

        self.assertEqual(scenario.scenario_type, ScenarioType.PROMOTION)
        self.assertEqual(scenario.parameters, {'multiplier': 3})

    def test_to_scenario_rejects_malformed(self):
        with self.assertRaises(ValidationError):
            to_scenario('demand_shock')
        with self.assertRaises(ValidationError):
            to_scenario({'parameters': {}})
        with self.assertRaises(ValidationError):
            to_scenario({'type': 'custom', 'parameters': [1, 2]})

    def test_unknown_type_has_no_enum(self):
        self.assertIsNone(Scenario(type='alien_invasion').scenario_type)

    def test_get_severity(self):
        self.assertEqual(get_severity(2.0), Severity.HIGH)
        self.assertEqual(get_severity(1.5), Severity.MEDIUM)
        self.assertEqual(get_severity(1.2), Severity.LOW)

    def test_get_risk_level(self):
        self.assertEqual(get_risk_level(ScenarioType.SUPPLY_DISRUPTION, 1.0), Severity.HIGH)
        self.assertEqual(get_risk_level(ScenarioType.DEMAND_SHOCK, 2.5), Severity.HIGH)
        self.assertEqual(get_risk_level(ScenarioType.DEMAND_SHOCK, 1.5), Severity.LOW)
        self.assertEqual(get_risk_level(ScenarioType.PROMOTION, 2.0), Severity.MEDIUM)

    def test_scale_forecast_all_points(self):
        scaled = scale_forecast(flat_forecast(days=3), 2.0, None, 'double')

        self.assertEqual([p.predicted for p in scaled], [200.0, 200.0, 200.0])
        self.assertEqual(scaled[0].scenario_label, 'double')


class TestApplyScenario(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.base = flat_forecast()

    def test_demand_shock(self):
        scenario = {'type': 'demand_shock', 'parameters': {'multiplier': 1.5, 'duration': 7}}
        result = apply_scenario(self.base, scenario)

        self.assertEqual([p.predicted for p in result.perturbed_forecast[:7]], [150.0] * 7)
        self.assertEqual([p.predicted for p in result.perturbed_forecast[7:]], [100.0] * 3)
        self.assertEqual(result.perturbed_forecast[0].scenario_label, '1.5x demand')
        self.assertIsNone(result.perturbed_forecast[7].scenario_label)

        summary = result.summary
        self.assertEqual(summary.total_demand_impact, 500)
        self.assertEqual(summary.percentage_change, 50)
        self.assertEqual(summary.severity, Severity.MEDIUM)
        self.assertEqual(summary.risk_level, Severity.LOW)

    def test_demand_shock_on_thirty_day_forecast(self):
        base = flat_forecast(days=30)
        scenario = {'type': 'demand_shock', 'parameters': {'multiplier': 1.5, 'duration': 7}}
        result = apply_scenario(base, scenario)

        self.assertEqual(len(result.perturbed_forecast), 30)
        self.assertEqual([p.predicted for p in result.perturbed_forecast[:7]], [150.0] * 7)
        self.assertEqual([p.predicted for p in result.perturbed_forecast[7:]], [100.0] * 23)

    def test_base_forecast_is_not_modified(self):
        apply_scenario(self.base, {'type': 'demand_shock', 'parameters': {'multiplier': 3}})

        self.assertEqual([p.predicted for p in self.base], [100.0] * 10)
        self.assertIsNone(self.base[0].scenario_label)

    def test_demand_shock_defaults(self):
        result = apply_scenario(self.base, {'type': 'demand_shock', 'parameters': {}})

        self.assertEqual(result.perturbed_forecast[6].predicted, 150.0)
        self.assertEqual(result.perturbed_forecast[7].predicted, 100.0)
        self.assertEqual(result.summary.details['duration'], 7)

    def test_demand_shock_stock_impact(self):
        products = [{'id': 'P1', 'name': 'Widget', 'current_stock': 30, 'daily_demand': 10}]
        result = apply_scenario(self.base, {'type': 'demand_shock', 'parameters': {}}, products)

        impact = result.stock_impact[0]
        self.assertEqual(impact['original_days_until_stockout'], 3.0)
        self.assertEqual(impact['new_days_until_stockout'], 2.0)
        self.assertEqual(impact['additional_units_needed'], 35)
        self.assertEqual(impact['recommendation'], 'URGENT: Order immediately')
        self.assertEqual(result.summary.products_affected, 1)
        self.assertEqual(result.summary.details['total_additional_units'], 35)

    def test_promotion(self):
        products = [Product(id='P1', name='Widget', current_stock=50, daily_demand=10)]
        result = apply_scenario(self.base, {'type': 'promotion', 'parameters': {}}, products)

        self.assertEqual([p.predicted for p in result.perturbed_forecast[:4]], [200.0, 200.0, 200.0, 100.0])
        self.assertEqual(result.perturbed_forecast[0].scenario_label, '2.0x promotion lift')

        impact = result.stock_impact[0]
        self.assertEqual(impact['expected_demand_during_promo'], 60)
        self.assertEqual(impact['extra_units_needed'], 30)
        self.assertEqual(impact['stock_after_promo'], -10)
        self.assertTrue(impact['needs_reorder'])
        self.assertEqual(impact['recommendation'], 'ORDER 12 units')

        self.assertEqual(result.summary.percentage_change, 100)
        self.assertEqual(result.summary.severity, Severity.HIGH)
        self.assertEqual(result.summary.risk_level, Severity.MEDIUM)
        self.assertEqual(result.summary.details['products_needing_reorder'], 1)

    def test_supply_disruption(self):
        """Supply disruption leaves demand unchanged and reports stock risk."""
        products = [
            {'id': 'P1', 'current_stock': 100, 'daily_demand': 10, 'lead_time_days': 7},
            {'id': 'P2', 'current_stock': 1000, 'daily_demand': 10, 'lead_time_days': 7}
        ]
        result = apply_scenario(self.base, {'type': 'supply_disruption', 'parameters': {}}, products)

        self.assertEqual([p.predicted for p in result.perturbed_forecast], [100.0] * 10)

        at_risk, safe = result.stock_impact
        self.assertEqual(at_risk['demand_during_disruption'], 210)
        self.assertEqual(at_risk['stockout_risk'], 110)
        self.assertEqual(at_risk['risk_level'], 'high')
        self.assertEqual(at_risk['recommendation'], 'Order 132 units immediately')
        self.assertEqual(safe['risk_level'], 'low')
        self.assertEqual(safe['recommendation'], 'Sufficient stock')

        summary = result.summary
        self.assertEqual(summary.total_demand_impact, 0)
        self.assertEqual(summary.risk_level, Severity.HIGH)
        self.assertEqual(summary.details['delay_days'], 14)
        self.assertEqual(summary.details['capacity_reduction'], 30)
        self.assertEqual(summary.details['products_at_risk'], 1)

    def test_custom_without_duration_scales_everything(self):
        result = apply_scenario(self.base, {'type': 'custom', 'parameters': {'multiplier': 0.5}})

        self.assertEqual([p.predicted for p in result.perturbed_forecast], [50.0] * 10)
        self.assertEqual(result.summary.total_demand_impact, -500)
        self.assertEqual(result.summary.percentage_change, -50)

    def test_unknown_type_is_noop(self):
        result = apply_scenario(self.base, {'type': 'alien_invasion', 'parameters': {'multiplier': 5}})

        self.assertEqual(result.perturbed_forecast, self.base)
        self.assertEqual(result.summary.total_demand_impact, 0)
        self.assertEqual(result.summary.percentage_change, 0)
        self.assertEqual(result.stock_impact, [])

    def test_unknown_type_strict(self):
        with self.assertRaises(ScenarioError):
            apply_scenario(self.base, {'type': 'alien_invasion', 'parameters': {}}, strict=True)

    def test_forecast_must_be_list(self):
        with self.assertRaises(ValidationError):
            apply_scenario('not a forecast', {'type': 'custom', 'parameters': {}})

    def test_empty_forecast(self):
        result = apply_scenario([], {'type': 'demand_shock', 'parameters': {}})

        self.assertEqual(result.perturbed_forecast, [])
        self.assertEqual(result.summary.total_demand_impact, 0)


class TestScenarioService(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.service = ScenarioService(scenario_config={
            'default_daily_demand': 10.0,
            'default_lead_time': 7.0,
            'strict_types': False
        })
        self.raw_forecast = {'forecast': [
            {'date': '2024-03-02', 'predicted': 100},
            {'date': '2024-03-01', 'predicted': 100}
        ]}

    def test_analyze_normalizes_raw_forecast(self):
        result = self.service.analyze(self.raw_forecast, {'type': 'promotion', 'parameters': {'duration': 1}})

        self.assertEqual(result.perturbed_forecast[0].date, date(2024, 3, 1))
        self.assertEqual(result.perturbed_forecast[0].predicted, 200.0)
        self.assertEqual(result.perturbed_forecast[1].predicted, 100.0)

    def test_strict_override(self):
        with self.assertRaises(ScenarioError):
            self.service.analyze(self.raw_forecast, {'type': 'unknown'}, strict=True)

    def test_to_dict(self):
        payload = self.service.demand_shock(self.raw_forecast, multiplier=2.0, duration=1).to_dict()

        self.assertEqual(payload['scenario']['type'], 'demand_shock')
        self.assertEqual(payload['perturbed_forecast'][0]['predicted'], 200.0)
        self.assertEqual(payload['summary']['severity'], 'high')
        self.assertEqual(payload['summary']['duration'], 1)


if __name__ == '__main__':
    unittest.main()
