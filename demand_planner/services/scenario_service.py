# demand_planner/services/scenario_service.py
import logging
from typing import Any, Dict, Optional

from demand_planner.config import config
from demand_planner.models import ScenarioResult
from demand_planner.core.scenario import apply_scenario
from demand_planner.utils.validation import normalize_forecast

logger = logging.getLogger(__name__)


class ScenarioService:
    """Service running what-if scenarios against a base forecast."""

    def __init__(self, scenario_config: Optional[Dict[str, Any]] = None):
        """Initialize the scenario service.

        Args:
            scenario_config: Optional override of ``config.scenario_config``
        """
        self.scenario_config = scenario_config or config.scenario_config

    def analyze(
        self,
        base_forecast: Any,
        scenario: Any,
        products: Any = None,
        strict: Optional[bool] = None
    ) -> ScenarioResult:
        """Apply a scenario to a raw or normalized base forecast.

        Args:
            base_forecast: List of points or {'forecast': [...]}
            scenario: Scenario or {'type', 'parameters'} mapping
            products: Optional products for the stock impact
            strict: Raise on unknown scenario types (defaults to configuration)

        Returns:
            ScenarioResult
        """
        settings = self.scenario_config
        if strict is None:
            strict = settings['strict_types']

        forecast = normalize_forecast(base_forecast)
        result = apply_scenario(
            forecast,
            scenario,
            products=products,
            strict=strict,
            default_daily_demand=settings['default_daily_demand'],
            default_lead_time=settings['default_lead_time']
        )

        logger.info(
            f"Scenario {result.scenario.type}: {result.summary.percentage_change}% demand change, "
            f"{result.summary.products_affected} products affected"
        )
        return result

    def demand_shock(self, base_forecast: Any, multiplier: float = 1.5, duration: int = 7, products: Any = None) -> ScenarioResult:
        """Quick demand shock scenario."""
        return self.analyze(base_forecast, {
            'type': 'demand_shock',
            'parameters': {'multiplier': multiplier, 'duration': duration}
        }, products)

    def supply_disruption(self, base_forecast: Any, delay_days: float = 14, capacity_reduction: float = 0.3, products: Any = None) -> ScenarioResult:
        """Quick supply disruption scenario."""
        return self.analyze(base_forecast, {
            'type': 'supply_disruption',
            'parameters': {'delayDays': delay_days, 'capacityReduction': capacity_reduction}
        }, products)

    def promotion(self, base_forecast: Any, lift: float = 2.0, duration: int = 3, products: Any = None) -> ScenarioResult:
        """Quick promotion scenario."""
        return self.analyze(base_forecast, {
            'type': 'promotion',
            'parameters': {'multiplier': lift, 'duration': duration}
        }, products)
