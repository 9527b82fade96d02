from .health_metrics_service import HealthMetricsService
from .optimization_service import InventoryOptimizationService
from .scenario_service import ScenarioService
from .external_factors_service import ExternalFactorsService
from .forecast_service import ForecastService

__all__ = [
    'HealthMetricsService',
    'InventoryOptimizationService',
    'ScenarioService',
    'ExternalFactorsService',
    'ForecastService'
]
