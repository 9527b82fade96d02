# demand_planner/models.py
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
import enum

from demand_planner.utils.math_utils import round_half_up

DAY_NAMES = ('Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday')


class SeasonalityPattern(enum.Enum):
    """Periodicity detected in a demand series.

    Values:
        NONE ('none'): No periodicity above threshold
        WEEKLY ('weekly'): 7-day cycle
        MONTHLY ('monthly'): 30-day cycle
    """
    NONE = 'none'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'

    def __str__(self):
        """Return the string value of the enum."""
        return self.value


class ScenarioType(enum.Enum):
    """Enum for what-if scenario types.

    Values:
        DEMAND_SHOCK ('demand_shock'): Demand multiplied for a number of days
        SUPPLY_DISRUPTION ('supply_disruption'): Replenishment delayed
        PROMOTION ('promotion'): Promotional lift for a number of days
        CUSTOM ('custom'): Caller-defined multiplier and duration
    """
    DEMAND_SHOCK = 'demand_shock'
    SUPPLY_DISRUPTION = 'supply_disruption'
    PROMOTION = 'promotion'
    CUSTOM = 'custom'

    def __str__(self):
        """Return the string value of the enum."""
        return self.value

    @classmethod
    def from_string(cls, value: str) -> 'ScenarioType':
        """Create a ScenarioType from a string value.

        Args:
            value: String value ('demand_shock', 'supply_disruption', 'promotion', 'custom')

        Returns:
            ScenarioType enum value

        Raises:
            ValueError if the string value is not valid
        """
        try:
            return cls(value)
        except ValueError:
            valid = ', '.join(member.value for member in cls)
            raise ValueError(f"Invalid scenario type: {value}. Valid values are: {valid}")


class Severity(enum.Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class SalesRecord:
    """One ingested sales row. Quantity is the units sold on ``date``."""
    date: date
    quantity: float
    revenue: Optional[float] = None
    product_id: Optional[str] = None
    product_name: Optional[str] = None


@dataclass(frozen=True)
class Product:
    """Catalog entry. Optional numeric fields are None when the caller omitted them."""
    id: str
    name: str = ''
    category: str = ''
    unit_cost: float = 0.0
    unit_price: float = 0.0
    current_stock: float = 0.0
    lead_time_days: Optional[float] = None
    reorder_point: Optional[float] = None
    safety_stock: Optional[float] = None
    max_stock: Optional[float] = None
    service_level: Optional[float] = None
    daily_demand: Optional[float] = None
    weekly_demand: Optional[float] = None
    annual_sales: Optional[float] = None


@dataclass(frozen=True)
class ForecastPoint:
    date: date
    predicted: float
    upper_bound: float
    lower_bound: float
    product_id: Optional[str] = None
    seasonal_factor: Optional[float] = None
    scenario_label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'date': self.date.isoformat(),
            'predicted': round_half_up(self.predicted, 2),
            'upper_bound': round_half_up(self.upper_bound, 2),
            'lower_bound': round_half_up(self.lower_bound, 2)
        }
        if self.product_id is not None:
            result['product_id'] = self.product_id
        if self.seasonal_factor is not None:
            result['seasonal_factor'] = round_half_up(self.seasonal_factor, 2)
        if self.scenario_label is not None:
            result['scenario_label'] = self.scenario_label
        return result


@dataclass(frozen=True)
class DayOfWeekProfile:
    """Average demand per weekday, indexed Sunday=0 through Saturday=6."""
    averages: Tuple[float, ...]
    peak_day: str
    low_day: str
    weekend_effect: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'averages': [
                {'day': DAY_NAMES[index], 'index': index, 'average': round_half_up(value, 2)}
                for index, value in enumerate(self.averages)
            ],
            'peak_day': self.peak_day,
            'low_day': self.low_day,
            'weekend_effect': round_half_up(self.weekend_effect, 2)
        }


@dataclass(frozen=True)
class SeasonalityResult:
    detected: bool
    pattern: SeasonalityPattern = SeasonalityPattern.NONE
    strength: float = 0.0
    day_of_week_profile: Optional[DayOfWeekProfile] = None
    weekly_strength: float = 0.0
    monthly_strength: float = 0.0
    reason: Optional[str] = None
    recommendation: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'detected': self.detected,
            'pattern': self.pattern.value,
            'strength': round_half_up(self.strength, 2),
            'weekly_strength': round_half_up(self.weekly_strength, 2),
            'monthly_strength': round_half_up(self.monthly_strength, 2),
            'day_of_week_profile': self.day_of_week_profile.to_dict() if self.day_of_week_profile else None,
            'reason': self.reason,
            'recommendation': self.recommendation
        }


@dataclass(frozen=True)
class HealthMetric:
    product_id: str
    product_name: str
    daily_demand: float
    demand_std_dev: float
    safety_stock: float
    reorder_point: float
    stockout_probability: float
    turnover_rate: float
    days_of_inventory: float
    forecast_accuracy: Optional[float]
    service_level: float

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, float):
                result[key] = round_half_up(value, 2)
        return result


@dataclass(frozen=True)
class OptimalOrder:
    recommended: float
    adjusted: float
    final: float
    urgent: bool
    critical: bool
    product_id: Optional[str] = None
    product_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'recommended': round_half_up(self.recommended),
            'adjusted': round_half_up(self.adjusted),
            'final': max(0, round_half_up(self.final)),
            'urgent': self.urgent,
            'critical': self.critical
        }


@dataclass(frozen=True)
class Scenario:
    """A what-if perturbation. ``type`` is kept as given so unknown types can be reported."""
    type: str
    parameters: Dict[str, float] = field(default_factory=dict)

    @property
    def scenario_type(self) -> Optional[ScenarioType]:
        try:
            return ScenarioType.from_string(str(self.type))
        except ValueError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        return {'type': str(self.type), 'parameters': dict(self.parameters)}


@dataclass(frozen=True)
class ImpactSummary:
    total_demand_impact: int
    percentage_change: int
    severity: Severity
    risk_level: Severity
    products_affected: int
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'total_demand_impact': self.total_demand_impact,
            'percentage_change': self.percentage_change,
            'severity': self.severity.value,
            'risk_level': self.risk_level.value,
            'products_affected': self.products_affected
        }
        result.update(self.details)
        return result


@dataclass(frozen=True)
class ScenarioResult:
    scenario: Scenario
    perturbed_forecast: List[ForecastPoint]
    stock_impact: List[Dict[str, Any]]
    summary: ImpactSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scenario': self.scenario.to_dict(),
            'perturbed_forecast': [point.to_dict() for point in self.perturbed_forecast],
            'stock_impact': list(self.stock_impact),
            'summary': self.summary.to_dict()
        }


@dataclass
class InventoryReport:
    health_metrics: List[HealthMetric]
    classified_products: List[Dict[str, Any]]
    optimal_orders: List[OptimalOrder]
    summary: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'health_metrics': [metric.to_dict() for metric in self.health_metrics],
            'classified_products': self.classified_products,
            'optimal_orders': [order.to_dict() for order in self.optimal_orders],
            'summary': self.summary
        }


@dataclass
class ForecastResult:
    forecast: List[ForecastPoint]
    seasonality: Optional[SeasonalityResult]
    insights: List[str]
    recommendations: List[str]
    confidence: float
    chart_data: Dict[str, Any]
    metadata: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'forecast': [point.to_dict() for point in self.forecast],
            'seasonality': self.seasonality.to_dict() if self.seasonality else None,
            'insights': self.insights,
            'recommendations': self.recommendations,
            'confidence': self.confidence,
            'chart_data': self.chart_data,
            'metadata': self.metadata
        }
