# demand_planner/core/scenario.py
"""
What-if scenario projection.

A scenario perturbs a base forecast functionally: the base series is never
modified, a new series is returned together with a per-product stock impact
and an impact summary.
"""
import logging
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..models import (
    ForecastPoint, ImpactSummary, Product, Scenario, ScenarioResult, ScenarioType, Severity
)
from ..exceptions import ScenarioError, ValidationError
from ..utils.math_utils import coerce_number, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_DAILY_DEMAND = 10.0
DEFAULT_LEAD_TIME = 7.0

DEFAULT_PARAMETERS = {
    ScenarioType.DEMAND_SHOCK: {'multiplier': 1.5, 'duration': 7},
    ScenarioType.PROMOTION: {'multiplier': 2.0, 'duration': 3},
    ScenarioType.SUPPLY_DISRUPTION: {'delayDays': 14, 'capacityReduction': 0.3},
    ScenarioType.CUSTOM: {'multiplier': 1.0, 'duration': None}
}


def to_scenario(scenario: Any) -> Scenario:
    """Coerce a Scenario or a {'type', 'parameters'} mapping into a Scenario.

    Raises:
        ValidationError: If the value has no scenario type
    """
    if isinstance(scenario, Scenario):
        return scenario

    if isinstance(scenario, Mapping) and scenario.get('type') is not None:
        parameters = scenario.get('parameters') or {}
        if not isinstance(parameters, Mapping):
            raise ValidationError('Scenario parameters must be an object', code='INVALID_SCENARIO')
        return Scenario(type=str(scenario['type']), parameters=dict(parameters))

    raise ValidationError(
        'Scenario must be an object with a type and parameters',
        code='INVALID_SCENARIO',
        details={'scenario': repr(scenario)}
    )


def _parameter(scenario: Scenario, scenario_type: ScenarioType, name: str) -> Optional[float]:
    value = coerce_number(scenario.parameters.get(name))
    if value is None:
        return DEFAULT_PARAMETERS[scenario_type][name]
    return value


def _product_field(product: Any, name: str) -> Any:
    if isinstance(product, Mapping):
        return product.get(name)
    return getattr(product, name, None)


def _product_profile(product: Any, default_daily_demand: float, default_lead_time: float) -> Dict[str, Any]:
    """Read the stock-related fields of a Product or mapping, with scenario defaults."""
    product_id = _product_field(product, 'id')
    if product_id is None:
        product_id = _product_field(product, 'product_id')

    name = _product_field(product, 'name')
    if name is None:
        name = _product_field(product, 'product_name')

    return {
        'product_id': product_id,
        'product_name': name,
        'current_stock': coerce_number(_product_field(product, 'current_stock')) or 0.0,
        'daily_demand': coerce_number(_product_field(product, 'daily_demand')) or default_daily_demand,
        'lead_time_days': coerce_number(_product_field(product, 'lead_time_days')) or default_lead_time
    }


def scale_forecast(
    forecast: Sequence[ForecastPoint],
    multiplier: float,
    duration: Optional[int],
    label: Optional[str] = None
) -> List[ForecastPoint]:
    """Multiply the first ``duration`` points of a forecast.

    Args:
        forecast: Base forecast
        multiplier: Factor applied to predicted and both bounds
        duration: Number of leading points affected (None for all)
        label: Optional label recorded on affected points

    Returns:
        New list of points
    """
    limit = len(forecast) if duration is None else max(0, int(duration))

    scaled = []
    for index, point in enumerate(forecast):
        if index < limit:
            point = replace(
                point,
                predicted=point.predicted * multiplier,
                upper_bound=point.upper_bound * multiplier,
                lower_bound=point.lower_bound * multiplier,
                scenario_label=label
            )
        scaled.append(point)
    return scaled


def get_severity(multiplier: float) -> Severity:
    """Severity of a demand multiplier."""
    if multiplier > 1.5:
        return Severity.HIGH
    if multiplier > 1.2:
        return Severity.MEDIUM
    return Severity.LOW


def get_risk_level(scenario_type: Optional[ScenarioType], multiplier: float) -> Severity:
    """Qualitative risk of a scenario type."""
    if scenario_type == ScenarioType.SUPPLY_DISRUPTION:
        return Severity.HIGH
    if scenario_type == ScenarioType.DEMAND_SHOCK and multiplier > 2:
        return Severity.HIGH
    if scenario_type == ScenarioType.PROMOTION:
        return Severity.MEDIUM
    return Severity.LOW


def calculate_impact_summary(
    base_forecast: Sequence[ForecastPoint],
    scenario_type: Optional[ScenarioType],
    multiplier: float,
    products_affected: int,
    details: Optional[Dict[str, Any]] = None
) -> ImpactSummary:
    """Summarize the demand impact of a scenario against the baseline total."""
    total_baseline_demand = sum(point.predicted for point in base_forecast)

    return ImpactSummary(
        total_demand_impact=round_half_up(total_baseline_demand * (multiplier - 1)),
        percentage_change=round_half_up((multiplier - 1) * 100),
        severity=get_severity(multiplier),
        risk_level=get_risk_level(scenario_type, multiplier),
        products_affected=products_affected,
        details=details or {}
    )


def _days_of_cover(stock: float, daily_demand: float) -> Optional[float]:
    if daily_demand <= 0:
        return None
    return round_half_up(stock / daily_demand, 1)


def _demand_shock_impact(profiles: List[Dict], multiplier: float, duration: int) -> List[Dict[str, Any]]:
    rows = []
    for profile in profiles:
        daily_demand = profile['daily_demand']
        stock = profile['current_stock']
        new_days = _days_of_cover(stock, daily_demand * multiplier)

        rows.append({
            'product_id': profile['product_id'],
            'product_name': profile['product_name'],
            'original_days_until_stockout': _days_of_cover(stock, daily_demand),
            'new_days_until_stockout': new_days,
            'additional_units_needed': round_half_up(daily_demand * (multiplier - 1) * duration),
            'recommendation': 'URGENT: Order immediately' if new_days is not None and new_days < 3 else 'Monitor closely'
        })
    return rows


def _supply_disruption_impact(profiles: List[Dict], delay_days: float) -> List[Dict[str, Any]]:
    rows = []
    for profile in profiles:
        stock = profile['current_stock']
        demand_during_disruption = profile['daily_demand'] * (delay_days + profile['lead_time_days'])
        stockout_risk = max(0.0, demand_during_disruption - stock)

        rows.append({
            'product_id': profile['product_id'],
            'product_name': profile['product_name'],
            'current_stock': stock,
            'demand_during_disruption': round_half_up(demand_during_disruption),
            'stockout_risk': round_half_up(stockout_risk),
            'risk_level': 'high' if stockout_risk > 0 else 'low',
            'recommendation': (
                f"Order {round_half_up(stockout_risk * 1.2)} units immediately"
                if stockout_risk > 0 else 'Sufficient stock'
            )
        })
    return rows


def _promotion_impact(profiles: List[Dict], multiplier: float, duration: int) -> List[Dict[str, Any]]:
    rows = []
    for profile in profiles:
        daily_demand = profile['daily_demand']
        stock = profile['current_stock']
        promo_demand = daily_demand * multiplier * duration
        stock_after_promo = stock - promo_demand

        rows.append({
            'product_id': profile['product_id'],
            'product_name': profile['product_name'],
            'current_stock': stock,
            'expected_demand_during_promo': round_half_up(promo_demand),
            'extra_units_needed': round_half_up(daily_demand * (multiplier - 1) * duration),
            'stock_after_promo': round_half_up(stock_after_promo),
            'needs_reorder': stock_after_promo < 0,
            'recommendation': (
                f"ORDER {round_half_up(-stock_after_promo * 1.2)} units"
                if stock_after_promo < 0 else 'Stock adequate'
            )
        })
    return rows


def apply_scenario(
    base_forecast: Sequence[ForecastPoint],
    scenario: Any,
    products: Optional[Sequence[Any]] = None,
    strict: bool = False,
    default_daily_demand: float = DEFAULT_DAILY_DEMAND,
    default_lead_time: float = DEFAULT_LEAD_TIME
) -> ScenarioResult:
    """Apply a what-if scenario to a base forecast.

    Unknown scenario types are a no-op with zero impact unless ``strict`` is
    set, in which case ScenarioError is raised.

    Args:
        base_forecast: Base forecast points (not modified)
        scenario: Scenario or {'type', 'parameters'} mapping
        products: Optional products (Product or mappings with current_stock,
            daily_demand, lead_time_days) for the stock impact
        strict: Raise on unknown scenario types
        default_daily_demand: Daily demand assumed when a product has none
        default_lead_time: Lead time assumed when a product has none

    Returns:
        ScenarioResult

    Raises:
        ValidationError: If the forecast is not a list or the scenario is malformed
        ScenarioError: If ``strict`` is set and the type is unknown
    """
    if not isinstance(base_forecast, (list, tuple)):
        raise ValidationError('Base forecast must be a list of forecast points', code='INVALID_FORECAST')

    scenario = to_scenario(scenario)
    scenario_type = scenario.scenario_type
    profiles = [_product_profile(p, default_daily_demand, default_lead_time) for p in (products or [])]

    if scenario_type is None:
        if strict:
            raise ScenarioError(f"Unknown scenario type: {scenario.type}", code='UNKNOWN_SCENARIO_TYPE')
        logger.warning(f"Unknown scenario type '{scenario.type}', returning base forecast unchanged")
        return ScenarioResult(
            scenario=scenario,
            perturbed_forecast=list(base_forecast),
            stock_impact=[],
            summary=calculate_impact_summary(base_forecast, None, 1.0, 0)
        )

    multiplier = 1.0
    stock_impact: List[Dict[str, Any]] = []
    details: Dict[str, Any] = {}

    if scenario_type == ScenarioType.SUPPLY_DISRUPTION:
        delay_days = _parameter(scenario, scenario_type, 'delayDays')
        capacity_reduction = _parameter(scenario, scenario_type, 'capacityReduction')
        perturbed = list(base_forecast)
        stock_impact = _supply_disruption_impact(profiles, delay_days)
        details = {
            'delay_days': delay_days,
            'capacity_reduction': round_half_up(capacity_reduction * 100),
            'products_at_risk': sum(1 for row in stock_impact if row['risk_level'] == 'high'),
            'total_units_needed': sum(row['stockout_risk'] for row in stock_impact)
        }
    else:
        multiplier = _parameter(scenario, scenario_type, 'multiplier')
        duration = _parameter(scenario, scenario_type, 'duration')
        effective_duration = len(base_forecast) if duration is None else max(0, int(duration))

        if scenario_type == ScenarioType.PROMOTION:
            perturbed = scale_forecast(base_forecast, multiplier, effective_duration, f"{multiplier}x promotion lift")
            stock_impact = _promotion_impact(profiles, multiplier, effective_duration)
            details = {
                'duration': effective_duration,
                'total_extra_units': sum(row['extra_units_needed'] for row in stock_impact),
                'products_needing_reorder': sum(1 for row in stock_impact if row['needs_reorder'])
            }
        else:
            perturbed = scale_forecast(base_forecast, multiplier, effective_duration, f"{multiplier}x demand")
            stock_impact = _demand_shock_impact(profiles, multiplier, effective_duration)
            details = {
                'duration': effective_duration,
                'total_additional_units': sum(row['additional_units_needed'] for row in stock_impact)
            }

    summary = calculate_impact_summary(base_forecast, scenario_type, multiplier, len(profiles), details)
    logger.debug(
        f"Applied {scenario_type.value} scenario: {summary.percentage_change}% change, "
        f"severity {summary.severity.value}"
    )

    return ScenarioResult(
        scenario=scenario,
        perturbed_forecast=perturbed,
        stock_impact=stock_impact,
        summary=summary
    )
