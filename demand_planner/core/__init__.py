from .inventory_math import (
    calculate_eoq, calculate_reorder_point, calculate_safety_stock,
    calculate_service_level, calculate_turnover,
    calculate_days_of_inventory_outstanding, calculate_fill_rate,
    calculate_stockout_probability, calculate_std_dev,
    calculate_daily_demand, calculate_forecast_accuracy
)
from .seasonality import detect_seasonality, check_periodicity, apply_seasonality
from .abc_classification import classify_abc
from .order_policy import calculate_optimal_order
from .scenario import apply_scenario

__all__ = [
    'calculate_eoq',
    'calculate_reorder_point',
    'calculate_safety_stock',
    'calculate_service_level',
    'calculate_turnover',
    'calculate_days_of_inventory_outstanding',
    'calculate_fill_rate',
    'calculate_stockout_probability',
    'calculate_std_dev',
    'calculate_daily_demand',
    'calculate_forecast_accuracy',
    'detect_seasonality',
    'check_periodicity',
    'apply_seasonality',
    'classify_abc',
    'calculate_optimal_order',
    'apply_scenario'
]
