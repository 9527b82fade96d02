# demand_planner/core/seasonality.py
"""
Seasonality detection for daily demand series.

Periodicity is measured with the lag autocorrelation of the series. A weekly
cycle is preferred over a monthly one; when a weekly cycle is found the
day-of-week profile is computed so forecasts can be reshaped by weekday.
"""
import math
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple
from datetime import date

import numpy as np
from statsmodels.tsa.stattools import acf

from ..models import (
    DAY_NAMES, DayOfWeekProfile, ForecastPoint, SeasonalityPattern, SeasonalityResult
)
from ..utils.date_utils import weekday_index
from ..utils.math_utils import mean

MIN_POINTS = 30
WEEKLY_LAG = 7
MONTHLY_LAG = 30
WEEKLY_THRESHOLD = 0.3
MONTHLY_THRESHOLD = 0.2


def check_periodicity(values: Sequence[float], lag: int) -> float:
    """Measure periodicity at a lag using the normalized autocorrelation.

    r(lag) = |sum((x[i] - mean) * (x[i + lag] - mean))| / sum((x[i] - mean)^2)

    Args:
        values: Series values in chronological order
        lag: Lag in periods

    Returns:
        Strength in [0, 1]; 0 for series shorter than the lag or constant series
    """
    if lag <= 0 or len(values) <= lag:
        return 0.0

    series = np.asarray(values, dtype=float)
    if np.ptp(series) == 0:
        return 0.0

    correlations = acf(series, nlags=lag, adjusted=False, fft=False)
    strength = abs(float(correlations[lag]))
    if math.isnan(strength):
        return 0.0
    return strength


def calculate_day_of_week_averages(series: Sequence[Tuple[date, float]]) -> Tuple[float, ...]:
    """Average value per weekday (Sunday=0 .. Saturday=6), 0 for empty weekdays."""
    sums = [0.0] * 7
    counts = [0] * 7
    for day, value in series:
        index = weekday_index(day)
        sums[index] += value
        counts[index] += 1

    return tuple(sums[i] / counts[i] if counts[i] else 0.0 for i in range(7))


def calculate_weekend_effect(averages: Sequence[float]) -> float:
    """Relative weekend lift over weekdays, 0 when weekday demand is 0."""
    avg_weekday = mean(averages[1:6])
    avg_weekend = (averages[0] + averages[6]) / 2

    if avg_weekday == 0:
        return 0.0

    return (avg_weekend - avg_weekday) / avg_weekday


def build_day_of_week_profile(series: Sequence[Tuple[date, float]]) -> DayOfWeekProfile:
    """Build the weekday profile for a weekly-seasonal series."""
    averages = calculate_day_of_week_averages(series)

    # Ties resolve to the earliest weekday for the peak and the latest for the low
    ranked = sorted(range(7), key=lambda i: averages[i], reverse=True)

    return DayOfWeekProfile(
        averages=averages,
        peak_day=DAY_NAMES[ranked[0]],
        low_day=DAY_NAMES[ranked[-1]],
        weekend_effect=calculate_weekend_effect(averages)
    )


def get_recommendation(pattern: SeasonalityPattern, strength: float) -> str:
    """Planning recommendation text for a detected pattern."""
    if pattern == SeasonalityPattern.WEEKLY:
        if strength > 0.7:
            return 'Strong weekly pattern detected. Adjust inventory for day-of-week variations.'
        if strength > 0.4:
            return 'Moderate weekly pattern. Consider day-of-week in safety stock calculations.'
        return 'Weak weekly pattern. Monitor for emerging trends.'

    if pattern == SeasonalityPattern.MONTHLY:
        if strength > 0.5:
            return 'Monthly seasonality detected. Plan for month-end peaks.'
        return 'Slight monthly variation. Review monthly targets.'

    return 'No strong seasonal pattern detected. Use moving averages for forecasting.'


def detect_seasonality(
    series: Sequence[Tuple[date, float]],
    min_points: int = MIN_POINTS,
    weekly_lag: int = WEEKLY_LAG,
    monthly_lag: int = MONTHLY_LAG,
    weekly_threshold: float = WEEKLY_THRESHOLD,
    monthly_threshold: float = MONTHLY_THRESHOLD
) -> SeasonalityResult:
    """Detect weekly or monthly seasonality in a series.

    Fewer than ``min_points`` observations is not an error: the result is
    returned with ``detected=False`` and a reason.

    Args:
        series: (date, value) pairs
        min_points: Minimum number of observations
        weekly_lag: Lag used for the weekly check
        monthly_lag: Lag used for the monthly check
        weekly_threshold: Weekly strength above which the pattern is weekly
        monthly_threshold: Monthly strength above which the pattern is monthly

    Returns:
        SeasonalityResult
    """
    if len(series) < min_points:
        return SeasonalityResult(
            detected=False,
            reason=f"Insufficient data (need at least {min_points} points)",
            recommendation=get_recommendation(SeasonalityPattern.NONE, 0.0)
        )

    ordered = sorted(series, key=lambda item: item[0])
    values = [value for _, value in ordered]

    weekly_strength = check_periodicity(values, weekly_lag)
    monthly_strength = check_periodicity(values, monthly_lag)

    pattern = SeasonalityPattern.NONE
    strength = 0.0
    if weekly_strength > weekly_threshold:
        pattern = SeasonalityPattern.WEEKLY
        strength = weekly_strength
    elif monthly_strength > monthly_threshold:
        pattern = SeasonalityPattern.MONTHLY
        strength = monthly_strength

    profile = build_day_of_week_profile(ordered) if pattern == SeasonalityPattern.WEEKLY else None

    return SeasonalityResult(
        detected=pattern != SeasonalityPattern.NONE,
        pattern=pattern,
        strength=strength,
        day_of_week_profile=profile,
        weekly_strength=weekly_strength,
        monthly_strength=monthly_strength,
        recommendation=get_recommendation(pattern, strength)
    )


def get_seasonal_factor(point_date: date, seasonality: Optional[SeasonalityResult]) -> float:
    """Day-of-week factor for a date: weekday average over the overall average."""
    if not seasonality or not seasonality.detected or not seasonality.day_of_week_profile:
        return 1.0

    averages = seasonality.day_of_week_profile.averages
    overall_average = mean(averages)
    if overall_average <= 0:
        return 1.0

    return averages[weekday_index(point_date)] / overall_average


def apply_seasonality(
    forecast: Sequence[ForecastPoint],
    seasonality: Optional[SeasonalityResult]
) -> List[ForecastPoint]:
    """Reshape a forecast by the day-of-week profile.

    Args:
        forecast: Forecast points
        seasonality: Detection result

    Returns:
        New list of points; the input sequence is not modified
    """
    adjusted = []
    for point in forecast:
        factor = get_seasonal_factor(point.date, seasonality)
        adjusted.append(replace(
            point,
            predicted=point.predicted * factor,
            upper_bound=point.upper_bound * factor,
            lower_bound=point.lower_bound * factor,
            seasonal_factor=factor
        ))
    return adjusted
