# demand_planner/services/external_factors_service.py
import copy
import json
import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from demand_planner.utils.cache import TTLCache
from demand_planner.utils.date_utils import convert_to_date, get_season
from demand_planner.utils.math_utils import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_FACTORS = {
    'economic': {
        'consumerConfidence': 0.75,
        'unemployment': 0.04,
        'gdpGrowth': 0.02,
        'inflation': 0.03
    },
    'holidays': [],
    'weather': {
        'regions': []
    },
    'trends': {
        'overall': 'stable',
        'growthRate': 0.02
    }
}

HOLIDAY_MULTIPLIERS = {
    'high': 2.0,
    'medium': 1.5,
    'low': 1.2
}

MONTH_MULTIPLIERS = {
    12: 1.8,  # Holiday season
    1: 0.7,   # Post-holiday dip
    7: 1.2,
    8: 1.2
}

FACTORS_CACHE_KEY = 'factors'


def recurring_holidays(year: int) -> List[Dict[str, Any]]:
    """Retail holidays with a known demand impact for a year."""
    november_first = date(year, 11, 1)
    # Fourth Thursday of November plus one day
    first_thursday = november_first + timedelta(days=(3 - november_first.weekday()) % 7)
    black_friday = first_thursday + timedelta(days=22)

    return [
        {'name': "New Year's Day", 'date': date(year, 1, 1), 'impact': 'high'},
        {'name': "Valentine's Day", 'date': date(year, 2, 14), 'impact': 'medium'},
        {'name': 'Black Friday', 'date': black_friday, 'impact': 'high'},
        {'name': 'Christmas', 'date': date(year, 12, 25), 'impact': 'high'}
    ]


class ExternalFactorsService:
    """Service providing external demand factors (economy, holidays, weather)."""

    def __init__(self, data_path: Optional[Union[str, Path]] = None, cache: Optional[TTLCache] = None):
        """Initialize the external factors service.

        Args:
            data_path: Optional JSON file with factor data; defaults are used without it
            cache: Optional cache for the loaded factors (one hour by default)
        """
        self.data_path = Path(data_path) if data_path else None
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=3600)

    def load_factors(self) -> Dict[str, Any]:
        """Load factors from the data file, falling back to defaults.

        Returns:
            Dictionary of factors
        """
        cached = self.cache.get(FACTORS_CACHE_KEY)
        if cached is not None:
            return cached

        factors = copy.deepcopy(DEFAULT_FACTORS)
        if self.data_path is not None:
            try:
                with open(self.data_path, 'r', encoding='utf-8') as data_file:
                    factors.update(json.load(data_file))
            except (OSError, ValueError) as e:
                logger.error(f"Error loading external factors from {self.data_path}: {str(e)}")
                factors = copy.deepcopy(DEFAULT_FACTORS)

        self.cache.set(FACTORS_CACHE_KEY, factors)
        return factors

    def get_holidays(self, start_date: date, end_date: date) -> List[Dict[str, Any]]:
        """Holidays between two dates (inclusive).

        Dated holidays from the data file are used when present, otherwise the
        recurring retail holidays.
        """
        factors = self.load_factors()

        holidays = []
        for holiday in factors.get('holidays') or []:
            holiday_date = convert_to_date(holiday.get('date'))
            if holiday_date is not None:
                holidays.append({**holiday, 'date': holiday_date})

        if not holidays:
            for year in range(start_date.year, end_date.year + 1):
                holidays.extend(recurring_holidays(year))

        return [h for h in holidays if start_date <= h['date'] <= end_date]

    def factors_for_period(self, start_date: date, end_date: date) -> Dict[str, Any]:
        """Factors with holidays limited to a date range.

        Args:
            start_date: First date of the period
            end_date: Last date of the period

        Returns:
            Dictionary of factors with ``holidays`` and ``period``
        """
        factors = self.load_factors()
        holidays = [
            {**holiday, 'date': holiday['date'].isoformat()}
            for holiday in self.get_holidays(start_date, end_date)
        ]

        return {
            **factors,
            'season': get_season(start_date),
            'holidays': holidays,
            'period': {
                'start': start_date.isoformat(),
                'end': end_date.isoformat()
            }
        }

    def upcoming_holidays(self, today: Optional[date] = None, days: int = 30) -> List[Dict[str, Any]]:
        """Holidays within ``days`` of ``today``."""
        today = today or date.today()
        return self.get_holidays(today, today + timedelta(days=days))

    def current_season(self, today: Optional[date] = None) -> str:
        """Season name for ``today``."""
        return get_season(today or date.today())

    def date_multiplier(self, target_date: date) -> float:
        """Demand multiplier for a date from holidays, season and economic trend.

        Args:
            target_date: Date to evaluate

        Returns:
            Multiplier rounded to 2 decimals
        """
        factors = self.load_factors()
        multiplier = 1.0

        for holiday in self.get_holidays(target_date, target_date):
            multiplier *= HOLIDAY_MULTIPLIERS.get(holiday.get('impact'), 1.0)
            break

        multiplier *= MONTH_MULTIPLIERS.get(target_date.month, 1.0)

        growth_rate = (factors.get('trends') or {}).get('growthRate', 0.02)
        multiplier *= (1 + growth_rate)

        return round_half_up(multiplier, 2)

    def weather_impact(self, region: str, target_date: date) -> Dict[str, Any]:
        """Weather-driven demand impact for a region.

        Returns:
            Dictionary with ``impact`` ('none', 'negative', 'positive') and ``multiplier``
        """
        factors = self.load_factors()
        regions = (factors.get('weather') or {}).get('regions') or []
        region_data = next((r for r in regions if r.get('region') == region), None)

        if region_data is None:
            return {'impact': 'none', 'multiplier': 1.0}

        month = target_date.month
        if region_data.get('season') == 'Winter' and 1 <= month <= 3:
            return {'impact': 'negative', 'multiplier': 0.7}
        if region_data.get('season') == 'Summer' and 6 <= month <= 8:
            return {'impact': 'positive', 'multiplier': 1.3}

        return {'impact': 'none', 'multiplier': 1.0}

    def clear_cache(self) -> None:
        """Drop the cached factors."""
        self.cache.clear()
