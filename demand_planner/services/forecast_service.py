# demand_planner/services/forecast_service.py
"""
Forecast orchestration.

The demand curve itself comes from an injected predictor (typically an LLM
call made by the hosting application). This service prepares the history it
receives, merges seasonality and external factors into its parameters,
normalizes what it returns, and falls back to a moving-average forecast when
no predictor is available or its output is unusable.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from demand_planner.config import config
from demand_planner.exceptions import ForecastError, ValidationError
from demand_planner.models import ForecastPoint, ForecastResult, SalesRecord, SeasonalityResult
from demand_planner.core.seasonality import apply_seasonality, detect_seasonality
from demand_planner.services.external_factors_service import ExternalFactorsService
from demand_planner.utils.cache import TTLCache
from demand_planner.utils.date_utils import get_date_range
from demand_planner.utils.math_utils import coerce_number, moving_average
from demand_planner.utils.validation import normalize_forecast, normalize_sales_records

logger = logging.getLogger(__name__)

Predictor = Callable[[List[Tuple[date, float]], Dict[str, Any]], Any]

FALLBACK_CONFIDENCE = 0.75
DEFAULT_CONFIDENCE = 0.85

FALLBACK_INSIGHTS = [
    'Based on historical average, demand appears stable',
    'Consider seasonal factors for more accurate forecast',
    'Inventory levels should be maintained at current levels'
]

FALLBACK_RECOMMENDATIONS = [
    'Monitor weekly sales trends for early signals',
    'Review safety stock levels for top products',
    'Consider external factors like promotions and holidays'
]


class ForecastService:
    """Service orchestrating demand forecast generation."""

    def __init__(
        self,
        predictor: Optional[Predictor] = None,
        cache: Optional[TTLCache] = None,
        external_factors: Optional[ExternalFactorsService] = None,
        forecast_config: Optional[Dict[str, Any]] = None,
        seasonality_config: Optional[Dict[str, Any]] = None
    ):
        """Initialize the forecast service.

        Args:
            predictor: Callable ``(history, parameters)`` returning forecast
                points or a mapping with a ``forecast`` key
            cache: Cache for finished results; a TTLCache with the configured
                lifetime is created when omitted
            external_factors: External factors provider
            forecast_config: Optional override of ``config.forecast_config``
            seasonality_config: Optional override of ``config.seasonality_config``
        """
        self.predictor = predictor
        self.forecast_config = forecast_config or config.forecast_config
        self.seasonality_config = seasonality_config or config.seasonality_config
        self.cache = cache if cache is not None else TTLCache(self.forecast_config['cache_ttl_seconds'])
        self.external_factors = external_factors or ExternalFactorsService()

    @staticmethod
    def aggregate_history(records: Sequence[SalesRecord]) -> List[Tuple[date, float]]:
        """Sum quantities per date, sorted chronologically."""
        totals: Dict[date, float] = {}
        for record in records:
            totals[record.date] = totals.get(record.date, 0.0) + record.quantity
        return sorted(totals.items())

    def detect_seasonality(self, records: Sequence[SalesRecord]) -> SeasonalityResult:
        """Run seasonality detection over raw sales records."""
        settings = self.seasonality_config
        return detect_seasonality(
            [(record.date, record.quantity) for record in records],
            min_points=settings['min_points'],
            weekly_lag=settings['weekly_lag'],
            monthly_lag=settings['monthly_lag'],
            weekly_threshold=settings['weekly_threshold'],
            monthly_threshold=settings['monthly_threshold']
        )

    def create_fallback_forecast(
        self,
        history: Sequence[Tuple[date, float]],
        forecast_periods: int,
        seasonality: Optional[SeasonalityResult] = None
    ) -> List[ForecastPoint]:
        """Project the recent moving average forward.

        Args:
            history: Daily (date, total) series
            forecast_periods: Number of days to forecast
            seasonality: Optional detection result used to reshape by weekday

        Returns:
            List of ForecastPoint starting the day after the last history date
        """
        if not history:
            return []

        values = [value for _, value in history]
        average = moving_average(values, self.forecast_config['fallback_window'])

        forecast = [
            ForecastPoint(
                date=forecast_date,
                predicted=average,
                upper_bound=average * 1.15,
                lower_bound=average * 0.85
            )
            for forecast_date in get_date_range(history[-1][0], forecast_periods)
        ]

        if seasonality is not None and seasonality.detected:
            forecast = apply_seasonality(forecast, seasonality)

        return forecast

    @staticmethod
    def prepare_chart_data(
        history: Sequence[Tuple[date, float]],
        forecast: Sequence[ForecastPoint]
    ) -> Dict[str, Any]:
        """Combine history and forecast into aligned chart series.

        Forecast series are padded with None over the historical span.
        """
        padding = [None] * len(history)
        return {
            'labels': [d.isoformat() for d, _ in history] + [p.date.isoformat() for p in forecast],
            'datasets': [
                {'label': 'Historical Sales', 'data': [value for _, value in history]},
                {'label': 'Forecast', 'data': padding + [p.predicted for p in forecast]},
                {'label': 'Confidence Interval', 'data': padding + [p.upper_bound for p in forecast]},
                {'label': 'Confidence Interval Lower', 'data': padding + [p.lower_bound for p in forecast]}
            ]
        }

    def _predictor_name(self) -> str:
        if self.predictor is None:
            return 'fallback'
        return getattr(self.predictor, '__name__', type(self.predictor).__name__)

    def _call_predictor(self, history, parameters) -> Optional[Dict[str, Any]]:
        """Call the predictor and normalize its output.

        Returns:
            Dictionary with forecast, insights, recommendations and confidence,
            or None if the output is unusable

        Raises:
            ForecastError: If the predictor raises
        """
        try:
            output = self.predictor(history, parameters)
        except Exception as e:
            raise ForecastError(f"Failed to generate forecast: {str(e)}", code='PREDICTOR_FAILED') from e

        payload = output if isinstance(output, Mapping) else {'forecast': output}

        try:
            forecast = normalize_forecast(payload.get('forecast') or [])
        except ValidationError as e:
            logger.warning(f"Predictor returned an unusable forecast: {str(e)}")
            return None

        if not forecast:
            return None

        confidence = coerce_number(payload.get('confidence'))
        return {
            'forecast': forecast,
            'insights': list(payload.get('insights') or []),
            'recommendations': list(payload.get('recommendations') or []),
            'confidence': confidence if confidence is not None else DEFAULT_CONFIDENCE
        }

    def generate_forecast(
        self,
        sales_records: Any,
        products: Optional[Sequence[Any]] = None,
        forecast_periods: Optional[int] = None,
        confidence_level: Optional[float] = None,
        include_external_factors: Optional[bool] = None,
        seasonality_detection: Optional[bool] = None,
        cache_key: Optional[str] = None
    ) -> ForecastResult:
        """Generate a demand forecast from historical sales.

        Args:
            sales_records: List of SalesRecord objects or raw sales rows
            products: Optional product catalog passed through to the predictor
            forecast_periods: Days to forecast
            confidence_level: Confidence level for the bounds
            include_external_factors: Whether to pass external factors
            seasonality_detection: Whether to detect seasonality
            cache_key: Optional key; unexpired cached results are returned as is

        Returns:
            ForecastResult

        Raises:
            ForecastError: If there is no usable sales data or the predictor fails
        """
        settings = self.forecast_config
        forecast_periods = forecast_periods or settings['forecast_periods']
        confidence_level = confidence_level or settings['confidence_level']
        if include_external_factors is None:
            include_external_factors = settings['include_external_factors']
        if seasonality_detection is None:
            seasonality_detection = settings['seasonality_detection']

        if cache_key:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info(f"Returning cached forecast for {cache_key}")
                return cached

        records = normalize_sales_records(sales_records if sales_records is not None else [])
        if not records:
            raise ForecastError('No sales data provided', code='NO_SALES_DATA')

        seasonality = None
        if seasonality_detection:
            seasonality = self.detect_seasonality(records)
            logger.info(f"Detected seasonality: {seasonality.pattern.value} (strength {seasonality.strength:.2f})")

        history = self.aggregate_history(records[-settings['max_history_records']:])
        last_date = history[-1][0]

        external_factors = None
        if include_external_factors:
            external_factors = self.external_factors.factors_for_period(
                last_date + timedelta(days=1), last_date + timedelta(days=forecast_periods)
            )

        prediction = None
        if self.predictor is not None:
            logger.info(f"Requesting {forecast_periods}-day forecast from {self._predictor_name()}")
            prediction = self._call_predictor(history, {
                'forecast_periods': forecast_periods,
                'confidence_level': confidence_level,
                'seasonality': seasonality.to_dict() if seasonality else None,
                'external_factors': external_factors,
                'products': list(products or [])
            })

        fallback_used = prediction is None
        if fallback_used:
            logger.warning('Using moving-average fallback forecast')
            prediction = {
                'forecast': self.create_fallback_forecast(history, forecast_periods, seasonality),
                'insights': list(FALLBACK_INSIGHTS),
                'recommendations': list(FALLBACK_RECOMMENDATIONS),
                'confidence': FALLBACK_CONFIDENCE
            }

        result = ForecastResult(
            forecast=prediction['forecast'],
            seasonality=seasonality,
            insights=prediction['insights'],
            recommendations=prediction['recommendations'],
            confidence=prediction['confidence'],
            chart_data=self.prepare_chart_data(history, prediction['forecast']),
            metadata={
                'generated_at': datetime.now().isoformat(),
                'data_points': len(records),
                'forecast_periods': forecast_periods,
                'confidence_level': confidence_level,
                'seasonality_detected': bool(seasonality and seasonality.detected),
                'external_factors': external_factors,
                'provider': self._predictor_name(),
                'fallback_used': fallback_used
            }
        )

        if cache_key:
            self.cache.set(cache_key, result)

        return result

    def clear_cache(self) -> None:
        """Drop every cached forecast."""
        self.cache.clear()
        logger.info('Forecast cache cleared')
