from .config import config
from .logging_setup import logger, get_logger
from .exceptions import PlannerError, ConfigError, ValidationError, ForecastError, ScenarioError

__all__ = [
    'config',
    'logger',
    'get_logger',
    'PlannerError',
    'ConfigError',
    'ValidationError',
    'ForecastError',
    'ScenarioError'
]
