from .date_utils import convert_to_date, weekday_index, get_date_range, get_season
from .math_utils import round_half_up, coerce_number, mean, population_std_dev, clamp, moving_average

__all__ = [
    'convert_to_date',
    'weekday_index',
    'get_date_range',
    'get_season',
    'round_half_up',
    'coerce_number',
    'mean',
    'population_std_dev',
    'clamp',
    'moving_average'
]
