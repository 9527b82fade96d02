import os
import configparser
from pathlib import Path

from demand_planner.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path('config') / 'settings.ini'

DEFAULT_SETTINGS = {
    'LOGGING': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'directory': 'logs',
        'max_size_mb': '10',
        'backup_count': '5',
        'console_output': 'True',
        'file_output': 'True'
    },
    'BUSINESS_RULES': {
        'default_service_level': '0.95',
        'default_lead_time': '7',
        'default_average_inventory': '100',
        'default_unit_cost': '10',
        'default_max_stock': '500',
        'order_buffer': '1.2',
        'urgent_threshold': '0.5',
        'critical_threshold': '0.25'
    },
    'SEASONALITY': {
        'min_points': '30',
        'weekly_lag': '7',
        'monthly_lag': '30',
        'weekly_threshold': '0.3',
        'monthly_threshold': '0.2'
    },
    'FORECAST': {
        'forecast_periods': '30',
        'confidence_level': '0.95',
        'cache_ttl_seconds': '3600',
        'max_history_records': '500',
        'fallback_window': '7',
        'include_external_factors': 'True',
        'seasonality_detection': 'True'
    },
    'SCENARIO': {
        'default_daily_demand': '10',
        'default_lead_time': '7',
        'strict_types': 'False'
    }
}


class Config:
    """Configuration manager for the Demand Planner."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the configuration if not already initialized."""
        if self._initialized:
            return

        self._config_path = Path(os.environ.get('DEMAND_PLANNER_CONFIG', DEFAULT_CONFIG_PATH))
        self._config = configparser.ConfigParser(interpolation=None)
        self._config.read_dict(DEFAULT_SETTINGS)

        # Settings file overrides the built-in defaults
        if self._config_path.exists():
            self.load(self._config_path)

        self._initialized = True

    def load(self, path):
        """Load settings from an ini file on top of the current values.

        Args:
            path: Path to the ini file

        Raises:
            ConfigError: If the file cannot be parsed
        """
        try:
            self._config.read(path)
        except configparser.Error as e:
            raise ConfigError(f"Could not read configuration file {path}: {str(e)}")
        self._config_path = Path(path)

    def _save_config(self):
        """Save configuration to file."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._config_path, 'w') as configfile:
            self._config.write(configfile)

    def get(self, section, key, default=None):
        """Get configuration value."""
        try:
            return self._config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        try:
            return self._config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        try:
            return self._config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def set(self, section, key, value, persist=True):
        """Set configuration value."""
        if not self._config.has_section(section):
            self._config.add_section(section)

        self._config.set(section, key, str(value))
        if persist:
            self._save_config()

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True),
            'file_output': self.get_boolean('LOGGING', 'file_output', True)
        }

    @property
    def business_rules(self):
        """Get inventory business rules."""
        return {
            'default_service_level': self.get_float('BUSINESS_RULES', 'default_service_level', 0.95),
            'default_lead_time': self.get_float('BUSINESS_RULES', 'default_lead_time', 7),
            'default_average_inventory': self.get_float('BUSINESS_RULES', 'default_average_inventory', 100),
            'default_unit_cost': self.get_float('BUSINESS_RULES', 'default_unit_cost', 10),
            'default_max_stock': self.get_float('BUSINESS_RULES', 'default_max_stock', 500),
            'order_buffer': self.get_float('BUSINESS_RULES', 'order_buffer', 1.2),
            'urgent_threshold': self.get_float('BUSINESS_RULES', 'urgent_threshold', 0.5),
            'critical_threshold': self.get_float('BUSINESS_RULES', 'critical_threshold', 0.25)
        }

    @property
    def seasonality_config(self):
        """Get seasonality detection settings."""
        return {
            'min_points': self.get_int('SEASONALITY', 'min_points', 30),
            'weekly_lag': self.get_int('SEASONALITY', 'weekly_lag', 7),
            'monthly_lag': self.get_int('SEASONALITY', 'monthly_lag', 30),
            'weekly_threshold': self.get_float('SEASONALITY', 'weekly_threshold', 0.3),
            'monthly_threshold': self.get_float('SEASONALITY', 'monthly_threshold', 0.2)
        }

    @property
    def forecast_config(self):
        """Get forecast orchestration settings."""
        return {
            'forecast_periods': self.get_int('FORECAST', 'forecast_periods', 30),
            'confidence_level': self.get_float('FORECAST', 'confidence_level', 0.95),
            'cache_ttl_seconds': self.get_int('FORECAST', 'cache_ttl_seconds', 3600),
            'max_history_records': self.get_int('FORECAST', 'max_history_records', 500),
            'fallback_window': self.get_int('FORECAST', 'fallback_window', 7),
            'include_external_factors': self.get_boolean('FORECAST', 'include_external_factors', True),
            'seasonality_detection': self.get_boolean('FORECAST', 'seasonality_detection', True)
        }

    @property
    def scenario_config(self):
        """Get what-if scenario settings."""
        return {
            'default_daily_demand': self.get_float('SCENARIO', 'default_daily_demand', 10),
            'default_lead_time': self.get_float('SCENARIO', 'default_lead_time', 7),
            'strict_types': self.get_boolean('SCENARIO', 'strict_types', False)
        }

# Global config instance
config = Config()
