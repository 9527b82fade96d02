import logging
import logging.handlers
from pathlib import Path
import traceback
from datetime import datetime

from demand_planner.config import config

class Logger:
    """Logging manager for the Demand Planner."""

    _instance = None
    _loggers = {}

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the logger if not already initialized."""
        if self._initialized:
            return

        self._log_config = config.log_config
        self._log_dir = Path(self._log_config['directory'])

        # Set up global logging configuration
        self._configure_root_logger()

        self._initialized = True

    def _level(self):
        level_name = self._log_config['level'].upper()
        return getattr(logging, level_name, logging.INFO)

    def _configure_root_logger(self):
        """Configure the root logger."""
        root_logger = logging.getLogger()
        root_logger.setLevel(self._level())

        # Remove existing stream handlers
        for handler in root_logger.handlers[:]:
            if type(handler) is logging.StreamHandler:
                root_logger.removeHandler(handler)

        if self._log_config['console_output']:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(logging.Formatter(self._log_config['format']))
            root_logger.addHandler(console_handler)

    def get_logger(self, name):
        """Get a logger with the specified name.

        Named loggers write to ``<directory>/<name>.log`` when file output is
        enabled and also propagate to the root console handler.

        Args:
            name: Name of the logger

        Returns:
            Configured logger instance
        """
        if name in self._loggers:
            return self._loggers[name]

        logger = logging.getLogger(name)
        logger.setLevel(self._level())

        # Remove existing handlers to prevent duplicates
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

        if self._log_config['file_output']:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            log_file = self._log_dir / f"{name}.log"
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=self._log_config['max_size_mb'] * 1024 * 1024,
                backupCount=self._log_config['backup_count']
            )
            file_handler.setFormatter(logging.Formatter(self._log_config['format']))
            logger.addHandler(file_handler)

        self._loggers[name] = logger
        return logger

    def log_exception(self, logger_name, exception, message=None):
        """Log an exception with stack trace.

        Args:
            logger_name: Logger name
            exception: Exception object
            message: Optional message to include
        """
        logger = self.get_logger(logger_name)

        if message:
            logger.error(f"{message}: {str(exception)}")
        else:
            logger.error(str(exception))

        logger.error(traceback.format_exc())

    @property
    def app_logger(self):
        """Get the application logger."""
        return self.get_logger('app')

    def command_start_log(self, command_name, additional_info=None):
        """Log the start of a CLI command.

        Args:
            command_name: Name of the command
            additional_info: Optional additional information

        Returns:
            Dictionary with command logging information
        """
        log_info = {
            'command_name': command_name,
            'start_time': datetime.now(),
            'additional_info': additional_info
        }

        self.app_logger.info(f"Starting command: {command_name}")
        if additional_info:
            self.app_logger.info(f"Command info: {additional_info}")

        return log_info

    def command_end_log(self, log_info, success=True, result_info=None):
        """Log the end of a CLI command.

        Args:
            log_info: Dictionary returned by command_start_log
            success: Whether the command succeeded
            result_info: Optional result information
        """
        command_name = log_info.get('command_name', 'Unknown')
        duration = datetime.now() - log_info.get('start_time', datetime.now())

        if success:
            self.app_logger.info(f"Completed command: {command_name}")
        else:
            self.app_logger.error(f"Failed command: {command_name}")

        self.app_logger.info(f"Command duration: {duration}")

        if result_info:
            self.app_logger.info(f"Command results: {result_info}")

# Global logger instance
logger = Logger()

def get_logger(name):
    """Get a logger with the specified name."""
    return logger.get_logger(name)

def log_exception(logger_name, exception, message=None):
    """Log an exception with stack trace."""
    logger.log_exception(logger_name, exception, message)
