from enum import Enum


class LogLevel(Enum):
    """Log Level"""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
