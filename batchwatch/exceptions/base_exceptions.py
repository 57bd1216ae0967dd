class BatchWatchError(Exception):
    """Base class for all batchwatch errors"""


class ImproperlyConfigured(BatchWatchError):
    """Base class for configuration-based errors"""


class ConnectionError(BatchWatchError):
    """Base class for connection errors"""


class NotConnected(ConnectionError):
    """Not connected. Either call connect(), or use a context manager"""
