"""
Logging setup for host applications.

The library only creates module-level loggers; configuring handlers is
left to the application, which may call `setup_logging` early at startup.
"""
import logging


def setup_logging(level: int = logging.INFO):
    """
    Configures the global logging settings for the entire application.
    This should be called as early as possible during startup.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)-8s] %(name)s.%(funcName)s: %(message)s'
    )
