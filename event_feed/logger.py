"""
Logging configuration for the event feed pipeline.
"""

import logging
import os
import sys

# Create logger
logger = logging.getLogger('event_feed')
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO').upper())

# Console handler with formatting
if not logger.handlers:
    console = logging.StreamHandler(sys.stdout)

    formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-5s | %(name)s | %(message)s',
        datefmt='%H:%M:%S'
    )
    console.setFormatter(formatter)

    logger.addHandler(console)


def set_level(level: str):
    """Change the package log level (e.g. 'DEBUG')."""
    logger.setLevel(level.upper())


# Component-specific loggers
def get_logger(name):
    """Get a child logger for a pipeline component."""
    return logger.getChild(name)
