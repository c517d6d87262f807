"""
Logging configuration for the fleet maintenance tracker.
"""

import logging
import logging.config
from typing import Any, Dict, Optional

from fleet_tracker.config import Settings, get_settings

_configured = False


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    """Create the dictConfig payload for the given settings."""
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'colored': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'log_colors': {
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            }
        },
        'handlers': {
            'console': {
                'level': 'DEBUG' if settings.DEBUG else settings.LOG_LEVEL,
                'class': 'logging.StreamHandler',
                'formatter': 'colored' if settings.is_development() else 'standard'
            }
        },
        'loggers': {
            'fleet_tracker': {
                'handlers': ['console'],
                'level': settings.LOG_LEVEL,
                'propagate': False
            },
            'sqlalchemy.engine': {
                'handlers': ['console'],
                'level': 'INFO' if settings.DATABASE_ECHO else 'WARNING',
                'propagate': False
            }
        }
    }


def setup_logging(settings: Optional[Settings] = None, force: bool = False) -> None:
    """Apply the logging configuration once per process (unless forced)."""
    global _configured
    if _configured and not force:
        return
    logging.config.dictConfig(build_logging_config(settings or get_settings()))
    _configured = True
