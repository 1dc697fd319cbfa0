"""
Default tournament settings, overridable through environment variables.
"""
import logging
import os

logger = logging.getLogger(__name__)


def env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f'Ignoring non-integer {name}={value!r}, using {default}')
        return default


def get_default_settings():
    """Return default tournament settings."""
    return {
        'points_for_win': env_int('RINK_POINTS_FOR_WIN', 2),
        'points_for_tie': env_int('RINK_POINTS_FOR_TIE', 1),
        'points_for_loss': env_int('RINK_POINTS_FOR_LOSS', 0),
        'game_minutes': env_int('RINK_GAME_MINUTES', 60),
    }


def merge_settings(data):
    """Fill in any settings missing from a stored settings mapping."""
    settings = get_default_settings()
    if data:
        settings.update(data)
    return settings
