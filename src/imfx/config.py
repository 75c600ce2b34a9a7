"""
Configuration & Limits
======================
This module serves as the central registry for global constants.

Each constant has a built-in default that can be overridden through an
environment variable, read once at import time.

Exports:
    BUFFER_CAPACITY (int): Maximum number of words in the encode buffer.
    MAX_NESTING_DEPTH (int): Maximum overlay nesting depth accepted by the parser.
    MAX_NUMBER (int): Largest numeric argument accepted by the parser.
    MAX_IMAGE_PIXELS (int): Largest image, in pixels, an operation may produce.
    LOSSLESS_FORMATS (tuple[str, ...]): Pillow formats allowed on stdout.
    OUTPUT_FORMAT (str): Pillow format name of the image written to stdout.
    LOG_LEVEL (int): Default logging level of the command-line tool.
"""
import logging
import os

logger = logging.getLogger(__name__)


def get_env_int(name: str, default: int) -> int:
    """
    Read a positive integer from the environment.

    Args:
        name: Environment variable name.
        default: Value used when the variable is unset or invalid.
    """
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not an integer, using {default}.")
        return default
    if value <= 0:
        logger.warning(f"Ignoring {name}={raw!r}: must be positive, using {default}.")
        return default
    return value


def get_env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    """Read an upper-cased value from the environment, restricted to `choices`."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().upper()
    if value in choices:
        return value
    logger.warning(f"Ignoring {name}={raw!r}: expected one of {', '.join(choices)}, using {default}.")
    return default


def get_env_log_level(name: str, default: int) -> int:
    """Read a logging level name (e.g. ``DEBUG``) from the environment."""
    raw = os.environ.get(name)
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    if isinstance(level, int):
        return level
    logger.warning(f"Ignoring {name}={raw!r}: unknown logging level.")
    return default


# Global Constants
BUFFER_CAPACITY: int = get_env_int("IMFX_BUFFER_CAPACITY", 1024)
MAX_NESTING_DEPTH: int = get_env_int("IMFX_MAX_NESTING_DEPTH", 64)
MAX_NUMBER: int = get_env_int("IMFX_MAX_NUMBER", 2**31 - 1)
MAX_IMAGE_PIXELS: int = get_env_int("IMFX_MAX_IMAGE_PIXELS", 2**28)
LOSSLESS_FORMATS: tuple[str, ...] = ("PNG", "TIFF", "BMP")
OUTPUT_FORMAT: str = get_env_choice("IMFX_OUTPUT_FORMAT", "PNG", LOSSLESS_FORMATS)
LOG_LEVEL: int = get_env_log_level("IMFX_LOG_LEVEL", logging.WARNING)
