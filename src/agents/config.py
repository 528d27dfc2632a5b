"""
Configuration for the declaration extractor.

Settings come from environment variables:
  - ANTHROPIC_API_KEY (unset: extraction degrades to an empty result)
  - DECLARATION_MODEL (default: claude-sonnet-4-5)
  - DECLARATION_MAX_TOKENS (default: 8192)
  - DECLARATION_TIMEOUT (seconds, default: 300)
  - DECLARATION_INSTRUCTIONS_DIR (default: packaged instructions)
"""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5"
DEFAULT_MAX_TOKENS = 8192
DEFAULT_TIMEOUT = 300.0

PACKAGED_INSTRUCTIONS_DIR = Path(__file__).parent / "instructions" / "declaration-extractor"


def get_api_key() -> Optional[str]:
    """Anthropic API key, or None if the completion service is not configured."""
    return os.environ.get("ANTHROPIC_API_KEY") or None


def get_model() -> str:
    return os.environ.get("DECLARATION_MODEL", DEFAULT_MODEL)


def _env_number(name: str, parse, default):
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return parse(value)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={value!r}, using {default}")
        return default


def get_max_tokens() -> int:
    return _env_number("DECLARATION_MAX_TOKENS", int, DEFAULT_MAX_TOKENS)


def get_timeout() -> float:
    return _env_number("DECLARATION_TIMEOUT", float, DEFAULT_TIMEOUT)


def get_instructions_dir() -> Path:
    """
    Get the instructions directory for the declaration extractor.

    Uses DECLARATION_INSTRUCTIONS_DIR if set, otherwise the instructions
    shipped with the package.
    """
    env_path = os.environ.get("DECLARATION_INSTRUCTIONS_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return PACKAGED_INSTRUCTIONS_DIR
