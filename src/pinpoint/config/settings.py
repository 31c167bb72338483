from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    highlight_elements: bool = _env_bool("PINPOINT_HIGHLIGHT_ELEMENTS", True)
    viewport_expansion: int = int(os.getenv("PINPOINT_VIEWPORT_EXPANSION", "500"))
    include_dynamic_attributes: bool = _env_bool("PINPOINT_INCLUDE_DYNAMIC_ATTRIBUTES", True)
    wait_between_actions: float = float(os.getenv("PINPOINT_WAIT_BETWEEN_ACTIONS", "0.5"))
    click_timeout_ms: int = int(os.getenv("PINPOINT_CLICK_TIMEOUT_MS", "1500"))
    traverse_iframes: bool = _env_bool("PINPOINT_TRAVERSE_IFRAMES", True)
    screenshot_max_width: int = int(os.getenv("PINPOINT_SCREENSHOT_MAX_WIDTH", "0"))  # 0 = keep size
    headless: bool = _env_bool("HEADLESS", True)
    llm_model: str = os.getenv("PINPOINT_LLM_MODEL", "claude-sonnet-4-20250514")
    llm_max_retries: int = int(os.getenv("PINPOINT_LLM_MAX_RETRIES", "3"))
    log_level: str = os.getenv("PINPOINT_LOG_LEVEL", "INFO")


settings = Settings()


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach a stdout handler to the ``pinpoint`` logger (idempotent)."""
    logger = logging.getLogger("pinpoint")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)
    log_level = (level or settings.log_level).upper()
    logger.setLevel(getattr(logging, log_level, logging.INFO))
    return logger
