from __future__ import annotations

from .options import BrowserContextConfig, DOMSelectorConfig, LLMSelectorConfig
from .settings import Settings, configure_logging, settings

__all__ = [
    "BrowserContextConfig",
    "DOMSelectorConfig",
    "LLMSelectorConfig",
    "Settings",
    "configure_logging",
    "settings",
]
