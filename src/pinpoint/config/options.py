"""Per-object configuration models.

Defaults come from the environment-driven ``settings`` singleton so a bare
``BrowserContextConfig()`` honours ``PINPOINT_*`` variables.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .settings import settings

DEFAULT_INCLUDE_ATTRIBUTES = [
    "title",
    "type",
    "name",
    "role",
    "aria-label",
    "placeholder",
    "value",
    "alt",
    "aria-expanded",
    "data-testid",
]


class BrowserContextConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    highlight_elements: bool = Field(
        default_factory=lambda: settings.highlight_elements,
        alias="highlightElements",
        description="Draw numbered bounding boxes over interactive elements",
    )
    viewport_expansion: int = Field(
        default_factory=lambda: settings.viewport_expansion,
        alias="viewportExpansion",
        ge=0,
        description="Pixels added on every side of the viewport for the visibility test",
    )
    include_dynamic_attributes: bool = Field(
        default_factory=lambda: settings.include_dynamic_attributes,
        alias="includeDynamicAttributes",
        description="Allow data-id/data-qa/data-cy/data-testid in synthesized selectors",
    )
    wait_between_actions: float = Field(
        default_factory=lambda: settings.wait_between_actions,
        alias="waitBetweenActions",
        ge=0,
        description="Seconds to pause after a successful click or fill",
    )
    click_timeout_ms: int = Field(default_factory=lambda: settings.click_timeout_ms, ge=0)
    traverse_iframes: bool = Field(
        default_factory=lambda: settings.traverse_iframes,
        description="Capture the documents of iframe/frame elements as part of the snapshot",
    )
    screenshot_max_width: int = Field(
        default_factory=lambda: settings.screenshot_max_width,
        ge=0,
        description="Downscale state screenshots wider than this (0 keeps the original size)",
    )


class LLMSelectorConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    include_attributes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INCLUDE_ATTRIBUTES), alias="includeAttributes"
    )
    use_vision: bool = Field(True, alias="useVision")
    max_retries: int = Field(
        default_factory=lambda: settings.llm_max_retries, alias="maxRetries", ge=1
    )


class DOMSelectorConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    browser_context: BrowserContextConfig = Field(
        default_factory=BrowserContextConfig, alias="browserContext"
    )
    llm_selector: LLMSelectorConfig = Field(
        default_factory=LLMSelectorConfig, alias="llmSelector"
    )
