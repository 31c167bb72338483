"""Chromium launcher for scripts and integration tests."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from playwright.async_api import async_playwright

from ..config.settings import settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from playwright.async_api import Page

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = {"width": 1280, "height": 800}


@asynccontextmanager
async def open_page(
    headless: bool | None = None, viewport: dict[str, int] | None = None
) -> AsyncGenerator[Page, None]:
    """Launch Chromium and yield a fresh page; everything is closed on exit.

    Usage:
        async with open_page() as page:
            await page.goto("https://example.com")
    """
    headless = settings.headless if headless is None else headless
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(
            headless=headless,
            args=[
                "--no-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
                "--disable-extensions",
            ],
        )
        try:
            context = await browser.new_context(viewport=viewport or DEFAULT_VIEWPORT)
            page = await context.new_page()
            logger.debug(f"Browser started (headless={headless})")
            yield page
        finally:
            await browser.close()
