# -*- coding: utf-8 -*-
import logging
from abc import ABC, abstractmethod
from typing import List, Optional
from playwright.async_api import async_playwright, Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from linkmeta.core.config import settings
from linkmeta.utils.url_utils import is_safe_url
from .exceptions import RenderError, RenderTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_BROWSER_ARGS = [
    '--disable-blink-features=AutomationControlled',
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--window-size=1280,720',
]


class PageRendererInterface(ABC):
    """Interface for rendering pages in a real browser"""

    @abstractmethod
    async def render(self, url: str) -> str:
        """Return the markup of the page after scripts have run"""
        pass


class PageRenderer(PageRendererInterface):
    """
    Renders a page in headless Chromium and returns the resulting DOM.

    Every call launches its own browser and closes it before returning,
    whatever the outcome. Browsers are never shared between calls.
    """

    def __init__(self,
                 headless: Optional[bool] = None,
                 navigation_timeout_ms: Optional[int] = None,
                 settle_delay_ms: Optional[int] = None,
                 browser_args: Optional[List[str]] = None):
        self.headless = settings.render_headless if headless is None else headless
        self.navigation_timeout_ms = (settings.render_navigation_timeout_ms
                                      if navigation_timeout_ms is None else navigation_timeout_ms)
        self.settle_delay_ms = settings.render_settle_delay_ms if settle_delay_ms is None else settle_delay_ms
        self.browser_args = browser_args or DEFAULT_BROWSER_ARGS

    async def render(self, url: str) -> str:
        logger.info(f"Rendering page in headless browser: {url}")

        if not is_safe_url(url):
            raise RenderError(f"Refusing to render unsafe URL: {url}")

        try:
            async with async_playwright() as playwright:
                browser = await playwright.chromium.launch(
                    headless=self.headless,
                    args=self.browser_args,
                    timeout=self.navigation_timeout_ms,
                )
                try:
                    context = await browser.new_context(
                        user_agent=settings.fetch_user_agent,
                        locale="en-US",
                    )
                    page = await context.new_page()
                    page.set_default_timeout(self.navigation_timeout_ms)

                    await page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
                    # Let late client-side elements (avatars, banners) attach
                    await page.wait_for_timeout(self.settle_delay_ms)

                    html = await page.content()
                finally:
                    await browser.close()
        except PlaywrightTimeoutError as e:
            logger.warning(f"Rendering timed out for URL {url}: {str(e)}")
            raise RenderTimeoutError(url, self.navigation_timeout_ms)
        except PlaywrightError as e:
            logger.warning(f"Browser error while rendering URL {url}: {str(e)}")
            raise RenderError(f"Browser error: {str(e)}")

        logger.info(f"Rendered page {url} ({len(html)} bytes)")
        return html
