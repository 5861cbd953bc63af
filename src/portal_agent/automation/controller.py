"""
Browser Controller

Manages the single Playwright browser connection the portal backend
drives. The connection is reused across calls and transparently
re-created when the browser disconnects or the page is closed.
"""

import os
from dataclasses import dataclass
from typing import Optional, Literal

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)
from dotenv import load_dotenv

from ..config import get_logger

load_dotenv()

logger = get_logger(__name__)

BrowserType = Literal["chromium", "firefox", "webkit"]


@dataclass
class BrowserConfig:
    """
    Configuration for the browser instance.

    Reads from environment variables with sensible defaults.
    """

    browser_type: BrowserType = "chromium"

    # Visible by default so an operator can follow the portal session
    headless: bool = False

    viewport_width: int = 1280
    viewport_height: int = 720

    # Slow motion delay in ms
    slow_mo: int = 500

    # Default action timeout in ms
    action_timeout: int = 30000

    # Navigation timeout in ms
    navigation_timeout: int = 30000

    @classmethod
    def from_env(cls) -> "BrowserConfig":
        """
        Create BrowserConfig from environment variables.

        Environment variables:
            BROWSER_TYPE: chromium, firefox, or webkit (default: chromium)
            BROWSER_HEADLESS: true/false (default: false)
            BROWSER_VIEWPORT_WIDTH: int (default: 1280)
            BROWSER_VIEWPORT_HEIGHT: int (default: 720)
            BROWSER_SLOW_MO: int in ms (default: 500)
            ACTION_TIMEOUT: int in ms (default: 30000)
            NAVIGATION_TIMEOUT: int in ms (default: 30000)
        """
        env_type = os.getenv("BROWSER_TYPE", "chrome").lower()
        browser_type_map = {
            "chrome": "chromium",
            "chromium": "chromium",
            "firefox": "firefox",
            "webkit": "webkit",
            "safari": "webkit",
        }

        return cls(
            browser_type=browser_type_map.get(env_type, "chromium"),
            headless=os.getenv("BROWSER_HEADLESS", "false").lower() in ("true", "1", "yes"),
            viewport_width=int(os.getenv("BROWSER_VIEWPORT_WIDTH", "1280")),
            viewport_height=int(os.getenv("BROWSER_VIEWPORT_HEIGHT", "720")),
            slow_mo=int(os.getenv("BROWSER_SLOW_MO", "500")),
            action_timeout=int(os.getenv("ACTION_TIMEOUT", "30000")),
            navigation_timeout=int(os.getenv("NAVIGATION_TIMEOUT", "30000")),
        )


class BrowserController:
    """
    Owns one Playwright browser, context and page.

    Not safe for concurrent use by several workflow sessions; callers
    serialize access.

    Usage:
        >>> async with BrowserController() as browser:
        ...     page = await browser.get_page()
        ...     await page.goto("https://example.com")
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        self.config = config or BrowserConfig.from_env()

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def is_connected(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def initialize(self) -> None:
        """Start Playwright and launch the browser if not already running."""
        if self._playwright is None:
            self._playwright = await async_playwright().start()

        if self._browser is not None and not self._browser.is_connected():
            logger.info("Browser disconnected, relaunching")
            self._reset()

        if self._browser is None:
            launcher = self._get_browser_launcher()
            self._browser = await launcher.launch(
                headless=self.config.headless,
                slow_mo=self.config.slow_mo,
                args=["--no-sandbox", "--disable-setuid-sandbox"],
            )
            self._browser.on("disconnected", lambda _: self._reset())

    def _get_browser_launcher(self):
        launchers = {
            "chromium": self._playwright.chromium,
            "firefox": self._playwright.firefox,
            "webkit": self._playwright.webkit,
        }
        return launchers.get(self.config.browser_type, self._playwright.chromium)

    def _reset(self) -> None:
        self._page = None
        self._context = None
        self._browser = None

    async def get_page(self) -> Page:
        """Return the live page, creating browser, context and page as needed."""
        await self.initialize()

        if self._page is not None and self._page.is_closed():
            logger.info("Page closed, creating a new context")
            self._page = None
            self._context = None

        if self._page is None:
            self._context = await self._browser.new_context(
                viewport={
                    "width": self.config.viewport_width,
                    "height": self.config.viewport_height,
                },
            )
            self._context.set_default_timeout(self.config.action_timeout)
            self._context.set_default_navigation_timeout(self.config.navigation_timeout)
            self._page = await self._context.new_page()

        return self._page

    async def close(self) -> None:
        """Close page, context, browser and Playwright. Errors are logged."""
        for name, resource in (
            ("page", self._page),
            ("context", self._context),
            ("browser", self._browser),
        ):
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                logger.debug("Error closing %s: %s", name, e)
        self._reset()

        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug("Error stopping Playwright: %s", e)
            self._playwright = None

    async def __aenter__(self) -> "BrowserController":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
