"""Headless browser rendering for client-rendered pages."""

import asyncio
import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright
from pydantic import BaseModel, ConfigDict

from ...core.errors import classify_http_status, network_error, timeout_error

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = {"width": 1280, "height": 800}


class RenderedPage(BaseModel):
    """Serialized DOM of a page after scripts have run."""

    model_config = ConfigDict(frozen=True)

    url: str
    final_url: str
    html: str
    title: Optional[str] = None


async def render_page(
    url: str,
    *,
    timeout: float = 30.0,
    wait_after_load: float = 2.0,
    user_agent: Optional[str] = None,
    wait_until: str = "networkidle",
) -> RenderedPage:
    """Render a page in headless Chromium and return the serialized DOM.

    Navigation waits for network idle, then a fixed settle delay lets late
    client-side rendering finish before ``page.content()`` is taken.

    Raises:
        AppError: TIMEOUT on navigation timeout, NOT_FOUND/SERVER_ERROR/NETWORK_ERROR
            for error responses, NETWORK_ERROR for any other browser failure
    """
    context_options = {"viewport": DEFAULT_VIEWPORT}
    if user_agent:
        context_options["user_agent"] = user_agent

    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            try:
                context = await browser.new_context(**context_options)
                page = await context.new_page()
                page.set_default_timeout(timeout * 1000)

                response = await page.goto(url, wait_until=wait_until)
                if response is None:
                    raise network_error(
                        "No response received from server", context={"url": url}
                    )
                if response.status >= 400:
                    raise classify_http_status(response.status, url)

                if wait_after_load > 0:
                    await asyncio.sleep(wait_after_load)

                html = await page.content()
                title = await page.title()
                logger.debug(f"Rendered {url} ({len(html)} chars)")
                return RenderedPage(url=url, final_url=page.url, html=html, title=title or None)
            finally:
                await browser.close()

    except PlaywrightTimeoutError as e:
        raise timeout_error(original_error=e, context={"url": url})
    except PlaywrightError as e:
        raise network_error(f"Browser rendering failed: {e}", e, {"url": url})
