"""Binary rendering of drafted markup.

PDF documents are printed by a headless Chromium driven through Playwright;
Word documents are converted directly from the markup without a browser.
Browsers are never pooled: each PDF render launches its own instance, and a
semaphore caps how many run at once.
"""

from __future__ import annotations

import asyncio
import html
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import Browser, async_playwright

from app.core.config import GenerationConfig
from app.core.errors import RenderingError
from app.schemas.domain import FooterFields, OutputFormat
from app.services.docx_writer import html_to_docx

logger = logging.getLogger(__name__)

PAGE_FORMAT = "A4"
PAGE_MARGINS = {"top": "20mm", "right": "20mm", "bottom": "25mm", "left": "20mm"}
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]
HEADER_TEMPLATE = "<div></div>"


def footer_template(footer: FooterFields) -> str:
    """Per-page footer: signer name/address, contact lines, page number."""
    name = html.escape(footer.name)
    address = html.escape(footer.address)
    contact = "<br>".join(html.escape(line) for line in footer.contact)
    return (
        '<div style="width: 100%; font-size: 9px; color: #444; display: flex; '
        'justify-content: space-between; padding: 0 10mm;">'
        '<div style="display: flex; gap: 15px;">'
        f"<div>{name}<br>{address}</div>"
        f"<div>{contact}</div>"
        "</div>"
        '<div><span class="pageNumber"></span></div>'
        "</div>"
    )


class DocumentRenderer:
    """Renders drafted markup to PDF or DOCX bytes."""

    def __init__(self, config: GenerationConfig):
        self._config = config
        self._slots = asyncio.Semaphore(config.render_max_concurrency)

    async def render(self, markup: str, footer: FooterFields, output_format: OutputFormat) -> bytes:
        """Render markup in the requested format.

        Raises:
            RenderingError: Browser or conversion failure, or no free render slot.
        """
        if not markup or not markup.strip():
            raise RenderingError("nothing to render: markup is empty")

        if output_format is OutputFormat.word:
            return await self._render_word(markup, footer)
        return await self._render_pdf(markup, footer)

    # -------------
    # Word path
    # -------------
    async def _render_word(self, markup: str, footer: FooterFields) -> bytes:
        logger.info("Generating Word document from %d chars of markup", len(markup))
        try:
            data = await asyncio.to_thread(html_to_docx, markup, footer)
        except Exception as e:
            logger.warning("Word conversion failed: %s", e, exc_info=True)
            raise RenderingError(f"word conversion failed: {type(e).__name__}: {e}") from e
        logger.info("Word document generated: %d bytes", len(data))
        return data

    # -------------
    # PDF path
    # -------------
    @asynccontextmanager
    async def _render_slot(self) -> AsyncIterator[None]:
        """Hold one of the limited browser slots, rejecting when none frees up in time."""
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self._config.render_queue_timeout_s)
        except asyncio.TimeoutError:
            raise RenderingError(
                f"renderer busy: no browser slot within {self._config.render_queue_timeout_s:g}s"
            ) from None
        try:
            yield
        finally:
            self._slots.release()

    @asynccontextmanager
    async def _browser(self) -> AsyncIterator[Browser]:
        """Launch an isolated browser that is closed on every exit path."""
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True, args=BROWSER_ARGS)
            try:
                yield browser
            finally:
                try:
                    await browser.close()
                except Exception as e:
                    logger.error("Error closing browser: %s", e)

    async def _print_pdf(self, markup: str, footer: FooterFields) -> bytes:
        async with self._browser() as browser:
            page = await browser.new_page()
            await page.set_content(
                markup,
                wait_until="networkidle",
                timeout=self._config.page_load_timeout_s * 1000,
            )
            await page.emulate_media(media="print")
            return await page.pdf(
                format=PAGE_FORMAT,
                print_background=False,
                display_header_footer=True,
                header_template=HEADER_TEMPLATE,
                footer_template=footer_template(footer),
                margin=PAGE_MARGINS,
            )

    async def _render_pdf(self, markup: str, footer: FooterFields) -> bytes:
        async with self._render_slot():
            try:
                data = await asyncio.wait_for(
                    self._print_pdf(markup, footer),
                    timeout=self._config.render_timeout_s,
                )
            except asyncio.TimeoutError as e:
                raise RenderingError(
                    f"PDF rendering timed out after {self._config.render_timeout_s:g}s"
                ) from e
            except Exception as e:
                logger.warning("PDF rendering failed: %s", e, exc_info=True)
                raise RenderingError(f"PDF rendering failed: {type(e).__name__}: {e}") from e

        logger.info("PDF generated: %d bytes", len(data))
        return data


__all__ = ["DocumentRenderer", "footer_template"]
