"""
Rendering capability used by the visual comparison pass.

The validator only depends on the `Renderer` protocol; `PlaywrightRenderer`
is the headless-Chromium implementation used by the service.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from playwright.async_api import async_playwright

from pagebuilder.config import settings
from pagebuilder.models import Viewport

logger = logging.getLogger(__name__)

VIEWPORTS = [
    Viewport(name="mobile", width=375, height=667),
    Viewport(name="tablet", width=768, height=1024),
    Viewport(name="laptop", width=1366, height=768),
    Viewport(name="desktop", width=1920, height=1080),
]

# Properties compared between the original and converted renderings
COMPARED_STYLES = (
    "display",
    "position",
    "width",
    "height",
    "fontSize",
    "color",
    "backgroundColor",
    "fontFamily",
    "fontWeight",
    "textAlign",
    "lineHeight",
    "marginTop",
    "marginBottom",
    "paddingTop",
    "paddingBottom",
)

# Visible elements keyed by "#id", else "tag.class1.class2", else the tag
SNAPSHOT_SCRIPT = '''(props) => {
    const selectors = [];
    const styles = {};
    const selectorFor = (el) => {
        if (el.id) return '#' + el.id;
        const tag = el.tagName.toLowerCase();
        const classes = Array.from(el.classList).filter(c => c);
        return classes.length ? tag + '.' + classes.join('.') : tag;
    };
    for (const el of document.body.querySelectorAll('*')) {
        const tag = el.tagName.toLowerCase();
        if (['script', 'style', 'noscript', 'template', 'link', 'meta'].includes(tag)) continue;
        const rect = el.getBoundingClientRect();
        if (rect.width === 0 && rect.height === 0) continue;
        const selector = selectorFor(el);
        if (selector in styles) continue;
        selectors.push(selector);
        const computed = window.getComputedStyle(el);
        const record = {};
        for (const prop of props) {
            record[prop] = computed[prop] || '';
        }
        styles[selector] = record;
    }
    return {selectors, styles};
}'''


@dataclass
class RenderSnapshot:
    """
    One rendering of a page at one viewport.

    Attributes:
        image: PNG screenshot bytes
        selectors: Visible element selectors in document order
        styles: Computed style subset per selector
    """
    image: bytes
    selectors: List[str] = field(default_factory=list)
    styles: Dict[str, Dict[str, str]] = field(default_factory=dict)


class Renderer(Protocol):
    async def render(self, source: str, viewport: Viewport) -> RenderSnapshot:
        """Render a URL or an HTML string at a viewport."""
        ...


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://", "file://"))


class PlaywrightRenderer:
    """
    Headless Chromium renderer.

    The browser is started on first use and shared by every render call;
    each call gets its own page, so concurrent renders are independent.
    """

    def __init__(self, headless: Optional[bool] = None, settle_seconds: float = 0.5):
        self.headless = settings.RENDER_HEADLESS if headless is None else headless
        self.settle_seconds = settle_seconds
        self._playwright = None
        self._browser = None
        self._lock = asyncio.Lock()

    async def _ensure_browser(self):
        async with self._lock:
            if not self._playwright:
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(headless=self.headless)
                logger.info(f"Started Chromium (headless={self.headless})")
        return self._browser

    async def render(self, source: str, viewport: Viewport) -> RenderSnapshot:
        browser = await self._ensure_browser()
        page = await browser.new_page()

        try:
            await page.set_viewport_size({"width": viewport.width, "height": viewport.height})
            if is_url(source):
                await page.goto(source, wait_until="networkidle")
            else:
                await page.set_content(source, wait_until="networkidle")

            # Let layout and web fonts settle
            await asyncio.sleep(self.settle_seconds)

            image = await page.screenshot(full_page=True, type="png")
            snapshot = await page.evaluate(SNAPSHOT_SCRIPT, list(COMPARED_STYLES))
            logger.debug(
                f"Rendered {viewport.name} ({viewport.width}x{viewport.height}): "
                f"{len(image)} bytes, {len(snapshot.get('selectors', []))} elements"
            )
            return RenderSnapshot(
                image=image,
                selectors=snapshot.get("selectors", []),
                styles=snapshot.get("styles", {}),
            )
        finally:
            await page.close()

    async def close(self):
        """Close the browser."""
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
