"""
Asset verification - collect every external resource a page references and
check that it is still reachable.
"""
import re
import asyncio
import logging
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from pagebuilder.config import settings
from pagebuilder.models import (
    AnalyzedElement,
    AssetBucket,
    AssetCheck,
    AssetStatus,
    AssetType,
    AssetVerificationResult,
)

logger = logging.getLogger(__name__)

URL_IN_CSS = re.compile(r'url\(["\']?([^"\')\s]+)["\']?\)')
FONT_FACE = re.compile(r"@font-face\s*{[^}]*}", re.IGNORECASE)
FONT_EXTENSIONS = (".woff", ".woff2", ".ttf", ".otf", ".eot")

MISSING_STATUS_CODES = {404, 410}

# Servers that refuse HEAD get a second chance with GET
HEAD_REJECTED_STATUS_CODES = {403, 405, 501}


def _srcset_urls(srcset: str) -> List[str]:
    return [candidate.strip().split(" ")[0] for candidate in srcset.split(",") if candidate.strip()]


class AssetCollector:
    """Collects (url, type) pairs from an analyzed tree in document order."""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url
        self._assets: Dict[str, AssetType] = {}

    def _add(self, url: Optional[str], asset_type: AssetType):
        if not url:
            return
        url = url.strip()
        if not url or url.startswith(("data:", "blob:", "#", "javascript:", "about:")):
            return
        if not url.startswith(("http://", "https://")):
            if not self.base_url:
                return
            url = urljoin(self.base_url, url)
        self._assets.setdefault(url, asset_type)

    def collect(self, root: AnalyzedElement, markup: Optional[str] = None) -> List[Tuple[str, AssetType]]:
        for element in root.walk():
            self._from_element(element)

        # <link>, <script> and <style> never become tree nodes
        self._from_markup(markup or root.html)
        return list(self._assets.items())

    def _from_element(self, element: AnalyzedElement):
        attributes = element.attributes
        tag = element.tagName

        if tag == "img":
            self._add(attributes.get("src") or attributes.get("data-src"), AssetType.IMAGE)
            for url in _srcset_urls(attributes.get("srcset") or attributes.get("data-srcset") or ""):
                self._add(url, AssetType.IMAGE)
        elif tag == "video":
            self._add(attributes.get("src") or attributes.get("data-src"), AssetType.VIDEO)
            self._add(attributes.get("poster"), AssetType.IMAGE)
        elif tag == "iframe":
            self._add(attributes.get("src"), AssetType.VIDEO)

        # Already reduced to the url() target by the analyzer
        self._add(element.styles.backgroundImage, AssetType.IMAGE)

    def _from_markup(self, html: str):
        if not html:
            return
        soup = BeautifulSoup(html, "lxml")

        for source in soup.find_all("source"):
            parent = source.parent.name if source.parent else ""
            if parent in ("video", "audio"):
                self._add(source.get("src"), AssetType.VIDEO)
            else:
                for url in _srcset_urls(source.get("srcset") or ""):
                    self._add(url, AssetType.IMAGE)

        for link in soup.find_all("link", href=True):
            rel = " ".join(link.get("rel") or []).lower()
            href = link["href"]
            if link.get("as") == "font" or href.lower().split("?")[0].endswith(FONT_EXTENSIONS):
                self._add(href, AssetType.FONT)
            elif "stylesheet" in rel:
                self._add(href, AssetType.STYLESHEET)

        for script in soup.find_all("script", src=True):
            self._add(script["src"], AssetType.SCRIPT)

        for style in soup.find_all("style"):
            for block in FONT_FACE.findall(style.get_text()):
                for url in URL_IN_CSS.findall(block):
                    self._add(url, AssetType.FONT)


def collect_assets(
    root: AnalyzedElement,
    base_url: Optional[str] = None,
    markup: Optional[str] = None,
) -> List[Tuple[str, AssetType]]:
    return AssetCollector(base_url).collect(root, markup)


def _status_from_code(code: int) -> AssetStatus:
    if code < 400:
        return AssetStatus.REACHABLE
    if code in MISSING_STATUS_CODES:
        return AssetStatus.MISSING
    return AssetStatus.BROKEN


async def check_asset(client: httpx.AsyncClient, url: str, asset_type: AssetType) -> AssetCheck:
    """HEAD the asset, retrying with GET when the server rejects HEAD."""
    try:
        response = await client.head(url, follow_redirects=True)
        if response.status_code in HEAD_REJECTED_STATUS_CODES:
            response = await client.get(url, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.debug(f"Asset check failed for {url}: {e}")
        return AssetCheck(url=url, assetType=asset_type, status=AssetStatus.BROKEN, error=str(e) or type(e).__name__)

    return AssetCheck(
        url=url,
        assetType=asset_type,
        status=_status_from_code(response.status_code),
        statusCode=response.status_code,
    )


def summarize_checks(checks: List[AssetCheck]) -> AssetVerificationResult:
    result = AssetVerificationResult(totalAssets=len(checks), checks=checks)
    buckets: Dict[str, AssetBucket] = {}
    for check in checks:
        bucket = buckets.setdefault(check.assetType.value, AssetBucket())
        bucket.total += 1
        if check.status == AssetStatus.REACHABLE:
            bucket.reachable += 1
            result.reachable.append(check.url)
        elif check.status == AssetStatus.MISSING:
            bucket.missing += 1
            result.missing.append(check.url)
        else:
            bucket.broken += 1
            result.broken.append(check.url)

    result.assetsByType = buckets
    if checks:
        result.compatibilityScore = round(len(result.reachable) * 100.0 / len(checks), 2)
    return result


class AssetVerifier:
    """
    Checks asset reachability concurrently.

    A client can be injected (tests pass one backed by httpx.MockTransport);
    otherwise one is created per verification run.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        self._client = client
        self.timeout = timeout or settings.ASSET_CHECK_TIMEOUT_SECONDS

    async def _check(
        self,
        client: httpx.AsyncClient,
        url: str,
        asset_type: AssetType,
        semaphore: asyncio.Semaphore,
    ) -> AssetCheck:
        async with semaphore:
            return await check_asset(client, url, asset_type)

    async def verify(
        self,
        assets: List[Tuple[str, AssetType]],
        semaphore: Optional[asyncio.Semaphore] = None,
    ) -> AssetVerificationResult:
        if not assets:
            return AssetVerificationResult()

        semaphore = semaphore or asyncio.Semaphore(settings.VALIDATION_MAX_WORKERS)
        if self._client is not None:
            checks = await asyncio.gather(
                *(self._check(self._client, url, asset_type, semaphore) for url, asset_type in assets)
            )
        else:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=self.timeout)) as client:
                checks = await asyncio.gather(
                    *(self._check(client, url, asset_type, semaphore) for url, asset_type in assets)
                )

        result = summarize_checks(list(checks))
        logger.info(
            f"Verified {result.totalAssets} assets: {len(result.reachable)} reachable, "
            f"{len(result.missing)} missing, {len(result.broken)} broken"
        )
        return result
