"""Visual comparison of the original page against the converted output"""
import io
import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from pagebuilder.models import (
    ComparisonMetrics,
    Severity,
    StyleDiscrepancy,
    Viewport,
    VisualComparisonResult,
)
from .renderer import Renderer, RenderSnapshot, VIEWPORTS

logger = logging.getLogger(__name__)

# Channel difference (0-1) above which a pixel counts as changed
PIXEL_THRESHOLD = 0.1

MAX_DISCREPANCIES = 50

MAJOR_PROPERTIES = {"display", "position", "width", "height"}
MODERATE_PROPERTIES = {"fontSize", "color", "backgroundColor"}


def load_image(data: bytes) -> np.ndarray:
    img = Image.open(io.BytesIO(data))
    return np.array(img.convert("RGB"))


def pixel_difference(original: np.ndarray, converted: np.ndarray, threshold: float = PIXEL_THRESHOLD) -> float:
    """
    Percentage of differing pixels over the overlapping area.

    Full-page screenshots rarely share a height, so both images are cropped
    to the common top-left region before comparing.
    """
    height = min(original.shape[0], converted.shape[0])
    width = min(original.shape[1], converted.shape[1])
    if height == 0 or width == 0:
        return 100.0

    a = original[:height, :width].astype(np.int16)
    b = converted[:height, :width].astype(np.int16)
    delta = np.abs(a - b).max(axis=2)
    changed = np.count_nonzero(delta > threshold * 255)
    return float(changed) * 100.0 / (height * width)


def similarity_from_difference(difference: float) -> float:
    return round(max(0.0, min(100.0, 100.0 - difference)), 2)


def compare_images(original: bytes, converted: bytes, viewport: Viewport) -> ComparisonMetrics:
    a = load_image(original)
    b = load_image(converted)
    difference = pixel_difference(a, b)
    return ComparisonMetrics(
        viewport=viewport.name,
        similarityScore=similarity_from_difference(difference),
        pixelDifference=round(difference, 2),
        dimensionMismatch=a.shape[:2] != b.shape[:2],
    )


def element_differences(original: Sequence[str], converted: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Selectors only in the original (missing) and only in the conversion (extra), in document order."""
    converted_set = set(converted)
    original_set = set(original)
    missing = [selector for selector in dict.fromkeys(original) if selector not in converted_set]
    extra = [selector for selector in dict.fromkeys(converted) if selector not in original_set]
    return missing, extra


def discrepancy_severity(prop: str) -> Severity:
    if prop in MAJOR_PROPERTIES:
        return Severity.MAJOR
    if prop in MODERATE_PROPERTIES:
        return Severity.MODERATE
    return Severity.MINOR


def style_discrepancies(
    original: Dict[str, Dict[str, str]],
    converted: Dict[str, Dict[str, str]],
    limit: int = MAX_DISCREPANCIES,
) -> List[StyleDiscrepancy]:
    """Compare computed styles of elements present in both renderings."""
    found: List[StyleDiscrepancy] = []
    for selector, expected_styles in original.items():
        actual_styles = converted.get(selector)
        if actual_styles is None:
            continue
        for prop, expected in expected_styles.items():
            actual = actual_styles.get(prop)
            if actual is None or actual == expected:
                continue
            found.append(StyleDiscrepancy(
                selector=selector,
                property=prop,
                expected=expected,
                actual=actual,
                severity=discrepancy_severity(prop),
            ))
            if len(found) >= limit:
                return found
    return found


class VisualComparator:
    """Renders both pages at every viewport and compares the results"""

    def __init__(self, renderer: Renderer, viewports: Optional[List[Viewport]] = None):
        self.renderer = renderer
        self.viewports = viewports or VIEWPORTS

    async def _render(self, source: str, viewport: Viewport, semaphore: asyncio.Semaphore) -> RenderSnapshot:
        async with semaphore:
            return await self.renderer.render(source, viewport)

    async def compare(
        self,
        original: str,
        converted: str,
        semaphore: Optional[asyncio.Semaphore] = None,
    ) -> VisualComparisonResult:
        semaphore = semaphore or asyncio.Semaphore(len(self.viewports) * 2)

        renders = []
        for viewport in self.viewports:
            renders.append(self._render(original, viewport, semaphore))
            renders.append(self._render(converted, viewport, semaphore))
        snapshots = await asyncio.gather(*renders)

        metrics: List[ComparisonMetrics] = []
        missing: List[str] = []
        extra: List[str] = []
        discrepancies: List[StyleDiscrepancy] = []
        for index, viewport in enumerate(self.viewports):
            before, after = snapshots[2 * index], snapshots[2 * index + 1]
            metrics.append(compare_images(before.image, after.image, viewport))

            viewport_missing, viewport_extra = element_differences(before.selectors, after.selectors)
            missing.extend(s for s in viewport_missing if s not in missing)
            extra.extend(s for s in viewport_extra if s not in extra)
            if len(discrepancies) < MAX_DISCREPANCIES:
                discrepancies.extend(style_discrepancies(
                    before.styles, after.styles, MAX_DISCREPANCIES - len(discrepancies)
                ))

        similarity = round(sum(m.similarityScore for m in metrics) / len(metrics), 2)
        difference = round(sum(m.pixelDifference for m in metrics) / len(metrics), 2)
        logger.info(
            f"Visual comparison: {similarity}% similar across {len(metrics)} viewports, "
            f"{len(missing)} missing, {len(extra)} extra elements"
        )

        return VisualComparisonResult(
            similarityScore=similarity,
            pixelDifference=difference,
            metrics=metrics,
            missingElements=missing,
            extraElements=extra,
            styleDiscrepancies=discrepancies,
        )
