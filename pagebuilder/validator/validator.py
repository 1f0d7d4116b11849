"""
Conversion Validator - runs the visual, asset and custom-code passes and
folds them into a single ValidationResult.

All I/O is bounded by one semaphore and one timeout per pass. Timeouts and
I/O failures are recorded as warnings; they never fail the conversion.
"""
import asyncio
import logging
from typing import Awaitable, List, Optional, TypeVar

import httpx

from pagebuilder.config import settings
from pagebuilder.models import (
    AnalyzedElement,
    AssetVerificationResult,
    ConversionResult,
    CustomCodeDetection,
    Impact,
    Severity,
    ValidationResult,
    VisualComparisonResult,
)
from .assets import AssetVerifier, collect_assets
from .custom_code import CustomCodeDetector
from .preview import preview_html
from .renderer import PlaywrightRenderer, Renderer
from .visual import VisualComparator

logger = logging.getLogger(__name__)

T = TypeVar("T")

VALID_SCORE = 80


class ConversionValidator:
    """
    Validates a finished conversion against the page it came from.

    The visual pass only runs when a renderer is available; the asset and
    custom-code passes always run.
    """

    def __init__(
        self,
        renderer: Optional[Renderer] = None,
        asset_client: Optional[httpx.AsyncClient] = None,
        max_workers: Optional[int] = None,
    ):
        self.renderer = renderer
        self.asset_verifier = AssetVerifier(client=asset_client)
        self.custom_code_detector = CustomCodeDetector()
        self.max_workers = max_workers or settings.VALIDATION_MAX_WORKERS

    async def validate(
        self,
        result: ConversionResult,
        root: AnalyzedElement,
        original_source: Optional[str] = None,
        markup: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ValidationResult:
        """
        Args:
            result: The conversion to validate
            root: Analyzed tree of the original page
            original_source: URL or HTML of the original page for rendering
                (defaults to the analyzed markup)
            markup: Full source document, when the analyzed root is only its
                body (head scripts, stylesheets and styles live there)
            base_url: Resolves relative asset URLs
            timeout: Seconds allowed per pass

        Returns:
            ValidationResult with every pass attached
        """
        timeout = timeout or settings.VALIDATION_TIMEOUT_SECONDS
        semaphore = asyncio.Semaphore(self.max_workers)
        validation = ValidationResult()

        visual_task = None
        if self.renderer is not None:
            comparator = VisualComparator(self.renderer)
            visual_task = self._guarded(
                "Visual comparison",
                comparator.compare(original_source or markup or root.html, preview_html(result), semaphore),
                timeout,
                validation,
            )

        assets = collect_assets(root, base_url, markup)
        asset_task = self._guarded(
            "Asset verification",
            self.asset_verifier.verify(assets, semaphore),
            timeout,
            validation,
        )

        if visual_task is not None:
            visual, asset_result = await asyncio.gather(visual_task, asset_task)
        else:
            visual, asset_result = None, await asset_task

        validation.customCode = self.custom_code_detector.detect(markup or root.html)

        if visual is None and visual_task is not None:
            visual = VisualComparisonResult(timedOut=True)
        if asset_result is None:
            asset_result = AssetVerificationResult(totalAssets=len(assets), timedOut=True)
        validation.visual = visual
        validation.assets = asset_result

        self._combine(validation)
        logger.info(
            f"Validation for {result.targetBuilder.value}: score={validation.overallScore}, "
            f"valid={validation.isValid}, canExport={validation.canExport}, "
            f"{len(validation.errors)} errors, {len(validation.warnings)} warnings"
        )
        return validation

    async def _guarded(
        self,
        name: str,
        pass_coro: Awaitable[T],
        timeout: float,
        validation: ValidationResult,
    ) -> Optional[T]:
        try:
            return await asyncio.wait_for(pass_coro, timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{name} timed out after {timeout:g}s")
            validation.warnings.append(f"{name} timed out after {timeout:g}s; results are incomplete")
            validation.requiresOverride = True
        except httpx.HTTPError as e:
            logger.warning(f"{name} failed: {e}")
            validation.warnings.append(f"{name} failed: {e}")
            validation.requiresOverride = True
        except Exception as e:
            # Renderer failures surface as browser-specific exception types
            logger.warning(f"{name} failed: {e}", exc_info=True)
            validation.warnings.append(f"{name} failed: {e}")
            validation.requiresOverride = True
        return None

    def _combine(self, validation: ValidationResult):
        scores: List[float] = []

        visual = validation.visual
        if visual is not None and not visual.timedOut:
            scores.append(visual.similarityScore)
            self._visual_findings(visual, validation)

        assets = validation.assets
        if assets is not None and not assets.timedOut:
            scores.append(assets.compatibilityScore)
            self._asset_findings(assets, validation)

        custom = validation.customCode
        if custom is not None:
            scores.append(custom.compatibilityScore)
            self._custom_code_findings(custom, validation)

        validation.overallScore = round(min(scores)) if scores else 100
        validation.isValid = not validation.errors and validation.overallScore >= VALID_SCORE
        validation.criticalViolations = len(validation.errors)

        blocking = custom is not None and any(i.impact == Impact.BLOCKING for i in custom.incompatibilities)
        validation.canExport = not blocking and validation.criticalViolations == 0
        if not validation.canExport:
            validation.requiresOverride = True

    def _visual_findings(self, visual: VisualComparisonResult, validation: ValidationResult):
        similarity = visual.similarityScore
        if similarity < settings.VISUAL_SIMILARITY_ERROR_THRESHOLD:
            validation.errors.append(
                f"Visual similarity {similarity:g}% is below {settings.VISUAL_SIMILARITY_ERROR_THRESHOLD:g}%"
            )
        elif similarity < settings.VISUAL_SIMILARITY_WARNING_THRESHOLD:
            validation.warnings.append(
                f"Visual similarity {similarity:g}% is below {settings.VISUAL_SIMILARITY_WARNING_THRESHOLD:g}%"
            )

        if visual.missingElements:
            validation.errors.append(f"{len(visual.missingElements)} elements missing from the converted page")
            validation.suggestions.append("Review html-widget fallbacks for the missing elements")
        if visual.extraElements:
            validation.warnings.append(f"{len(visual.extraElements)} extra elements in the converted page")

        major = [d for d in visual.styleDiscrepancies if d.severity == Severity.MAJOR]
        if major:
            validation.errors.append(f"{len(major)} major style discrepancies (layout or sizing)")

    def _asset_findings(self, assets: AssetVerificationResult, validation: ValidationResult):
        score = assets.compatibilityScore
        if score < settings.ASSET_COMPATIBILITY_ERROR_THRESHOLD:
            validation.errors.append(
                f"Only {score:g}% of assets are reachable "
                f"({len(assets.missing)} missing, {len(assets.broken)} broken)"
            )
        elif score < settings.ASSET_COMPATIBILITY_WARNING_THRESHOLD:
            validation.warnings.append(f"{score:g}% of assets are reachable")

        for check in assets.critical_failures:
            validation.errors.append(f"Critical {check.assetType.value} unavailable: {check.url}")
        if assets.missing or assets.broken:
            validation.suggestions.append("Re-upload missing assets to the media library before importing")

    def _custom_code_findings(self, custom: CustomCodeDetection, validation: ValidationResult):
        if not custom.canBeConverted:
            validation.errors.append(
                f"Custom code cannot be converted (compatibility {custom.compatibilityScore:g}%)"
            )

        for incompatibility in custom.incompatibilities:
            message = f"{incompatibility.feature}: {incompatibility.description}"
            if incompatibility.impact == Impact.BLOCKING:
                validation.errors.append(message)
            elif incompatibility.impact == Impact.DEGRADED:
                validation.warnings.append(message)
            if incompatibility.suggestion:
                validation.suggestions.append(incompatibility.suggestion)

        for warning in custom.warnings:
            if warning.critical:
                validation.errors.append(warning.message)
            else:
                validation.warnings.append(warning.message)


_validator = None


def get_validator() -> ConversionValidator:
    global _validator
    if _validator is None:
        _validator = ConversionValidator(renderer=PlaywrightRenderer())
    return _validator
