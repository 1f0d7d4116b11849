"""
Conversion Engine - orchestrates the pipeline for one page:

    Analyzer -> Recognizer -> {Typography, Colors, Hierarchy} -> Converter -> Validation

Everything up to the converter is synchronous and pure. Analysis happens
once per request; every requested target converts the same immutable
hierarchy, each on its own worker thread.
"""
import time
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from pagebuilder.analyzer import analyze_html, analyze_node, get_color_extractor, get_typography_extractor
from pagebuilder.converters import get_converter
from pagebuilder.errors import InvalidStateTransition, MalformedInputError
from pagebuilder.hierarchy import build_hierarchy
from pagebuilder.models import (
    AnalyzedElement,
    BuilderType,
    ColorSystem,
    ComponentHierarchy,
    ConversionOptions,
    ConversionResult,
    ConversionStatus,
    RecognitionResult,
    RecognizedComponent,
    TypographySystem,
)
from pagebuilder.recognizer import get_recognizer
from pagebuilder.streaming.events import ProgressCallback
from pagebuilder.validator import ConversionValidator, get_validator

logger = logging.getLogger(__name__)

TRANSITIONS = {
    ConversionStatus.PENDING: {ConversionStatus.CONVERTING, ConversionStatus.FAILED},
    ConversionStatus.CONVERTING: {ConversionStatus.VALIDATING, ConversionStatus.DONE, ConversionStatus.FAILED},
    ConversionStatus.VALIDATING: {ConversionStatus.DONE, ConversionStatus.FAILED},
    ConversionStatus.DONE: set(),
    ConversionStatus.FAILED: set(),
}


class ConversionJob:
    """
    State machine for one (page, target) conversion.

    pending -> converting -> {validating -> done} | failed
    """

    def __init__(
        self,
        target: BuilderType,
        on_transition: Optional[Callable[["ConversionJob", ConversionStatus], None]] = None,
    ):
        self.target = target
        self.status = ConversionStatus.PENDING
        self.history: List[ConversionStatus] = [ConversionStatus.PENDING]
        self._on_transition = on_transition

    def transition(self, status: ConversionStatus):
        if status not in TRANSITIONS[self.status]:
            raise InvalidStateTransition(self.status.value, status.value)
        logger.debug(f"{self.target.value}: {self.status.value} -> {status.value}")
        self.status = status
        self.history.append(status)
        if self._on_transition:
            self._on_transition(self, status)

    @property
    def finished(self) -> bool:
        return self.status in (ConversionStatus.DONE, ConversionStatus.FAILED)


@dataclass(frozen=True)
class PreparedPage:
    """
    Target-independent analysis of one page.

    Attributes:
        root: Analyzed element tree
        recognitions: Recognition result per element path
        components: Flat pre-order list of recognized components
        hierarchy: Builder-neutral IR shared by every target
        typography: Extracted type system
        colors: Extracted color palette and spacing scale
        markup: Source HTML when the page came in as HTML
    """
    root: AnalyzedElement
    recognitions: Dict[str, RecognitionResult]
    components: List[RecognizedComponent]
    hierarchy: ComponentHierarchy
    typography: TypographySystem
    colors: ColorSystem
    markup: Optional[str] = None


class ConversionEngine:
    """Runs page analysis and one or more target conversions"""

    def __init__(self, validator: Optional[ConversionValidator] = None):
        self._validator = validator

    @property
    def validator(self) -> ConversionValidator:
        if self._validator is None:
            self._validator = get_validator()
        return self._validator

    def prepare(
        self,
        html: Optional[str] = None,
        dom: Optional[Dict[str, Any]] = None,
        min_confidence: Optional[float] = None,
    ) -> PreparedPage:
        """Analyze, recognize, extract typography and colors, and build the hierarchy."""
        if html is not None:
            root = analyze_html(html)
        elif dom is not None:
            root = analyze_node(dom)
        else:
            raise MalformedInputError("Either html or dom must be provided")

        recognizer = get_recognizer()
        recognitions = recognizer.recognize_tree(root, min_confidence)
        return PreparedPage(
            root=root,
            recognitions=recognitions,
            components=recognizer.recognized_components(root, recognitions),
            hierarchy=build_hierarchy(root, recognitions),
            typography=get_typography_extractor().extract(root, recognitions),
            colors=get_color_extractor().extract(root, recognitions),
            markup=html,
        )

    def convert_page(self, page: PreparedPage, options: ConversionOptions) -> ConversionResult:
        """Run one target converter over a prepared page (synchronous)."""
        start = time.perf_counter()
        converter = get_converter(options.targetBuilder)
        result = converter.convert(page.hierarchy, page.typography, options, page.colors)
        result.components = page.components
        result.stats.durationMs = round((time.perf_counter() - start) * 1000, 2)
        return result

    async def _advance(self, job: ConversionJob, status: ConversionStatus, progress: Optional[ProgressCallback]):
        job.transition(status)
        if progress:
            await progress.phase(status.value, job.target.value)

    async def _run_target(
        self,
        page: PreparedPage,
        options: ConversionOptions,
        progress: Optional[ProgressCallback] = None,
    ) -> ConversionResult:
        job = ConversionJob(options.targetBuilder)
        await self._advance(job, ConversionStatus.CONVERTING, progress)

        try:
            result = await asyncio.to_thread(self.convert_page, page, options)
        except Exception as e:
            logger.error(f"Conversion to {options.targetBuilder.value} failed: {e}", exc_info=True)
            await self._advance(job, ConversionStatus.FAILED, progress)
            raise

        if options.runValidation:
            await self._advance(job, ConversionStatus.VALIDATING, progress)
            try:
                result.validation = await self.validator.validate(
                    result,
                    page.root,
                    original_source=options.originalUrl,
                    markup=page.markup,
                    base_url=options.originalUrl,
                    timeout=options.validationTimeout,
                )
            except Exception as e:
                logger.error(f"Validation of {options.targetBuilder.value} failed: {e}", exc_info=True)
                await self._advance(job, ConversionStatus.FAILED, progress)
                raise

        await self._advance(job, ConversionStatus.DONE, progress)
        result.status = job.status
        logger.info(
            f"Converted to {options.targetBuilder.value} in {result.stats.durationMs}ms: "
            f"{result.stats.nativeWidgets} native, {result.stats.htmlFallbacks} fallbacks, "
            f"{len(result.warnings)} warnings"
        )
        return result

    async def convert(
        self,
        html: Optional[str] = None,
        dom: Optional[Dict[str, Any]] = None,
        options: Optional[ConversionOptions] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ConversionResult:
        """
        Convert one page to one target builder.

        Args:
            html: Page HTML with computed styles inlined
            dom: Serialized element tree (used when html is None)
            options: Conversion options (target, thresholds, validation)
            progress: Receives status and state-transition events

        Returns:
            ConversionResult for options.targetBuilder

        Raises:
            MalformedInputError: The input cannot be analyzed
        """
        options = options or ConversionOptions()
        if progress:
            await progress.status("Analyzing page")
        page = self.prepare(html, dom, options.minConfidence)
        return await self._run_target(page, options, progress)

    async def convert_html(
        self,
        html: str,
        options: Optional[ConversionOptions] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ConversionResult:
        return await self.convert(html=html, options=options, progress=progress)

    async def convert_all_targets(
        self,
        html: Optional[str] = None,
        dom: Optional[Dict[str, Any]] = None,
        targets: Optional[List[Union[BuilderType, str]]] = None,
        options: Optional[ConversionOptions] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, ConversionResult]:
        """Convert one page to several targets concurrently, keyed by target name."""
        options = options or ConversionOptions()
        builders = [get_converter(t).builder for t in (targets or list(BuilderType))]
        builders = list(dict.fromkeys(builders))

        if progress:
            await progress.status("Analyzing page", {"targets": [b.value for b in builders]})
        page = self.prepare(html, dom, options.minConfidence)

        start = time.perf_counter()
        results = await asyncio.gather(*(
            self._run_target(page, options.model_copy(update={"targetBuilder": builder}), progress)
            for builder in builders
        ))
        logger.info(
            f"Converted to {len(builders)} targets in {round((time.perf_counter() - start) * 1000, 2)}ms"
        )
        return {builder.value: result for builder, result in zip(builders, results)}


_engine = None


def get_conversion_engine() -> ConversionEngine:
    global _engine
    if _engine is None:
        _engine = ConversionEngine()
    return _engine


def set_conversion_engine(engine: ConversionEngine):
    """Replace the shared engine (used by tests and the app lifespan)"""
    global _engine
    _engine = engine
