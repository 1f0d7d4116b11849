"""
Tests for the conversion engine, job state machine and progress events.

Run with: pytest tests/test_engine.py -v
"""
import pytest

from pagebuilder.errors import InvalidStateTransition, MalformedInputError, UnsupportedBuilderError
from pagebuilder.models import BuilderType, ConversionOptions, ConversionStatus
from pagebuilder.services import ConversionEngine, ConversionJob
from pagebuilder.streaming import EventType, ProgressCallback
from pagebuilder.validator import ConversionValidator

from conftest import HEADING_PAGE, LANDING_PAGE


def drain(progress):
    events = []
    while not progress.queue.empty():
        events.append(progress.queue.get_nowait())
    return events


@pytest.fixture
def engine():
    # No renderer: validation runs the asset and custom-code passes only
    return ConversionEngine(validator=ConversionValidator())


# ---------------------------------------------------------------------------
# Job state machine
# ---------------------------------------------------------------------------


class TestConversionJob:
    def test_happy_path(self):
        seen = []
        job = ConversionJob(BuilderType.DIVI, on_transition=lambda j, status: seen.append(status))
        job.transition(ConversionStatus.CONVERTING)
        job.transition(ConversionStatus.VALIDATING)
        job.transition(ConversionStatus.DONE)
        assert job.finished
        assert job.history == [
            ConversionStatus.PENDING,
            ConversionStatus.CONVERTING,
            ConversionStatus.VALIDATING,
            ConversionStatus.DONE,
        ]
        assert seen == job.history[1:]

    def test_validation_is_optional(self):
        job = ConversionJob(BuilderType.BRICKS)
        job.transition(ConversionStatus.CONVERTING)
        job.transition(ConversionStatus.DONE)
        assert job.status == ConversionStatus.DONE

    @pytest.mark.parametrize("path", [
        [ConversionStatus.DONE],
        [ConversionStatus.VALIDATING],
        [ConversionStatus.CONVERTING, ConversionStatus.PENDING],
        [ConversionStatus.FAILED, ConversionStatus.CONVERTING],
        [ConversionStatus.CONVERTING, ConversionStatus.DONE, ConversionStatus.FAILED],
    ])
    def test_invalid_transitions(self, path):
        job = ConversionJob(BuilderType.OXYGEN)
        with pytest.raises(InvalidStateTransition):
            for status in path:
                job.transition(status)

    def test_rejected_transition_keeps_state(self):
        job = ConversionJob(BuilderType.OXYGEN)
        with pytest.raises(InvalidStateTransition) as exc:
            job.transition(ConversionStatus.DONE)
        assert exc.value.current == "pending"
        assert exc.value.target == "done"
        assert job.status == ConversionStatus.PENDING


class TestProgressCallback:
    @pytest.mark.asyncio
    async def test_nothing_queued_after_complete(self):
        progress = ProgressCallback()
        await progress.phase("converting", "divi")
        await progress.complete({"ok": True})
        await progress.status("late")
        events = drain(progress)
        assert [e.event for e in events] == [EventType.PHASE, EventType.COMPLETE]
        assert events[0].payload() == {"target": "divi", "message": "divi: converting", "data": {"state": "converting"}}

    @pytest.mark.asyncio
    async def test_events_stop_at_terminal_and_report_idle(self):
        progress = ProgressCallback()
        seen = []
        async for event in progress.events(idle_timeout=0.01):
            seen.append(event)
            if event is None:
                await progress.error("boom")
        assert seen[0] is None
        assert seen[-1].event == EventType.ERROR


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class TestPrepare:
    def test_requires_input(self, engine):
        with pytest.raises(MalformedInputError):
            engine.prepare()

    def test_from_dom(self, engine):
        page = engine.prepare(dom={"tag": "div", "children": [{"tag": "h2", "text": "Hi"}]})
        assert page.markup is None
        assert [c.componentType.value for c in page.components] == ["container", "heading"]

    def test_from_html(self, engine):
        page = engine.prepare(html=HEADING_PAGE)
        assert page.markup == HEADING_PAGE
        assert page.hierarchy.id == "node_0"
        assert set(page.recognitions) == {e.path for e in page.root.walk()}

    def test_colors_extracted_once(self, engine):
        page = engine.prepare(html=LANDING_PAGE)
        assert page.colors.statistics.mostUsedColor == "#ffffff"
        assert page.colors.spacing.tokens


class TestConvert:
    @pytest.mark.asyncio
    async def test_single_target(self, engine):
        result = await engine.convert(html=HEADING_PAGE, options=ConversionOptions(targetBuilder="gutenberg"))
        assert result.targetBuilder == BuilderType.GUTENBERG
        assert result.status == ConversionStatus.DONE
        assert len(result.components) == 3
        assert result.stats.durationMs >= 0
        assert result.validation is None

    @pytest.mark.asyncio
    async def test_convert_html(self, engine):
        result = await engine.convert_html(HEADING_PAGE)
        assert result.targetBuilder == BuilderType.ELEMENTOR
        assert result.colors is not None

    @pytest.mark.asyncio
    async def test_heading_page_to_gutenberg(self, engine):
        result = await engine.convert_html(HEADING_PAGE, options=ConversionOptions(targetBuilder="gutenberg"))
        blocks = result.exportData["blocks"]
        assert [block["blockName"] for block in blocks] == ["core/heading", "core/paragraph"]
        assert blocks[0]["attrs"]["level"] == 1
        assert result.fallbacks == []
        assert not result.manualReviewNeeded
        assert "<p>Body</p>" in result.serialized

    @pytest.mark.asyncio
    async def test_empty_document(self, engine):
        with pytest.raises(MalformedInputError):
            await engine.convert(html="")

    @pytest.mark.asyncio
    async def test_progress_events(self, engine):
        progress = ProgressCallback()
        await engine.convert(html=HEADING_PAGE, options=ConversionOptions(targetBuilder="divi"), progress=progress)
        events = drain(progress)
        assert events[0].event == EventType.STATUS
        phases = [e.data["state"] for e in events if e.event == EventType.PHASE]
        assert phases == ["converting", "done"]
        assert all(e.target == "divi" for e in events if e.event == EventType.PHASE)

    @pytest.mark.asyncio
    async def test_validation_phase(self, engine):
        progress = ProgressCallback()
        options = ConversionOptions(targetBuilder="gutenberg", runValidation=True)
        result = await engine.convert(html=HEADING_PAGE, options=options, progress=progress)
        phases = [e.data["state"] for e in drain(progress) if e.event == EventType.PHASE]
        assert phases == ["converting", "validating", "done"]
        assert result.validation is not None
        assert result.validation.isValid

    @pytest.mark.asyncio
    async def test_converter_failure_marks_failed(self, engine, monkeypatch):
        def explode(page, options):
            raise RuntimeError("converter bug")

        monkeypatch.setattr(engine, "convert_page", explode)
        progress = ProgressCallback()
        with pytest.raises(RuntimeError):
            await engine.convert(html=HEADING_PAGE, progress=progress)
        phases = [e.data["state"] for e in drain(progress) if e.event == EventType.PHASE]
        assert phases == ["converting", "failed"]


class TestConvertAllTargets:
    @pytest.mark.asyncio
    async def test_every_target_by_default(self, engine):
        results = await engine.convert_all_targets(html=LANDING_PAGE)
        assert set(results) == {b.value for b in BuilderType}
        hierarchies = {r.hierarchy.model_dump_json() for r in results.values()}
        assert len(hierarchies) == 1
        assert all(r.status == ConversionStatus.DONE for r in results.values())
        assert all(results[name].targetBuilder.value == name for name in results)

    @pytest.mark.asyncio
    async def test_duplicate_targets_collapse(self, engine):
        results = await engine.convert_all_targets(html=HEADING_PAGE, targets=["gutenberg", BuilderType.GUTENBERG, "bricks"])
        assert list(results) == ["gutenberg", "bricks"]

    @pytest.mark.asyncio
    async def test_unsupported_target(self, engine):
        with pytest.raises(UnsupportedBuilderError):
            await engine.convert_all_targets(html=HEADING_PAGE, targets=["squarespace"])

    @pytest.mark.asyncio
    async def test_phase_events_per_target(self, engine):
        progress = ProgressCallback()
        await engine.convert_all_targets(html=HEADING_PAGE, targets=["elementor", "oxygen"], progress=progress)
        events = drain(progress)
        assert events[0].data == {"targets": ["elementor", "oxygen"]}
        for target in ("elementor", "oxygen"):
            phases = [e.data["state"] for e in events if e.event == EventType.PHASE and e.target == target]
            assert phases == ["converting", "done"]
