import asyncio
import json
from datetime import date, datetime, timezone

import pytest

from conftest import make_document
from domain.errors import CredentialRejectedError, SubmissionRejectedError
from domain.models import SourceFile
from src.core.extractor import Extractor
from src.core.orchestrator import SubmissionOrchestrator


class ScriptedExtractor(Extractor):
    """Settles each file after a per-name delay, or raises the scripted error."""

    def __init__(self, delays=None, errors=None):
        self.delays = delays or {}
        self.errors = errors or {}
        self.calls = []

    async def extract(self, request):
        self.calls.append(request)
        await asyncio.sleep(self.delays.get(request.file_name, 0))
        if request.file_name in self.errors:
            raise self.errors[request.file_name]
        return make_document(file_name=request.file_name, text=f"text of {request.file_name}")


def _files(*names):
    return [SourceFile(name=n, content=b"bytes", content_type="application/pdf") for n in names]


@pytest.mark.asyncio
async def test_each_completion_updates_only_its_own_entry():
    # Later files finish first
    extractor = ScriptedExtractor(delays={"a.pdf": 0.05, "b.pdf": 0.02, "c.pdf": 0})
    orchestrator = SubmissionOrchestrator(extractor, progress_interval=0.01)
    orchestrator.select_files(_files("a.pdf", "b.pdf", "c.pdf"))

    results = await orchestrator.process("key")

    assert [r.file_name for r in results] == ["a.pdf", "b.pdf", "c.pdf"]
    assert [r.extracted_text for r in results] == ["text of a.pdf", "text of b.pdf", "text of c.pdf"]
    assert all(r.status == "completed" for r in results)
    assert all(r.history == ["processing", "completed"] for r in results)


@pytest.mark.asyncio
async def test_one_failure_does_not_affect_siblings():
    extractor = ScriptedExtractor(
        errors={
            "bad.pdf": CredentialRejectedError("Invalid API key"),
            "boom.pdf": RuntimeError("socket closed"),
        }
    )
    orchestrator = SubmissionOrchestrator(extractor, progress_interval=0.01)
    orchestrator.select_files(_files("good.pdf", "bad.pdf", "boom.pdf"))

    good, bad, boom = await orchestrator.process("key")

    assert good.status == "completed"
    assert bad.status == "error"
    assert bad.error_message == "Invalid API key"
    assert boom.status == "error"
    assert boom.error_message == "Network error occurred"
    assert orchestrator.summary() == {"completed": 1, "error": 2, "processing": 0}


@pytest.mark.asyncio
@pytest.mark.parametrize("credential", ["", "   "])
async def test_blank_credential_is_rejected_before_dispatch(credential):
    extractor = ScriptedExtractor()
    orchestrator = SubmissionOrchestrator(extractor)
    orchestrator.select_files(_files("a.pdf"))

    with pytest.raises(SubmissionRejectedError):
        await orchestrator.process(credential)

    assert extractor.calls == []
    assert orchestrator.results == []


@pytest.mark.asyncio
async def test_empty_selection_is_rejected():
    extractor = ScriptedExtractor()
    orchestrator = SubmissionOrchestrator(extractor)

    with pytest.raises(SubmissionRejectedError, match="select files"):
        await orchestrator.process("key")

    assert extractor.calls == []


@pytest.mark.asyncio
async def test_progress_reports_are_monotonic_and_end_at_100():
    reported = []
    extractor = ScriptedExtractor(delays={"a.pdf": 0.01, "b.pdf": 0.08})
    orchestrator = SubmissionOrchestrator(extractor, progress_interval=0.01, on_progress=reported.append)
    orchestrator.select_files(_files("a.pdf", "b.pdf"))

    await orchestrator.process("key")

    assert reported[0] == 0.0
    assert reported[-1] == 100.0
    assert reported == sorted(reported)
    assert orchestrator.progress == 100.0
    assert orchestrator.is_processing is False


@pytest.mark.asyncio
async def test_export_contains_only_completed_entries():
    extractor = ScriptedExtractor(errors={"bad.pdf": CredentialRejectedError("nope")})
    orchestrator = SubmissionOrchestrator(extractor, progress_interval=0.01)
    orchestrator.select_files(_files("good.pdf", "bad.pdf"))
    await orchestrator.process("key")

    export = orchestrator.export(today=date(2024, 5, 1))

    assert export.filename == "extraction-results-2024-05-01.json"
    exported = json.loads(export.content)
    assert len(exported) == 1
    assert exported[0]["fileName"] == "good.pdf"
    assert exported[0]["status"] == "completed"
    assert exported[0]["extractedText"] == "text of good.pdf"
    assert exported[0]["entities"] == [{"type": "NAME", "value": "Jane", "confidence": 0.9}]
    assert exported[0]["data"] == {"predictions": [{"extracted_text": "text of good.pdf"}]}


def test_export_without_completed_entries_is_empty_array():
    orchestrator = SubmissionOrchestrator(ScriptedExtractor())

    export = orchestrator.export()

    assert json.loads(export.content) == []
    assert export.filename == f"extraction-results-{datetime.now(timezone.utc).date().isoformat()}.json"


@pytest.mark.asyncio
async def test_selecting_files_clears_previous_results():
    orchestrator = SubmissionOrchestrator(ScriptedExtractor(), progress_interval=0.01)
    orchestrator.select_files(_files("a.pdf"))
    await orchestrator.process("key")
    assert len(orchestrator.results) == 1

    orchestrator.select_files(_files("b.pdf", "c.pdf"))

    assert orchestrator.results == []
    assert [f.name for f in orchestrator.files] == ["b.pdf", "c.pdf"]


@pytest.mark.asyncio
async def test_removing_last_file_clears_results():
    orchestrator = SubmissionOrchestrator(ScriptedExtractor(), progress_interval=0.01)
    orchestrator.select_files(_files("a.pdf", "b.pdf"))
    await orchestrator.process("key")

    orchestrator.remove_file(0)
    assert [f.name for f in orchestrator.files] == ["b.pdf"]
    assert len(orchestrator.results) == 2

    orchestrator.remove_file(0)
    assert orchestrator.files == []
    assert orchestrator.results == []


@pytest.mark.asyncio
@pytest.mark.parametrize("failing_value", [0.0, 50.0, 100.0])
async def test_failing_progress_callback_does_not_break_the_batch(failing_value):
    seen = []

    def callback(value):
        seen.append(value)
        if value == failing_value:
            raise RuntimeError("display went away")

    extractor = ScriptedExtractor(delays={"a.pdf": 0.01, "b.pdf": 0.08})
    orchestrator = SubmissionOrchestrator(extractor, progress_interval=0.01, on_progress=callback)
    orchestrator.select_files(_files("a.pdf", "b.pdf"))

    results = await orchestrator.process("key")

    assert [r.status for r in results] == ["completed", "completed"]
    assert orchestrator.progress == 100.0
    assert orchestrator.is_processing is False
    assert seen[-1] == 100.0


def test_export_name_uses_utc_date(monkeypatch):
    class LateEveningUtc(datetime):
        @classmethod
        def now(cls, tz=None):
            assert tz is timezone.utc
            return datetime(2024, 5, 1, 23, 30, tzinfo=timezone.utc)

    monkeypatch.setattr("src.core.orchestrator.datetime", LateEveningUtc)
    orchestrator = SubmissionOrchestrator(ScriptedExtractor())

    assert orchestrator.export().filename == "extraction-results-2024-05-01.json"
