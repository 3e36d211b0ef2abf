"""Caller-side submission of files to an :class:`Extractor`.

Every file gets its own :class:`ExtractionResult`, keyed by its position in
the selection. Calls run concurrently and each one only ever touches its own
entry, so siblings cannot corrupt each other and no locking is needed.
"""

import asyncio
import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from loguru import logger

from domain.errors import ExtractionError, SubmissionRejectedError
from domain.models import COMPLETED, ExtractionRequest, ExtractionResult, SourceFile
from src.core.extractor import Extractor

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class ResultsExport:
    filename: str
    content: str


class SubmissionOrchestrator:
    def __init__(
        self,
        extractor: Extractor,
        progress_interval: float = 0.1,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.extractor = extractor
        self.progress_interval = progress_interval
        self.on_progress = on_progress
        self.files: List[SourceFile] = []
        self._results: Dict[int, ExtractionResult] = {}
        self.is_processing = False
        self._progress = 0.0

    @property
    def results(self) -> List[ExtractionResult]:
        return [self._results[i] for i in sorted(self._results)]

    def select_files(self, files: Sequence[SourceFile]):
        self.files = list(files)
        self._results = {}

    def remove_file(self, index: int):
        del self.files[index]
        if not self.files:
            self._results = {}

    @property
    def progress(self) -> float:
        return self._progress

    def _settled_percentage(self) -> float:
        if not self._results:
            return 0.0
        settled = sum(1 for r in self._results.values() if r.is_settled)
        return settled / len(self._results) * 100

    def _report_progress(self, value: float):
        self._progress = value
        if self.on_progress is None:
            return
        try:
            self.on_progress(value)
        except Exception:
            logger.exception(f"Progress callback failed at {value:.0f}%")

    async def _watch_progress(self):
        # Display-only; may lag behind calls that just settled
        reported = 0.0
        while True:
            await asyncio.sleep(self.progress_interval)
            current = self._settled_percentage()
            if current > reported:
                reported = current
                self._report_progress(current)

    def summary(self) -> Dict[str, int]:
        counts = {"completed": 0, "error": 0, "processing": 0}
        for result in self._results.values():
            counts[result.status] += 1
        return counts

    def _validate(self, credential: str):
        if not credential or not credential.strip():
            raise SubmissionRejectedError("Please enter your LandingAI API key")
        if not self.files:
            raise SubmissionRejectedError("Please select files to process")

    async def _run_one(self, index: int, source: SourceFile, credential: str):
        request = ExtractionRequest(
            file_bytes=source.content,
            file_name=source.name,
            file_type=source.content_type,
            credential=credential,
        )
        entry = self._results[index]
        try:
            document = await self.extractor.extract(request)
        except ExtractionError as e:
            logger.warning(f"Extraction failed for {source.name}: {e.message}")
            entry.fail(e.message or "Processing failed")
        except Exception:
            logger.exception(f"Unexpected failure for {source.name}")
            entry.fail("Network error occurred")
        else:
            entry.complete(document)

    async def process(self, credential: str) -> List[ExtractionResult]:
        self._validate(credential)

        files = list(self.files)
        self._results = {i: ExtractionResult(file_name=f.name) for i, f in enumerate(files)}
        self.is_processing = True
        self._report_progress(0.0)
        logger.info(f"Dispatching {len(files)} file(s) for extraction")

        watcher = asyncio.create_task(self._watch_progress())
        try:
            await asyncio.gather(
                *(self._run_one(i, f, credential) for i, f in enumerate(files))
            )
        finally:
            watcher.cancel()
            try:
                await watcher
            except asyncio.CancelledError:
                pass
            self.is_processing = False

        self._report_progress(100.0)
        logger.info(f"Extraction finished: {self.summary()}")
        return self.results

    def export(self, today: Optional[date] = None) -> ResultsExport:
        completed = [r.to_export() for r in self.results if r.status == COMPLETED]
        stamp = (today or datetime.now(timezone.utc).date()).isoformat()
        return ResultsExport(
            filename=f"extraction-results-{stamp}.json",
            content=json.dumps(completed, indent=2, ensure_ascii=False),
        )
