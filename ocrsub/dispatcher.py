"""
Extraction Dispatcher — Runs OCR over frame captures with a bounded pool.

Each image maps to one text artifact. An existing artifact means the
image was already processed, so reruns only pick up what is missing.
One failed image never stops the others.
"""

import os
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .extractor import ImageToTextConverter

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png")
ARTIFACT_EXTENSION = ".txt"
DEFAULT_MAX_CONCURRENCY = 5

# (completed, total, outcome) -> None
JobCallback = Optional[Callable[[int, int, "JobOutcome"], None]]


@dataclass(frozen=True)
class ExtractionJob:
    """One image to OCR and where its text goes."""
    source_name: str
    source_path: Path
    artifact_path: Path


class JobStatus(Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class JobOutcome:
    """Terminal state of an ExtractionJob."""
    job: ExtractionJob
    status: JobStatus
    reason: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status is JobStatus.FAILED


def discover_jobs(
    images_dir: Path,
    texts_dir: Path,
    extensions: Iterable[str] = IMAGE_EXTENSIONS
) -> List[ExtractionJob]:
    """
    Build extraction jobs for every image in ``images_dir``.

    Files are filtered by extension (case-insensitive) and sorted by name.

    Raises:
        OSError: If ``images_dir`` cannot be listed.
    """
    images_dir = Path(images_dir)
    texts_dir = Path(texts_dir)
    allowed = {ext.lower() for ext in extensions}

    names = sorted(
        entry.name for entry in os.scandir(images_dir)
        if entry.is_file() and os.path.splitext(entry.name)[1].lower() in allowed
    )

    return [
        ExtractionJob(
            source_name=name,
            source_path=images_dir / name,
            artifact_path=texts_dir / (os.path.splitext(name)[0] + ARTIFACT_EXTENSION),
        )
        for name in names
    ]


class ExtractionDispatcher:
    """
    Runs ExtractionJobs through an ImageToTextConverter.

    At most ``max_concurrency`` conversions are in flight; the rest wait
    for a free worker. ``dispatch`` returns once every job is terminal.

    Usage:
        dispatcher = ExtractionDispatcher(converter, max_concurrency=5)
        outcomes = dispatcher.dispatch(jobs)
    """

    def __init__(self, converter: ImageToTextConverter, max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.converter = converter
        self.max_concurrency = max_concurrency

        self._lock = threading.Lock()
        self._completed = 0
        self._total = 0

    def dispatch(self, jobs: List[ExtractionJob], progress_cb: JobCallback = None) -> List[JobOutcome]:
        """
        Process all jobs.

        Args:
            jobs: Jobs to run, usually from ``discover_jobs``.
            progress_cb: Optional callback invoked after each job finishes.

        Returns:
            One JobOutcome per job, in the same order as ``jobs``.
        """
        self._completed = 0
        self._total = len(jobs)

        if not jobs:
            logger.info("No images to process.")
            return []

        logger.info(
            f"Processing {len(jobs)} images with up to "
            f"{self.max_concurrency} concurrent conversions..."
        )

        with ThreadPoolExecutor(max_workers=self.max_concurrency, thread_name_prefix="ocr") as executor:
            futures = [
                executor.submit(self._run_job, job, progress_cb)
                for job in jobs
            ]
            outcomes = [f.result() for f in futures]

        failed = sum(1 for o in outcomes if o.failed)
        if failed:
            logger.warning(f"{failed}/{len(jobs)} images failed OCR; rerun to retry them.")
        return outcomes

    def _run_job(self, job: ExtractionJob, progress_cb: JobCallback) -> JobOutcome:
        try:
            outcome = self._process(job)
        except Exception as e:
            logger.error(f"Error processing {job.source_name}: {e}")
            outcome = JobOutcome(job, JobStatus.FAILED, str(e))

        with self._lock:
            self._completed += 1
            completed = self._completed

        logger.debug(f"[{completed}/{self._total}] {job.source_name}: {outcome.status.value}")
        if progress_cb:
            try:
                progress_cb(completed, self._total, outcome)
            except Exception as e:
                logger.error(f"Progress callback failed for {job.source_name}: {e}")
        return outcome

    def _process(self, job: ExtractionJob) -> JobOutcome:
        if job.artifact_path.exists():
            logger.info(f"[SKIP] Text for '{job.source_name}' already exists.")
            return JobOutcome(job, JobStatus.SKIPPED)

        logger.info(f"[+] OCR: {job.source_name}")
        image_bytes = job.source_path.read_bytes()
        text = self.converter.convert(image_bytes, job.source_name)
        self._write_artifact(job.artifact_path, text)

        logger.info(f"[OK] {job.source_name} -> {job.artifact_path.name}")
        return JobOutcome(job, JobStatus.SUCCEEDED)

    @staticmethod
    def _write_artifact(path: Path, text: str):
        """Write via a temporary sibling so a partial file is never taken as done."""
        tmp = path.with_name(path.name + ".part")
        try:
            tmp.write_text(text, encoding="utf-8")
            os.replace(tmp, path)
        finally:
            if tmp.exists():
                tmp.unlink()
