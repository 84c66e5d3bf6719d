"""
Pipeline Orchestrator — Coordinates the OCR-to-subtitle run.

Stages:
  1. Text extraction (concurrent OCR, resumable)
  2. SRT assembly (parse timings, clean, optional correction, write)
"""

import time
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from .assembler import AssemblyResult, SubtitleAssembler
from .corrector import BatchCorrector, BatchTextCorrector
from .dispatcher import ExtractionDispatcher, JobOutcome, JobStatus, discover_jobs
from .extractor import ImageToTextConverter

logger = logging.getLogger(__name__)

# Type alias for progress callbacks: (message: str, percent: int) -> None
ProgressCallback = Optional[Callable[[str, int], None]]


@dataclass
class PipelineResult:
    """Summary of one full run."""
    outcomes: List[JobOutcome] = field(default_factory=list)
    assembly: Optional[AssemblyResult] = None
    elapsed_sec: float = 0.0

    def count(self, status: JobStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)


class OCRSubtitlePipeline:
    """
    Main pipeline orchestrator for image-to-subtitle conversion.

    Usage:
        config = load_config()
        pipeline = OCRSubtitlePipeline(config, converter)
        pipeline.process()
    """

    def __init__(
        self,
        config,
        converter: ImageToTextConverter,
        correction_backend: Optional[BatchTextCorrector] = None
    ):
        self.config = config
        self.images_dir = Path(config.paths.images_dir)
        self.texts_dir = Path(config.paths.texts_dir)
        self.output_path = Path(config.paths.output_file)

        self.dispatcher = ExtractionDispatcher(
            converter,
            max_concurrency=config.extraction.max_concurrency
        )

        corrector = None
        if correction_backend is not None:
            corrector = BatchCorrector(
                correction_backend,
                batch_size=config.correction.batch_size,
                max_attempts=config.correction.max_attempts,
                retry_delay=config.correction.retry_delay
            )
        self.assembler = SubtitleAssembler(corrector=corrector)

    def prepare_workspace(self):
        """
        Make sure the image and text folders exist.

        Raises:
            FileNotFoundError: If the image folder had to be created, since
                there is nothing to process yet.
        """
        self.texts_dir.mkdir(parents=True, exist_ok=True)
        if not self.images_dir.exists():
            self.images_dir.mkdir(parents=True)
            raise FileNotFoundError(
                f"Folder '{self.images_dir}' created. Put your images there "
                f"and run again."
            )

    def process(self, progress_cb: ProgressCallback = None) -> PipelineResult:
        """
        Run extraction then assembly.

        Args:
            progress_cb: Optional callback for progress updates.

        Returns:
            PipelineResult with per-image outcomes and the assembly summary.

        Raises:
            FileNotFoundError: If the image folder is missing.
            OSError: If the image folder cannot be listed.
            AssemblyError: If the SRT file cannot be built or written.
        """
        start_time = time.monotonic()
        result = PipelineResult()

        logger.info(f"{'='*60}")
        logger.info(f"OCR Subtitle Builder")
        logger.info(f"Images: {self.images_dir}")
        logger.info(f"Texts:  {self.texts_dir}")
        logger.info(f"Output: {self.output_path}")
        logger.info(f"Correction: {'on' if self.assembler.corrector else 'off'}")
        logger.info(f"{'='*60}")

        self.prepare_workspace()

        # ── Stage 1: Text extraction ──
        self._report(progress_cb, "Extracting text from images...", 0)
        jobs = discover_jobs(
            self.images_dir, self.texts_dir,
            self.config.extraction.image_extensions
        )

        def on_job_done(completed: int, total: int, outcome: JobOutcome):
            pct = int(80 * completed / max(total, 1))
            self._report(progress_cb, f"OCR {completed}/{total} images", pct)

        extraction_start = time.monotonic()
        result.outcomes = self.dispatcher.dispatch(jobs, progress_cb=on_job_done)
        logger.info(
            f"OCR complete in {time.monotonic() - extraction_start:.1f}s: "
            f"{result.count(JobStatus.SUCCEEDED)} converted, "
            f"{result.count(JobStatus.SKIPPED)} cached, "
            f"{result.count(JobStatus.FAILED)} failed"
        )

        # ── Stage 2: SRT assembly ──
        self._report(progress_cb, "Building subtitle file...", 85)
        result.assembly = self.assembler.assemble(self.texts_dir, self.output_path)

        result.elapsed_sec = time.monotonic() - start_time
        self._report(progress_cb, f"Done! ({result.elapsed_sec:.1f}s)", 100)

        assembly = result.assembly
        logger.info(f"{'='*60}")
        logger.info(f"Pipeline complete in {result.elapsed_sec:.1f}s")
        logger.info(f"  Subtitles: {len(assembly.blocks)} blocks")
        logger.info(f"  Skipped names: {len(assembly.skipped_files)}")
        logger.info(f"  Unreadable texts: {len(assembly.unreadable_files)}")
        logger.info(f"  Warnings: {len(assembly.warnings)}")
        logger.info(f"  Output: {assembly.output_path}")
        logger.info(f"{'='*60}")

        preview = self.assembler.writer.write_preview(assembly.blocks, max_entries=5)
        if preview:
            logger.info(f"Preview:\n{preview}")

        return result

    # ── Utilities ──

    @staticmethod
    def _report(cb: ProgressCallback, msg: str, pct: int):
        """Report progress to logger and optional callback."""
        logger.debug(f"[{pct:3d}%] {msg}")
        if cb:
            cb(msg, pct)
