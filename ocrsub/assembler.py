"""
Subtitle Assembler — Builds the final SRT from per-image text artifacts.

Artifacts are read in filename order, which is the subtitle order:
capture filenames start with their timecode and already sort
chronologically. Bad filenames and unreadable artifacts degrade the
output but never stop it; only failing to write the output is fatal.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .cleaner import clean_ocr_text
from .corrector import BatchCorrector
from .dispatcher import ARTIFACT_EXTENSION
from .srt_writer import SRTWriter, SubtitleBlock
from .timecode import InvalidFilenameFormat, parse_filename

logger = logging.getLogger(__name__)

READ_ERROR_PLACEHOLDER = "[READ ERROR]"


class AssemblyError(RuntimeError):
    """Raised when the subtitle file cannot be assembled at all."""


@dataclass
class AssemblyResult:
    """What went into the subtitle file."""
    output_path: Path
    blocks: List[SubtitleBlock] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)
    unreadable_files: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class SubtitleAssembler:
    """
    Turns a folder of text artifacts into one SRT file.

    Usage:
        assembler = SubtitleAssembler(corrector=None)
        result = assembler.assemble("TXTImages", "subtitulo.srt")
    """

    def __init__(self, corrector: Optional[BatchCorrector] = None, writer: Optional[SRTWriter] = None):
        self.corrector = corrector
        self.writer = writer or SRTWriter()

    def assemble(self, text_folder: Path, output_path: Path) -> AssemblyResult:
        """
        Assemble the SRT file.

        Args:
            text_folder: Folder holding ``<start>__<end>.txt`` artifacts.
            output_path: Path of the SRT file to write.

        Returns:
            AssemblyResult describing the written blocks and any degradations.

        Raises:
            AssemblyError: If the folder cannot be listed, holds no
                artifacts, or the output cannot be written.
        """
        text_folder = Path(text_folder)
        output_path = Path(output_path)
        result = AssemblyResult(output_path=output_path)

        logger.info("--- Building SRT file ---")
        filenames = self._discover(text_folder)
        logger.info(f"Found {len(filenames)} text files.")

        for filename in filenames:
            try:
                start, end = parse_filename(filename)
            except InvalidFilenameFormat as e:
                message = f"Skipping file with invalid name '{filename}': {e}"
                logger.warning(f"  [!] {message}")
                result.skipped_files.append(filename)
                result.warnings.append(message)
                continue

            try:
                raw = (text_folder / filename).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                message = f"Could not read '{filename}': {e}"
                logger.warning(f"  [!] {message}. Using placeholder text.")
                result.unreadable_files.append(filename)
                result.warnings.append(message)
                raw = READ_ERROR_PLACEHOLDER

            result.blocks.append(SubtitleBlock(
                sequence=len(result.blocks) + 1,
                start=start,
                end=end,
                text=clean_ocr_text(raw),
            ))

        if self.corrector is not None and result.blocks:
            self._apply_correction(result)

        logger.info(f"Writing final file: {output_path}")
        try:
            self.writer.write(result.blocks, output_path)
        except OSError as e:
            raise AssemblyError(f"Could not write SRT file '{output_path}': {e}") from e

        return result

    @staticmethod
    def _discover(text_folder: Path) -> List[str]:
        try:
            entries = list(os.scandir(text_folder))
        except OSError as e:
            raise AssemblyError(f"Could not read text folder '{text_folder}': {e}") from e

        filenames = sorted(
            entry.name for entry in entries
            if entry.is_file() and entry.name.endswith(ARTIFACT_EXTENSION)
        )
        if not filenames:
            raise AssemblyError(f"No {ARTIFACT_EXTENSION} files found in '{text_folder}'")
        return filenames

    def _apply_correction(self, result: AssemblyResult):
        texts = [block.text for block in result.blocks]
        corrected = self.corrector.correct(texts)
        result.warnings.extend(self.corrector.warnings)

        if len(corrected) != len(texts):
            # BatchCorrector keeps lengths; guard the splice anyway
            message = (
                f"Correction returned {len(corrected)} texts for "
                f"{len(texts)} blocks, keeping original texts."
            )
            logger.error(f"  [!] {message}")
            result.warnings.append(message)
            return

        for block, text in zip(result.blocks, corrected):
            block.text = text
