"""
SRT Writer — Standard SubRip subtitle file generator.

Converts SubtitleBlock objects into a .srt file with their sequence
numbers, HH:MM:SS,mmm timestamps and UTF-8 encoding.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .timecode import Timecode, format_timing_line

logger = logging.getLogger(__name__)

EMPTY_TEXT_PLACEHOLDER = "..."


@dataclass
class SubtitleBlock:
    """A single subtitle entry ready for SRT output."""
    sequence: int
    start: Timecode
    end: Timecode
    text: str

    @property
    def timing_line(self) -> str:
        return format_timing_line(self.start, self.end)

    def __repr__(self):
        return f"Sub#{self.sequence}({self.timing_line}, '{self.text[:50]}')"


class SRTWriter:
    """
    Writes subtitle blocks to a standard SRT (SubRip) file.

    SRT format:
        1
        00:00:01,000 --> 00:00:03,500
        Hello

        2
        00:00:04,000 --> 00:00:06,000
        World
    """

    def render(self, block: SubtitleBlock) -> str:
        """Render one block, blank line included. Empty text becomes '...'."""
        text = block.text if block.text else EMPTY_TEXT_PLACEHOLDER
        return f"{block.sequence}\n{block.timing_line}\n{text}\n\n"

    def write(self, blocks: List[SubtitleBlock], output_path: Path):
        """
        Write subtitle blocks to an SRT file, keeping their sequence numbers.

        Args:
            blocks: SubtitleBlocks in output order.
            output_path: Path for the output .srt file.

        Raises:
            OSError: If the file cannot be created or written.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8", newline="\n") as f:
            for block in blocks:
                f.write(self.render(block))

        logger.info(f"SRT written: {len(blocks)} subtitles → {output_path}")

    def write_preview(self, blocks: List[SubtitleBlock], max_entries: int = 10) -> str:
        """
        Generate a text preview of the subtitle blocks.

        Args:
            blocks: List of SubtitleBlock objects.
            max_entries: Maximum entries to include in preview.

        Returns:
            Formatted string preview.
        """
        lines = []
        shown = min(len(blocks), max_entries)

        for block in blocks[:shown]:
            text_preview = block.text.replace("\n", " ")[:80]
            if len(block.text) > 80:
                text_preview += "..."
            lines.append(
                f"  [{block.start} → {block.end}] {text_preview}"
            )

        if len(blocks) > shown:
            lines.append(f"  ... and {len(blocks) - shown} more entries")

        return "\n".join(lines)
