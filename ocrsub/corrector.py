"""
Batch Corrector — Optional language correction of OCR text.

Texts are sent to a correction backend in fixed-size batches, one batch
at a time. A batch that keeps failing, or comes back with the wrong
number of lines, is replaced by its original texts: a misaligned
correction would put text on the wrong timing.

Backends:
  - GeminiCorrector: Google Gemini via the google-genai SDK, using a
    "LINE <n>: <text>" numbered-list protocol.
"""

import os
import re
import time
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 2.0
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"

LINE_MARKER = "LINE"
_MARKED_LINE = re.compile(rf"^\s*{LINE_MARKER}\s+(\d+)\s*:(.*)$")


class CorrectionError(RuntimeError):
    """Raised by a backend when a batch could not be corrected."""


class BatchTextCorrector(ABC):
    """Corrects an ordered batch of texts."""

    @abstractmethod
    def correct_batch(self, texts: List[str]) -> List[str]:
        """
        Return one corrected text per input, in the same order.

        Blank entries mean "no correction available" for that position.

        Raises:
            CorrectionError: If the batch could not be corrected at all.
        """
        ...


class BatchCorrector:
    """
    Drives a BatchTextCorrector over a full list of texts.

    Usage:
        corrector = BatchCorrector(GeminiCorrector(api_key))
        fixed = corrector.correct(texts)
        print(corrector.warnings)
    """

    def __init__(
        self,
        backend: BatchTextCorrector,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

        self.backend = backend
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep
        self.warnings: List[str] = []

    def correct(self, texts: List[str]) -> List[str]:
        """
        Correct all texts, batch by batch.

        Args:
            texts: Texts in subtitle order.

        Returns:
            A list of the same length. Positions that could not be
            corrected hold their original text.
        """
        self.warnings = []
        result: List[str] = []
        total_batches = (len(texts) + self.batch_size - 1) // self.batch_size

        for batch_no, start in enumerate(range(0, len(texts), self.batch_size), 1):
            batch = texts[start:start + self.batch_size]
            logger.info(
                f"  [AI] Sending batch {batch_no}/{total_batches} "
                f"({len(batch)} texts) for correction..."
            )
            result.extend(self._process_batch(batch, batch_no, start))

        return result

    def _process_batch(self, batch: List[str], batch_no: int, offset: int) -> List[str]:
        corrected = self._call_with_retry(batch, batch_no)
        if corrected is None:
            self._warn(
                f"Batch {batch_no}: all {self.max_attempts} correction attempts "
                f"failed, using original texts."
            )
            return list(batch)

        if len(corrected) != len(batch):
            self._warn(
                f"Batch {batch_no}: correction returned {len(corrected)} texts "
                f"but {len(batch)} were sent, using original texts."
            )
            return list(batch)

        merged = []
        for i, (original, fixed) in enumerate(zip(batch, corrected)):
            if fixed is None or not fixed.strip():
                logger.warning(
                    f"    - Line {offset + i}: no correction returned, "
                    f"keeping original text."
                )
                merged.append(original)
            else:
                merged.append(fixed.strip())

        logger.info(f"  [OK] Batch {batch_no} corrected.")
        return merged

    def _call_with_retry(self, batch: List[str], batch_no: int) -> Optional[List[str]]:
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self.backend.correct_batch(batch)
            except Exception as e:
                logger.warning(
                    f"  [!] Correction attempt {attempt}/{self.max_attempts} "
                    f"failed for batch {batch_no}: {e}"
                )
                if attempt < self.max_attempts:
                    self._sleep(self.retry_delay)
        return None

    def _warn(self, message: str):
        logger.warning(f"  [!] {message}")
        self.warnings.append(message)


# ── Gemini backend ──

CORRECTION_PROMPT = """\
You are an expert transcriber and proofreader of anime subtitles. Fix the \
spelling and diction errors in the following batch of texts, which come from \
consecutive subtitles produced by OCR. Make the wording sound natural in the \
language it is written in, WITHOUT changing the original meaning.

IMPORTANT RULES:
1. Respect proper names and Japanese honorific suffixes (-san, -chan, etc.).
2. Keep the tone and the dialogue consistent across all lines.
3. Return the result as a list, keeping the format "{marker} <NUMBER>: <CORRECTED TEXT>" for every line you received.
4. YOU MUST RETURN EXACTLY THE SAME NUMBER OF LINES YOU RECEIVED. If a line needs no changes, repeat it as-is.
5. DO NOT ADD ANY OTHER TEXT. Only the numbered list of corrected lines.

Batch of texts to correct:
{lines}
"""


def build_correction_prompt(texts: List[str]) -> str:
    """Number each text with a 0-based line marker and wrap it in the prompt."""
    lines = "".join(
        f"{LINE_MARKER} {i}: {_single_line(text)}\n" for i, text in enumerate(texts)
    )
    return CORRECTION_PROMPT.format(marker=LINE_MARKER, lines=lines)


def parse_marked_response(raw: str, expected: int) -> List[str]:
    """
    Map a ``LINE <n>: <text>`` reply back onto ``expected`` positions.

    Unmarked lines and out-of-range indices are ignored; positions the
    reply does not mention stay blank.
    """
    result = [""] * expected
    for line in raw.splitlines():
        match = _MARKED_LINE.match(line)
        if not match:
            continue
        index = int(match.group(1))
        if 0 <= index < expected:
            result[index] = match.group(2).strip()
    return result


def _single_line(text: str) -> str:
    # Subtitle text may span lines; the protocol is one line per entry
    return text.replace("\r", "").replace("\n", " / ")


class GeminiCorrector(BatchTextCorrector):
    """Corrects subtitle batches with a Gemini model."""

    def __init__(self, api_key: str, model: str = DEFAULT_GEMINI_MODEL, client=None):
        self.model = model
        if client is None:
            from google import genai
            client = genai.Client(api_key=api_key)
        self._client = client

    @classmethod
    def from_env(cls, env_var: str = "GEMINI_API_KEY", model: str = DEFAULT_GEMINI_MODEL) -> Optional["GeminiCorrector"]:
        """Build a corrector from an API key in the environment, or None if unset."""
        api_key = os.environ.get(env_var)
        if not api_key:
            return None
        return cls(api_key, model=model)

    def correct_batch(self, texts: List[str]) -> List[str]:
        if not any(t.strip() for t in texts):
            return list(texts)

        prompt = build_correction_prompt(texts)
        try:
            response = self._client.models.generate_content(
                model=self.model,
                contents=prompt
            )
        except Exception as e:
            raise CorrectionError(f"Gemini request failed: {e}") from e

        raw = response.text or ""
        if not raw.strip():
            raise CorrectionError("Gemini returned an empty response")

        corrected = parse_marked_response(raw, len(texts))
        parsed = sum(1 for c in corrected if c)
        if parsed == 0:
            raise CorrectionError("Gemini response contained no numbered lines")
        if parsed != len(texts):
            logger.warning(
                f"[!] Gemini returned {parsed} lines, expected {len(texts)}."
            )
        return [
            _restore_breaks(fixed) if "\n" in original else fixed
            for original, fixed in zip(texts, corrected)
        ]


def _restore_breaks(text: str) -> str:
    # Only for entries that were flattened by _single_line
    return text.replace(" / ", "\n")
