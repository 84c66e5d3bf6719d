"""
Artifact Cleaner — Strips document-conversion boilerplate from OCR text.

A converted document starts with two header lines (the document title
and a separator) before the recognised text.
"""

HEADER_LINES = 2


def clean_ocr_text(raw_text: str) -> str:
    """
    Remove the header lines from raw extracted text.

    Text with two lines or fewer carries no header worth removing and is
    returned stripped as-is.
    """
    lines = raw_text.split("\n")

    if len(lines) <= HEADER_LINES:
        return raw_text.strip()

    return "\n".join(lines[HEADER_LINES:]).strip()
