"""
OCR Subtitle Builder — Pipeline Package

Turns time-coded frame captures into an SRT subtitle file:
  - timecode: filename timing parser and SRT timestamp formatting
  - cleaner: removal of document-conversion header lines
  - extractor: image-to-text converters (Google Drive OCR)
  - drive_auth: OAuth credentials for the Drive API
  - dispatcher: concurrent, resumable OCR over an image folder
  - corrector: batched text correction with retry and fallback (Gemini)
  - srt_writer: standard SRT file output
  - assembler: builds the SRT from the per-image texts
  - orchestrator: runs the whole pipeline
"""

__version__ = "1.0.0"
