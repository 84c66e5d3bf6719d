"""
OCR Subtitle Builder — CLI Entry Point

Usage:
    python main.py
    python main.py --use-gemini
    python main.py --images RGBImages --texts TXTImages -o movie.srt
    python main.py --concurrency 3 -v
"""

import sys
import argparse
import logging
from pathlib import Path

from config import load_config
from ocrsub import __version__
from ocrsub.assembler import AssemblyError
from ocrsub.corrector import GeminiCorrector
from ocrsub.drive_auth import DriveCredentialProvider
from ocrsub.extractor import DriveDocsConverter
from ocrsub.orchestrator import OCRSubtitlePipeline

logger = logging.getLogger("main")


def setup_logging(level: str = "INFO", log_file: str = None):
    """Configure logging for the application."""
    log_format = (
        "%(asctime)s | %(levelname)-7s | %(name)-20s | %(message)s"
    )
    date_format = "%H:%M:%S"

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=log_format,
        datefmt=date_format,
        handlers=handlers,
        force=True
    )

    # Suppress noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def print_banner():
    """Print the application banner."""
    banner = f"""
==========================================================
          OCR Subtitle Builder  v{__version__}

  Frame captures  ->  Google Drive OCR  ->  SRT
  Optional Gemini text correction
==========================================================
"""
    print(banner)


def print_progress(message: str, percent: int):
    """Console progress callback with progress bar."""
    bar_width = 30
    filled = int(bar_width * percent / 100)
    bar = "#" * filled + "-" * (bar_width - filled)
    print(f"\r  [{bar}] {percent:3d}%  {message:<50}", end="", flush=True)
    if percent >= 100:
        print()  # Newline at completion


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="OCR Subtitle Builder — Generate an SRT file from "
                    "time-coded subtitle frame captures.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                              # Basic usage
  python main.py --use-gemini                 # Correct text with Gemini
  python main.py -o my_subs.srt               # Custom output path
  python main.py --images caps --texts ocr    # Custom folders
  python main.py --concurrency 3              # Gentler on the Drive API
        """
    )

    parser.add_argument(
        "--images",
        type=Path,
        default=None,
        help="Folder with frame captures named <start>__<end>.png (default: RGBImages)"
    )
    parser.add_argument(
        "--texts",
        type=Path,
        default=None,
        help="Folder for extracted texts, also used as resume cache (default: TXTImages)"
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output SRT file path (default: subtitulo.srt)"
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum simultaneous OCR conversions (default: 5)"
    )
    parser.add_argument(
        "--use-gemini",
        action="store_true",
        help="Correct OCR text with Gemini (needs GEMINI_API_KEY)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to custom config.yaml file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress all output except the progress bar"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    return parser


def build_correction_backend(config):
    """Return a GeminiCorrector when correction is enabled and a key is set."""
    if not config.correction.enabled:
        logger.info("[!] Gemini disabled. No AI correction will be done.")
        return None

    backend = GeminiCorrector.from_env(
        config.correction.api_key_env,
        model=config.correction.model
    )
    if backend is None:
        logger.warning(
            f"[!] {config.correction.api_key_env} not set. "
            f"Continuing without AI correction."
        )
        return None

    logger.info(f"Gemini client initialized ({config.correction.model}).")
    return backend


def main():
    parser = build_parser()
    args = parser.parse_args()

    # ── Load config ──
    config = load_config(args.config)

    # Apply CLI overrides
    config.update_from_args(args)

    if config.max_concurrency < 1:
        parser.error("--concurrency must be at least 1")

    # ── Setup logging ──
    log_level = "DEBUG" if args.verbose else ("WARNING" if args.quiet else config.logging.level)
    setup_logging(level=log_level, log_file=config.logging.file)

    # ── Banner ──
    if not args.quiet:
        print_banner()
        print(f"  Images:      {config.paths.images_dir}")
        print(f"  Texts:       {config.paths.texts_dir}")
        print(f"  Output:      {config.paths.output_file}")
        print(f"  Concurrency: {config.max_concurrency}")
        print(f"  Correction:  {'Gemini' if config.correction.enabled else 'off'}")
        print()

    # ── Run pipeline ──
    try:
        credentials = DriveCredentialProvider(
            config.extraction.credentials_file,
            config.extraction.token_file
        )
        converter = DriveDocsConverter(credentials, folder_name=config.extraction.drive_folder)
        pipeline = OCRSubtitlePipeline(
            config,
            converter,
            correction_backend=build_correction_backend(config)
        )
        progress_fn = print_progress if not args.quiet else None
        result = pipeline.process(progress_cb=progress_fn)

        if not args.quiet:
            print(f"\n  [OK] Subtitles saved to: {result.assembly.output_path}")
            print(f"  [INFO] Total blocks: {len(result.assembly.blocks)}")
            if result.assembly.warnings:
                print(f"  [WARN] {len(result.assembly.warnings)} warnings, see log.")

    except KeyboardInterrupt:
        print("\n\n  [WARN] Processing interrupted by user.")
        sys.exit(130)
    except FileNotFoundError as e:
        print(f"\n  [ERROR] File error: {e}")
        sys.exit(1)
    except AssemblyError as e:
        print(f"\n  [ERROR] Could not create the SRT file: {e}")
        sys.exit(1)
    except OSError as e:
        print(f"\n  [ERROR] I/O error: {e}")
        sys.exit(1)
    except Exception as e:
        logging.exception("Unexpected error")
        print(f"\n  [ERROR] Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
