"""
Configuration loader for the OCR Subtitle Builder.
Loads from config.yaml and allows CLI argument overrides.
"""

import yaml
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


@dataclass
class PathsConfig:
    images_dir: str = "RGBImages"
    texts_dir: str = "TXTImages"
    output_file: str = "subtitulo.srt"


@dataclass
class ExtractionConfig:
    max_concurrency: int = 5
    image_extensions: List[str] = field(default_factory=lambda: [".jpg", ".jpeg", ".png"])
    drive_folder: str = "Temp_OCR_Go"
    credentials_file: str = "credentials.json"
    token_file: str = "token.json"


@dataclass
class CorrectionConfig:
    enabled: bool = False
    model: str = "gemini-2.0-flash"
    api_key_env: str = "GEMINI_API_KEY"
    batch_size: int = 100
    max_attempts: int = 3
    retry_delay: float = 2.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    """Top-level application configuration."""
    paths: PathsConfig = field(default_factory=PathsConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    correction: CorrectionConfig = field(default_factory=CorrectionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def max_concurrency(self) -> int:
        return self.extraction.max_concurrency

    def update_from_args(self, args):
        """Override config values from CLI arguments."""
        if getattr(args, "images", None):
            self.paths.images_dir = str(args.images)
        if getattr(args, "texts", None):
            self.paths.texts_dir = str(args.texts)
        if getattr(args, "output", None):
            self.paths.output_file = str(args.output)
        if getattr(args, "concurrency", None) is not None:
            self.extraction.max_concurrency = args.concurrency
        if getattr(args, "use_gemini", False):
            self.correction.enabled = True


def _dict_to_dataclass(cls, data: dict):
    """Convert a dict to a dataclass, ignoring unknown keys."""
    if data is None:
        return cls()
    field_names = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {k: v for k, v in data.items() if k in field_names}
    unknown = set(data) - field_names
    if unknown:
        logger.warning(f"Ignoring unknown {cls.__name__} keys: {', '.join(sorted(unknown))}")
    return cls(**filtered)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from a YAML file.
    Falls back to defaults if file is missing.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.warning(f"Config file not found at {path}, using defaults.")
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    config = AppConfig(
        paths=_dict_to_dataclass(PathsConfig, raw.get("paths")),
        extraction=_dict_to_dataclass(ExtractionConfig, raw.get("extraction")),
        correction=_dict_to_dataclass(CorrectionConfig, raw.get("correction")),
        logging=_dict_to_dataclass(LoggingConfig, raw.get("logging")),
    )

    logger.info(f"Configuration loaded from {path}")
    return config
