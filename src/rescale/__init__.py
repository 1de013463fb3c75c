"""rescale - 対応解像度へ画像をリサイズする CLI ツール"""

from .config import Config, build_config
from .errors import (
    ConfigurationError,
    PersistenceError,
    RescaleError,
    ResizeError,
    ResolutionFormatError,
    TransformProducedEmptyResultError,
    VideoNotSupportedError,
)
from .persistence import persist
from .pipeline import ResizeResult, process, resize_image
from .progress import ProgressEstimator, estimate_ratio
from .resolutions import RESOLUTIONS, Resolution, parse_resolution
from .source import SourceImage

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ConfigurationError",
    "PersistenceError",
    "ProgressEstimator",
    "RESOLUTIONS",
    "RescaleError",
    "ResizeError",
    "ResizeResult",
    "Resolution",
    "ResolutionFormatError",
    "SourceImage",
    "TransformProducedEmptyResultError",
    "VideoNotSupportedError",
    "build_config",
    "estimate_ratio",
    "parse_resolution",
    "persist",
    "process",
    "resize_image",
]
