"""
実行設定

CLI などから受け取った値を検証し、変更不可の Config を作る。
解像度はここでプリセット一覧との照合も行う。
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigurationError, ResolutionFormatError
from .resolutions import RESOLUTIONS, is_supported_resolution, parse_resolution

_REQUIRED_FIELDS = {
    "image": "Image is required. Use --image <image> to specify the image to resize.",
    "resolution": "Resolution is required. Use --resolution <resolution> to specify the target resolution.",
    "output": "Output is required. Use --output <output> to specify the output file.",
}
_FLAG_FIELDS = ("debug", "batch")


@dataclass(frozen=True)
class Config:
    image_path: str
    resolution: str
    output_path: str
    debug: bool = False
    batch: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def env_debug_enabled(env: Optional[Mapping[str, str]] = None) -> bool:
    """環境変数 DEBUG が "true" か（大文字小文字は区別しない）"""
    resolved_env = os.environ if env is None else env
    return resolved_env.get("DEBUG", "").strip().lower() == "true"


def build_config(options: Mapping[str, Any]) -> Config:
    """
    生の引数から Config を作成します

    Args:
        options: image / resolution / output / debug / batch を含むマッピング

    Returns:
        Config: 検証済みの設定

    Raises:
        ConfigurationError: 欠落・型不正・未対応の解像度がある場合（問題はまとめて報告）
    """
    issues: List[str] = []

    for field_name, missing_message in _REQUIRED_FIELDS.items():
        value = options.get(field_name)
        if value is None or value == "":
            issues.append(missing_message)
        elif not isinstance(value, str):
            issues.append(f"{field_name} must be a string, got {type(value).__name__}")

    resolution = options.get("resolution")
    if isinstance(resolution, str) and resolution:
        if not is_supported_resolution(resolution):
            issues.append(
                f"Unsupported resolution '{resolution}'. Expected one of: {', '.join(RESOLUTIONS)}"
            )
        else:
            try:
                parse_resolution(resolution)
            except ResolutionFormatError as e:
                issues.append(e.message)

    flags: Dict[str, bool] = {}
    for flag in _FLAG_FIELDS:
        value = options.get(flag)
        if value is None:
            flags[flag] = False
        elif isinstance(value, bool):
            flags[flag] = value
        else:
            issues.append(f"{flag} must be a boolean, got {type(value).__name__}")

    if issues:
        raise ConfigurationError(f"Invalid arguments: {', '.join(issues)}")

    return Config(
        image_path=options["image"],
        resolution=resolution,
        output_path=options["output"],
        debug=flags["debug"],
        batch=flags["batch"],
    )
