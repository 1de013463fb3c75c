"""
対応解像度のプリセットと解像度文字列の検証

"WxH" 形式の文字列を検証して `Resolution` に変換する。
検証は呼び出し側ごとに毎回実行する（画像・動画・設定の各入口）。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import ResolutionFormatError

SEPARATOR = "x"

# クラスごとのプリセット（表示順を保持）
RESOLUTION_CLASSES: dict[str, tuple[str, ...]] = {
    "SD": ("320x240", "640x480", "800x600"),
    "HD": ("1024x768", "1280x720", "1280x800", "1366x768"),
    "FHD": ("1600x900", "1920x1080"),
    "QHD": ("2048x1080", "2560x1080", "2560x1440", "3440x1440", "3840x1600"),
    "UHD": ("3840x2160", "4096x2160", "5120x2160", "5120x2880"),
    "6K": ("6016x3384", "6144x3160"),
    "8K": ("7680x4320", "8192x4320"),
}

RESOLUTIONS: tuple[str, ...] = tuple(
    preset for presets in RESOLUTION_CLASSES.values() for preset in presets
)


@dataclass(frozen=True)
class Resolution:
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}{SEPARATOR}{self.height}"

    @property
    def size(self) -> tuple[int, int]:
        """PIL の resize にそのまま渡せる (width, height)"""
        return (self.width, self.height)


def parse_resolution(value: Optional[str]) -> Resolution:
    """
    解像度文字列を検証して Resolution を返します

    チェックは順番に行い、最初に失敗した項目の reason で例外を送出する。

    Args:
        value: "1920x1080" 形式の文字列

    Returns:
        Resolution: 幅・高さとも 1 以上

    Raises:
        ResolutionFormatError: いずれかのチェックに失敗した場合
    """
    # 1. 空文字チェック
    if value is None or not str(value).strip():
        raise ResolutionFormatError("Resolution is required", reason="empty", value=value)
    text = str(value)

    # 2. 区切り文字はちょうど1つ
    separator_count = text.count(SEPARATOR)
    if separator_count == 0:
        raise ResolutionFormatError(
            "Resolution does not contain an x", reason="missing_separator", value=text
        )
    if separator_count > 1:
        raise ResolutionFormatError(
            "Resolution contains more than one x", reason="too_many_separators", value=text
        )

    # 3. 2つの値
    width_token, height_token = text.split(SEPARATOR)
    if not width_token or not height_token:
        raise ResolutionFormatError(
            "Resolution does not contain two values", reason="two_values", value=text
        )

    # 4. 10進整数（符号・空白・全角数字は不可）
    if not (_is_decimal(width_token) and _is_decimal(height_token)):
        raise ResolutionFormatError(
            "Resolution does not contain integer values", reason="not_a_number", value=text
        )
    width = int(width_token, 10)
    height = int(height_token, 10)

    # 5. 正の値
    if width <= 0 or height <= 0:
        raise ResolutionFormatError("Resolution is 0 or less", reason="non_positive", value=text)

    return Resolution(width=width, height=height)


def is_supported_resolution(value: Optional[str]) -> bool:
    """プリセット一覧に含まれるか"""
    return value in RESOLUTIONS


def resolution_class(value: str) -> Optional[str]:
    """プリセットのクラス名（"FHD" など）を返す。未対応なら None"""
    for label, presets in RESOLUTION_CLASSES.items():
        if value in presets:
            return label
    return None


def _is_decimal(token: str) -> bool:
    return token.isascii() and token.isdigit()
