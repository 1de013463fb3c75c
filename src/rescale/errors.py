"""
rescale の例外クラスとエラーメッセージ生成

すべての例外は `[UPSCALER]` プレフィックス付きの1行メッセージを持ち、
元の例外は `raise ... from exc` で `__cause__` に保持する。
"""

from __future__ import annotations

import errno
from typing import Optional

from PIL import Image, UnidentifiedImageError

ERROR_PREFIX = "[UPSCALER]"

# errno と分類の対応
_ERRNO_CATEGORIES = {
    errno.ENOENT: "not_found",
    errno.EACCES: "permission_denied",
    errno.EPERM: "permission_denied",
    errno.EROFS: "permission_denied",
    errno.ENOSPC: "disk_full",
    errno.ENAMETOOLONG: "path_too_long",
}

# Windows エラーコード
_WINERROR_CATEGORIES = {
    2: "not_found",
    3: "not_found",
    5: "permission_denied",
    112: "disk_full",
    206: "path_too_long",
}

_RETRYABLE_CATEGORIES = {"disk_full"}


class RescaleError(Exception):
    """rescale の基底例外"""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{ERROR_PREFIX} {self.message}"


class ConfigurationError(RescaleError):
    """引数の欠落・型不正・未対応の解像度"""


class ResolutionFormatError(RescaleError):
    """解像度文字列の構造エラー

    `reason` は失敗したチェック項目を示す:
    empty / missing_separator / too_many_separators / two_values /
    not_a_number / non_positive
    """

    def __init__(self, message: str, reason: str, value: Optional[str] = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.value = value


class TransformProducedEmptyResultError(RescaleError):
    """リサイズ処理がデータを返さなかった"""


class ResizeError(RescaleError):
    """パイプライン境界でラップされたリサイズ失敗"""


class PersistenceError(RescaleError):
    """出力ファイルの書き込み失敗、または空バッファ"""

    def __init__(self, message: str, category: str = "unknown", retryable: bool = False) -> None:
        super().__init__(message)
        self.category = category
        self.retryable = retryable


class VideoNotSupportedError(RescaleError):
    """動画のリサイズ・保存は未実装"""


def classify_os_error(error: BaseException) -> tuple[str, bool]:
    """OSError を (category, retryable) に分類する"""
    if not isinstance(error, OSError):
        return "unknown", False
    if isinstance(error, PermissionError):
        return "permission_denied", False
    if isinstance(error, FileNotFoundError):
        return "not_found", False

    winerror = getattr(error, "winerror", None)
    if winerror:
        category = _WINERROR_CATEGORIES.get(winerror, "unknown")
    else:
        category = _ERRNO_CATEGORIES.get(error.errno, "unknown")
    return category, category in _RETRYABLE_CATEGORIES


def describe_error(error: BaseException) -> str:
    """
    例外から利用者向けの短い説明を生成します

    Args:
        error: 例外オブジェクト

    Returns:
        str: 1行の説明文
    """
    error_msg = str(error)

    if isinstance(error, RescaleError):
        return error.message
    if isinstance(error, FileNotFoundError):
        return f"File not found: {error.filename or error_msg}"
    if isinstance(error, PermissionError):
        return f"Permission denied: {error.filename or error_msg}"
    if isinstance(error, IsADirectoryError):
        return f"Expected a file but got a directory: {error.filename or error_msg}"
    if isinstance(error, UnidentifiedImageError):
        return f"Unsupported or corrupt image: {error_msg}"
    if isinstance(error, Image.DecompressionBombError):
        return f"Image is too large (possible decompression bomb): {error_msg}"
    if isinstance(error, MemoryError):
        return "Out of memory while processing the image"
    if isinstance(error, OSError):
        category, _ = classify_os_error(error)
        if category == "disk_full":
            return "No space left on device"
        if category == "path_too_long":
            return "File name too long"
        return f"System error: {error_msg}"

    return f"{type(error).__name__}: {error_msg}"
