"""
出力バッファの保存

一時ファイルに書き込んでから置換するため、失敗しても壊れた出力ファイルは残らない。
書き込みは同期的に完了し、失敗は呼び出し元へそのまま伝わる。
"""

from __future__ import annotations

import os
import time
import uuid
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .config import Config
from .errors import PersistenceError, VideoNotSupportedError, classify_os_error, describe_error


def _build_temp_save_path(target_path: Path) -> Path:
    """同一ディレクトリ内の一時保存パスを作る。"""
    base_name = target_path.name or "rescale_output"
    token = f"{os.getpid()}_{time.time_ns()}_{uuid.uuid4().hex[:10]}"
    return target_path.with_name(f".{base_name}.{token}.tmp")


def _write_with_atomic_replace(buffer: bytes, final_path: Path) -> None:
    tmp_path = _build_temp_save_path(final_path)
    try:
        with open(tmp_path, "wb") as fh:
            fh.write(buffer)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(str(tmp_path), str(final_path))
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                logger.warning(f"Failed to remove temporary file: {tmp_path}")


def persist(
    buffer: Optional[bytes],
    output_path: Union[str, Path],
    config: Optional[Config] = None,
) -> Path:
    """
    バッファを出力パスに書き込みます（既存ファイルは上書き）

    Args:
        buffer: エンコード済みの画像データ
        output_path: 出力先パス
        config: 実行設定（debug ログ用）

    Returns:
        Path: 書き込んだファイルのパス

    Raises:
        PersistenceError: バッファが空、または書き込みに失敗した場合
    """
    if not buffer:
        raise PersistenceError("Failed to write image: output buffer is empty", category="empty_buffer")

    final_path = Path(output_path)
    try:
        final_path.parent.mkdir(parents=True, exist_ok=True)
        _write_with_atomic_replace(bytes(buffer), final_path)
    except OSError as e:
        category, retryable = classify_os_error(e)
        raise PersistenceError(
            f"Failed to write image: {describe_error(e)}",
            category=category,
            retryable=retryable,
        ) from e

    if config is not None and config.debug:
        logger.debug(f"[UPSCALER] Image written to {final_path} ({len(buffer)} bytes)")
    return final_path


def persist_video(
    buffer: Optional[bytes],
    output_path: Union[str, Path],
    config: Optional[Config] = None,
) -> Path:
    """動画の保存は未対応。ファイルには一切触れない"""
    raise VideoNotSupportedError(
        f"Video output is not supported; nothing was written to {output_path}"
    )
