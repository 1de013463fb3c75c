"""入力画像のハンドル（遅延デコード）"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from loguru import logger
from PIL import Image


class SourceImage:
    """入力ファイルへの参照とメタデータ

    デコードは最初に `image` を参照したときに1回だけ行う。
    1回のパイプライン実行の間だけ使い、終わったら `close()` する。
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._image: Optional[Image.Image] = None
        self._size_bytes: Optional[int] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def size_bytes(self) -> int:
        """ディスク上のファイルサイズ。取得できなければ 0"""
        if self._size_bytes is None:
            try:
                self._size_bytes = os.stat(self.path).st_size
            except OSError as e:
                logger.debug(f"Could not stat {self.path}: {e}")
                self._size_bytes = 0
        return self._size_bytes

    @property
    def image(self) -> Image.Image:
        """デコード済みの画像。失敗時は PIL/OS の例外をそのまま送出する"""
        if self._image is None:
            img = Image.open(self.path)
            try:
                img.load()
            except Exception:
                img.close()
                raise
            self._image = img
            logger.debug(f"Decoded {self.path} ({img.format}, {img.width}x{img.height}, {img.mode})")
        return self._image

    @property
    def format(self) -> Optional[str]:
        return self.image.format

    def close(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None

    def __enter__(self) -> "SourceImage":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def __repr__(self) -> str:
        return f"SourceImage({str(self.path)!r})"
