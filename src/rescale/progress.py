"""
リサイズ処理の進捗推定と表示

出力バイト数と元ファイルサイズの比から進捗率を推定し、tqdm の
バーで表示する。推定値はあくまで目安で、最後は必ず 100% を表示する。
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, List, Optional, TextIO

from loguru import logger
from tqdm import tqdm

DEFAULT_TOTAL = 100
DEFAULT_WIDTH = 20


def estimate_ratio(original_size: Any, output_length: int) -> float:
    """
    出力サイズから進捗率（0.0〜1.0）を推定します

    Args:
        original_size: 元画像のサイズ（バイト）。取得できない場合は None や非数値でもよい
        output_length: 出力バッファの長さ（バイト）

    Returns:
        float: 進捗率。分母が 0 の場合は 1.0
    """
    if (
        isinstance(original_size, bool)
        or not isinstance(original_size, Real)
        or math.isnan(original_size)
        or original_size <= 0
    ):
        original_size = 0

    denominator = original_size if original_size > 0 else output_length
    if denominator == 0:
        return 1.0
    return min(1.0, output_length / denominator)


class ProgressEstimator:
    """1回のリサイズ処理の進捗バー

    表示で例外が出ても処理自体は止めない（警告ログのみ）。
    """

    def __init__(
        self,
        description: str,
        *,
        total: int = DEFAULT_TOTAL,
        width: int = DEFAULT_WIDTH,
        file: Optional[TextIO] = None,
        disable: bool = False,
    ) -> None:
        self.description = description
        self.total = total
        self.width = width
        self.current = 0.0
        self.history: List[float] = []
        self._bar: Optional[tqdm] = None
        try:
            self._bar = tqdm(
                total=total,
                desc=description,
                bar_format="{desc} [{bar:%d}] {n:.0f}/{total}" % width,
                file=file,
                disable=disable,
                leave=True,
            )
        except Exception as e:
            logger.warning(f"Progress bar unavailable: {e}")

    def reset(self) -> None:
        """0% に戻す"""
        self._emit(0.0)

    def update(self, ratio: float) -> None:
        """進捗率を設定（0〜1 に丸める）"""
        self._emit(max(0.0, min(1.0, float(ratio))))

    def complete(self) -> None:
        """100% にする"""
        self._emit(1.0)

    def report(self, original_size: Any, output_length: int) -> float:
        """推定値を表示し、続けて 100% を表示する。推定値を返す"""
        ratio = estimate_ratio(original_size, output_length)
        self.update(ratio)
        self.complete()
        return ratio

    def close(self) -> None:
        if self._bar is None:
            return
        try:
            self._bar.close()
        except Exception as e:
            logger.warning(f"Failed to close progress bar: {e}")
        finally:
            self._bar = None

    def _emit(self, ratio: float) -> None:
        self.current = ratio
        self.history.append(ratio)
        if self._bar is None:
            return
        try:
            self._bar.n = round(ratio * self.total)
            self._bar.refresh()
        except Exception as e:
            logger.warning(f"Failed to render progress ({ratio:.0%}): {e}")

    def __enter__(self) -> "ProgressEstimator":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False
