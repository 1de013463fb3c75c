"""
リサイズパイプライン

入力画像のデコード → 解像度の検証 → リサイズ → 進捗表示 → 出力バッファ、
の順に処理する。内部で起きた例外はすべて ResizeError にまとめて送出する。
"""

from __future__ import annotations

import io
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, TextIO, Union

from loguru import logger
from PIL import Image

from .config import Config
from .errors import (
    RescaleError,
    ResizeError,
    TransformProducedEmptyResultError,
    VideoNotSupportedError,
    describe_error,
)
from .persistence import persist
from .progress import ProgressEstimator
from .resolutions import parse_resolution
from .source import SourceImage

# (source, width, height, output_format) -> encoded bytes
Transform = Callable[[SourceImage, int, int, str], Optional[bytes]]

_EXTENSION_FORMATS: Dict[str, str] = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".webp": "WEBP",
    ".gif": "GIF",
    ".bmp": "BMP",
    ".tif": "TIFF",
    ".tiff": "TIFF",
}
_FALLBACK_FORMAT = "PNG"


@dataclass(frozen=True)
class ResizeResult:
    output_path: Path
    resolution: str
    source_bytes: int
    output_bytes: int
    output_format: str
    elapsed_seconds: float


def resolve_output_format(output_path: Union[str, Path], source_format: Optional[str]) -> str:
    """出力拡張子から形式を決める。不明なら元画像の形式、それも無ければ PNG"""
    suffix = Path(output_path).suffix.lower()
    if suffix in _EXTENSION_FORMATS:
        return _EXTENSION_FORMATS[suffix]
    if source_format and source_format.upper() in _EXTENSION_FORMATS.values():
        return source_format.upper()
    return _FALLBACK_FORMAT


# PNG/GIF がそのまま書き込めるモード
_PNG_GIF_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"}


def _has_alpha(img: Image.Image) -> bool:
    return "A" in img.getbands() or (img.mode == "P" and "transparency" in img.info)


def _prepare_for_format(img: Image.Image, output_format: str) -> Image.Image:
    """保存形式が受け付けるモードに変換する"""
    if output_format == "JPEG" and img.mode not in ("RGB", "L"):
        if _has_alpha(img):
            # 透明度がある場合は白背景で合成
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[3])
            return background
        return img.convert("RGB")
    if output_format == "BMP" and img.mode not in ("1", "L", "P", "RGB"):
        return img.convert("RGB")
    if output_format == "WEBP" and img.mode not in ("RGB", "RGBA", "L"):
        return img.convert("RGBA" if _has_alpha(img) else "RGB")
    if output_format in ("PNG", "GIF") and img.mode not in _PNG_GIF_MODES:
        if _has_alpha(img):
            return img.convert("RGBA")
        # F など単一バンドはグレースケール、CMYK/YCbCr などは RGB
        return img.convert("L" if len(img.getbands()) == 1 else "RGB")
    return img


def pillow_transform(source: SourceImage, width: int, height: int, output_format: str) -> bytes:
    """Pillow（LANCZOS）でリサイズしてエンコード済みのバイト列を返す"""
    resized = source.image.resize((width, height), Image.Resampling.LANCZOS)
    try:
        save_img = _prepare_for_format(resized, output_format)
        out = io.BytesIO()
        save_img.save(out, format=output_format)
        return out.getvalue()
    finally:
        resized.close()


def resize_image(
    source: SourceImage,
    resolution: str,
    config: Config,
    *,
    transform: Optional[Transform] = None,
    progress: Optional[ProgressEstimator] = None,
) -> bytes:
    """
    画像を指定解像度にリサイズし、エンコード済みバッファを返します

    Args:
        source: 入力画像のハンドル
        resolution: "WxH" 形式の解像度（ここでも再検証する）
        config: 実行設定
        transform: リサイズ処理（省略時は pillow_transform）
        progress: 進捗表示（省略時は tqdm のバーを作成）

    Returns:
        bytes: リサイズ後の画像データ

    Raises:
        ResizeError: 検証・デコード・リサイズのいずれかで失敗した場合
    """
    transform = transform or pillow_transform
    # メタデータはリサイズ前に1回だけ取得する
    original_size = source.size_bytes
    owns_progress = progress is None

    try:
        target = parse_resolution(resolution)
        output_format = resolve_output_format(config.output_path, source.format)
        if progress is None:
            progress = ProgressEstimator(f"Resizing image {source.name} to {target}...")
        progress.reset()

        logger.debug(f"Resizing {source.path} to {target} as {output_format}")
        buffer = transform(source, target.width, target.height, output_format)
        if not buffer:
            raise TransformProducedEmptyResultError("Failed to resize image. Result is empty")

        progress.report(original_size, len(buffer))
    except Exception as e:
        raise ResizeError(f"Failed to resize image: {describe_error(e)}") from e
    finally:
        if owns_progress and progress is not None:
            progress.close()

    return bytes(buffer)


def resize_video(video: Optional[bytes], resolution: str, config: Config) -> bytes:
    """動画のリサイズは未対応。解像度だけ検証してから VideoNotSupportedError を送出する"""
    try:
        parse_resolution(resolution)
    except RescaleError as e:
        raise ResizeError(f"Failed to resize video: {describe_error(e)}") from e
    raise VideoNotSupportedError("Video resizing is not supported")


def process(
    config: Config,
    *,
    transform: Optional[Transform] = None,
    progress_file: Optional[TextIO] = None,
) -> ResizeResult:
    """
    1枚の画像をリサイズして保存します

    Args:
        config: 実行設定
        transform: リサイズ処理（テスト用に差し替え可能）
        progress_file: 進捗バーの出力先（省略時は stderr）

    Returns:
        ResizeResult: 処理結果
    """
    start = time.perf_counter()
    if config.batch:
        logger.debug("Batch mode has no effect; processing a single image")

    # バーは生成時に描画されるので、先に解像度を検証する
    try:
        target = parse_resolution(config.resolution)
    except RescaleError as e:
        raise ResizeError(f"Failed to resize image: {describe_error(e)}") from e

    with SourceImage(config.image_path) as source:
        with ProgressEstimator(
            f"Resizing image {source.name} to {target}...",
            file=progress_file,
        ) as progress:
            buffer = resize_image(
                source, config.resolution, config, transform=transform, progress=progress
            )
        # resize_image が成功していればデコード済み
        output_format = resolve_output_format(config.output_path, source.format)
        written = persist(buffer, config.output_path, config)
        source_bytes = source.size_bytes

    if config.debug:
        logger.debug(f"[UPSCALER] Image resized and written to {written}")

    return ResizeResult(
        output_path=written,
        resolution=config.resolution,
        source_bytes=source_bytes,
        output_bytes=len(buffer),
        output_format=output_format,
        elapsed_seconds=time.perf_counter() - start,
    )
