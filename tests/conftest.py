#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
pytest設定ファイル
共通のフィクスチャやテスト設定を定義
"""

import pytest
from loguru import logger
from PIL import Image

from rescale.config import Config


@pytest.fixture
def sample_images(tmp_path):
    """様々なフォーマットのサンプル画像を作成するフィクスチャ"""
    images = {}

    # 10x10 の小さい PNG
    small_path = tmp_path / "small.png"
    Image.new("RGB", (10, 10), color=(255, 0, 0)).save(small_path, "PNG")
    images["small"] = small_path

    # JPEG画像
    jpeg_path = tmp_path / "sample.jpg"
    Image.new("RGB", (64, 48), color=(0, 128, 255)).save(jpeg_path, "JPEG", quality=90)
    images["jpeg"] = jpeg_path

    # 透過PNG
    rgba_path = tmp_path / "alpha.png"
    Image.new("RGBA", (32, 32), color=(0, 255, 0, 128)).save(rgba_path, "PNG")
    images["rgba"] = rgba_path

    # 画像ではないファイル
    broken_path = tmp_path / "broken.png"
    broken_path.write_bytes(b"not an image")
    images["broken"] = broken_path

    return images


@pytest.fixture
def make_config(tmp_path):
    """Config を作るヘルパー"""

    def _make(image, resolution="640x480", output=None, **kwargs):
        output = output or tmp_path / "out" / "result.png"
        return Config(
            image_path=str(image),
            resolution=resolution,
            output_path=str(output),
            **kwargs,
        )

    return _make


@pytest.fixture
def log_messages():
    """loguru の出力をリストに集める"""
    messages = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{level}|{message}")
    yield messages
    logger.remove(handler_id)
