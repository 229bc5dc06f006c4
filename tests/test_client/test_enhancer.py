"""Tests for frame enhancement and encoding."""
import io
import random
from unittest.mock import patch

import pytest
from PIL import Image

from shared.utils import CorruptedImageError
from src.survey_client.capture.enhancer import (
    channel_table, enhance_frame, encode_jpeg, enhance_and_encode, load_image_file
)
from src.survey_client.config_manager import ConfigManager
from src.survey_client.errors import EnhancementFailed


def random_rgba(size=(32, 24), seed=7):
    rng = random.Random(seed)
    image = Image.new('RGBA', size)
    image.putdata([tuple(rng.randrange(256) for _ in range(4)) for _ in range(size[0] * size[1])])
    return image


def test_channel_table_formula_and_clamp():
    table = channel_table(1.1, 1.05)
    assert len(table) == 256
    assert table[0] == 0
    assert table[255] == 255
    assert table[100] == round((100 * 1.1 - 128) * 1.05 + 128)
    assert all(0 <= v <= 255 for v in table)


@pytest.mark.parametrize('brightness,contrast', [(1.1, 1.05), (1.05, 1.1), (2.0, 3.0), (0.5, 0.5)])
def test_enhance_keeps_size_range_and_alpha(brightness, contrast):
    source = random_rgba()
    result = enhance_frame(source, brightness, contrast)

    assert result.size == source.size
    assert result.mode == 'RGBA'
    assert list(result.getdata(3)) == list(source.getdata(3))
    for band in range(3):
        values = list(result.getdata(band))
        assert min(values) >= 0 and max(values) <= 255


def test_enhance_rgb_frame():
    result = enhance_frame(Image.new('RGB', (4, 4), (100, 100, 100)))
    assert result.mode == 'RGB'
    assert result.getpixel((0, 0)) == (channel_table(1.1, 1.05)[100],) * 3


def test_enhance_failure_raises():
    broken = Image.new('RGB', (4, 4))
    with patch.object(Image.Image, 'point', side_effect=ValueError("bad buffer")):
        with pytest.raises(EnhancementFailed):
            enhance_frame(broken)


def test_enhance_and_encode_falls_back_to_unmodified_frame():
    source = Image.new('RGB', (16, 16), (50, 60, 70))
    with patch('src.survey_client.capture.enhancer.enhance_frame', side_effect=EnhancementFailed("x")):
        data = enhance_and_encode(source)
    decoded = Image.open(io.BytesIO(data))
    assert decoded.format == 'JPEG'
    assert decoded.size == (16, 16)


def test_enhance_and_encode_uses_settings():
    settings = ConfigManager(jpeg_quality=85, enhance_brightness=1.05, enhance_contrast=1.1)
    with patch('src.survey_client.capture.enhancer.encode_jpeg', return_value=b'jpeg') as encode:
        assert enhance_and_encode(random_rgba(), settings) == b'jpeg'
    assert encode.call_args.args[1] == 85


def test_encode_jpeg_drops_alpha():
    data = encode_jpeg(random_rgba(), quality=90)
    decoded = Image.open(io.BytesIO(data))
    assert decoded.mode == 'RGB'
    assert decoded.size == (32, 24)
    with pytest.raises(ValueError):
        encode_jpeg(random_rgba(), quality=0)


def test_load_image_file_clamps():
    buffer = io.BytesIO()
    Image.new('RGB', (3000, 1500)).save(buffer, format='JPEG')
    image = load_image_file(buffer.getvalue(), max_dimension=1200)
    assert image.size == (1200, 600)
    assert image.mode == 'RGBA'

    with pytest.raises(CorruptedImageError):
        load_image_file(b'not an image')
