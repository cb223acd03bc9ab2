"""Tests for image preprocessing and provider id construction."""

import io
import re

import pytest
from PIL import Image

from mediavault.errors import ApiError, ApiErrorCode
from mediavault.media import images
from mediavault.media.images import (
    applied_transformations,
    build_image_public_id,
    preprocess_image,
)
from mediavault.schemas.assets import ImageProcessingOptions
from tests.image_fixtures import (
    ROTATED_JPEG,
    SVG_CONTENT,
    TEXT_CONTENT,
    TINY_PNG,
    WIDE_PNG,
    make_rgba_png,
)


def _decode(data: bytes) -> Image.Image:
    return Image.open(io.BytesIO(data))


class TestPreprocessImage:
    def test_large_image_shrunk_into_box(self):
        result = preprocess_image(WIDE_PNG, "image/png", ImageProcessingOptions())

        assert result.resized is True
        assert result.reencoded is True
        assert result.content_type == "image/jpeg"
        assert (result.width, result.height) == (3000, 1500)

        output = _decode(result.data)
        assert output.format == "JPEG"
        assert output.size == (2048, 1024)

    def test_small_image_never_enlarged(self):
        result = preprocess_image(TINY_PNG, "image/png", ImageProcessingOptions())

        assert result.resized is False
        assert _decode(result.data).size == (1, 1)

    def test_custom_box_from_camel_case_options(self):
        options = ImageProcessingOptions.model_validate({"maxWidth": 300, "maxHeight": 300})

        result = preprocess_image(WIDE_PNG, "image/png", options)

        assert _decode(result.data).size == (300, 150)

    def test_exif_orientation_applied_without_resize(self):
        result = preprocess_image(ROTATED_JPEG, "image/jpeg", ImageProcessingOptions())

        assert result.resized is False
        assert _decode(result.data).size == (100, 200)

    def test_alpha_channel_flattened(self):
        result = preprocess_image(make_rgba_png(), "image/png", ImageProcessingOptions())

        assert _decode(result.data).mode == "RGB"

    def test_optimization_disabled_passes_bytes_through(self):
        options = ImageProcessingOptions(enable_optimization=False)

        result = preprocess_image(WIDE_PNG, "image/png", options)

        assert result.data == WIDE_PNG
        assert result.reencoded is False
        assert result.format == "png"

    def test_svg_passes_through(self):
        result = preprocess_image(SVG_CONTENT, "image/svg+xml", ImageProcessingOptions())

        assert result.data == SVG_CONTENT
        assert result.content_type == "image/svg+xml"

    def test_undecodable_bytes_rejected(self):
        with pytest.raises(ApiError) as exc_info:
            preprocess_image(TEXT_CONTENT, "image/png", ImageProcessingOptions())

        assert exc_info.value.code == ApiErrorCode.E_INVALID_FILE_TYPE
        assert exc_info.value.message == "File is not a valid image"

    def test_decompression_bomb_rejected(self, monkeypatch):
        monkeypatch.setattr(images, "MAX_DECODE_PIXELS", 10_000)
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", Image.MAX_IMAGE_PIXELS)

        with pytest.raises(ApiError) as exc_info:
            preprocess_image(WIDE_PNG, "image/png", ImageProcessingOptions())

        assert exc_info.value.code == ApiErrorCode.E_FILE_TOO_LARGE


class TestBuildImagePublicId:
    def test_format(self):
        public_id = build_image_public_id("user_abc", now_ms=1700000000000)

        assert re.fullmatch(r"users/user_abc/user_abc_1700000000000_[0-9a-f]{16}", public_id)

    def test_unique_within_same_millisecond(self):
        first = build_image_public_id("u", now_ms=1)
        second = build_image_public_id("u", now_ms=1)

        assert first != second


class TestAppliedTransformations:
    def test_optimization_labels(self):
        labels = applied_transformations(ImageProcessingOptions())
        assert "Smart compression" in labels
        assert "EXIF rotation" in labels

    def test_without_optimization(self):
        labels = applied_transformations(ImageProcessingOptions(enable_optimization=False))
        assert "Smart compression" not in labels
        assert "Progressive loading" in labels
