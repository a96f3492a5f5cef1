"""Unit tests for gateway image handling."""

import base64
from unittest.mock import AsyncMock, patch

import pytest
from PIL import Image
from io import BytesIO

from chefs_eye.gateway.images import (
    compress_image,
    fetch_image_bytes,
    mime_type_of,
    prepare_image,
    safe_execute_async,
    safe_execute_sync,
    split_data_url,
    to_data_url,
    validate_image_format,
    validate_image_size,
)

from conftest import make_data_url, make_image_bytes


class TestValidateImageFormat:
    """Tests for validate_image_format."""

    def test_valid_jpeg(self):
        assert validate_image_format(make_image_bytes("JPEG")) is True

    def test_valid_png(self):
        assert validate_image_format(make_image_bytes("PNG")) is True

    def test_invalid_format(self):
        assert validate_image_format(make_image_bytes("GIF")) is False

    def test_empty_bytes(self):
        assert validate_image_format(b"") is False


class TestValidateImageSize:
    """Tests for validate_image_size."""

    def test_valid_size(self):
        assert validate_image_size(b"x" * 1024) is True

    @patch("chefs_eye.gateway.images.config")
    def test_over_limit(self, mock_config):
        mock_config.MAX_IMAGE_SIZE_MB = 1
        assert validate_image_size(b"x" * (1024 * 1024 + 1)) is False


class TestDataUrls:
    """Tests for data URL helpers."""

    def test_split_data_url(self):
        assert split_data_url("data:image/png;base64,AAAA") == ("image/png", "AAAA")

    def test_split_plain_base64(self):
        assert split_data_url("AAAA") == (None, "AAAA")

    def test_to_data_url_detects_mime(self):
        url = to_data_url(make_image_bytes("PNG"))
        assert url.startswith("data:image/png;base64,")

    def test_mime_type_defaults_to_jpeg(self):
        assert mime_type_of(make_image_bytes("JPEG")) == "image/jpeg"
        assert mime_type_of(b"unknown") == "image/jpeg"


class TestFetchImageBytes:
    """Tests for fetch_image_bytes source resolution."""

    @pytest.mark.asyncio
    async def test_raw_bytes_pass_through(self):
        assert await fetch_image_bytes(b"abc") == b"abc"

    @pytest.mark.asyncio
    async def test_data_url_decoded(self):
        png = make_image_bytes("PNG")
        assert await fetch_image_bytes(to_data_url(png)) == png

    @pytest.mark.asyncio
    async def test_plain_base64_decoded(self):
        png = make_image_bytes("PNG")
        assert await fetch_image_bytes(base64.b64encode(png).decode("utf-8")) == png

    @pytest.mark.asyncio
    async def test_file_path(self, tmp_path):
        path = tmp_path / "photo.png"
        path.write_bytes(make_image_bytes("PNG"))
        assert await fetch_image_bytes(str(path)) == path.read_bytes()
        assert await fetch_image_bytes(path) == path.read_bytes()

    @pytest.mark.asyncio
    async def test_missing_path_object_returns_none(self, tmp_path):
        assert await fetch_image_bytes(tmp_path / "missing.png") is None

    @pytest.mark.asyncio
    async def test_empty_source_returns_none(self):
        assert await fetch_image_bytes("") is None


class TestCompressImage:
    """Tests for compress_image."""

    @patch("chefs_eye.gateway.images.config")
    def test_small_image_unchanged(self, mock_config):
        mock_config.COMPRESS_IMG_THRESHOLD_KB = 300
        png = make_image_bytes("PNG")
        assert compress_image(png) is png

    @patch("chefs_eye.gateway.images.config")
    def test_large_image_resized_to_jpeg(self, mock_config):
        mock_config.COMPRESS_IMG_THRESHOLD_KB = 0
        png = make_image_bytes("PNG", size=(2048, 512), mode="RGBA")

        compressed = compress_image(png, max_width=1024)

        img = Image.open(BytesIO(compressed))
        assert img.format == "JPEG"
        assert img.width == 1024
        assert img.height == 256

    @patch("chefs_eye.gateway.images.config")
    def test_undecodable_image_returned_as_is(self, mock_config):
        mock_config.COMPRESS_IMG_THRESHOLD_KB = 0
        assert compress_image(b"not an image") == b"not an image"


class TestPrepareImage:
    """Tests for the prepare_image pipeline."""

    @pytest.mark.asyncio
    async def test_returns_bytes_and_mime(self):
        image_bytes, mime_type = await prepare_image(make_data_url("PNG"))
        assert image_bytes
        assert mime_type in ("image/png", "image/jpeg")

    @pytest.mark.asyncio
    @patch("chefs_eye.gateway.images.fetch_image_bytes", new_callable=AsyncMock)
    async def test_unreadable_source_raises(self, mock_fetch):
        mock_fetch.return_value = None
        with pytest.raises(ValueError, match="Could not retrieve"):
            await prepare_image("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_unsupported_format_raises(self):
        gif = make_image_bytes("GIF")
        with pytest.raises(ValueError, match="Invalid image format"):
            await prepare_image(gif)

    @pytest.mark.asyncio
    @patch("chefs_eye.gateway.images.validate_image_size", return_value=False)
    async def test_oversized_image_raises(self, _mock_size):
        with pytest.raises(ValueError, match="too large"):
            await prepare_image(make_image_bytes("PNG"))


class TestSafeExecute:
    """Tests for the log-and-degrade helpers."""

    def test_sync_returns_default_on_error(self):
        def _boom():
            raise RuntimeError("nope")

        assert safe_execute_sync(_boom, "Boom", default_return=[]) == []

    def test_sync_reraises_when_asked(self):
        def _boom():
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            safe_execute_sync(_boom, "Boom", reraise=True)

    @pytest.mark.asyncio
    async def test_async_returns_result(self):
        async def _ok():
            return 42

        assert await safe_execute_async(_ok(), "Ok") == 42

    @pytest.mark.asyncio
    async def test_async_returns_default_on_error(self):
        async def _boom():
            raise RuntimeError("nope")

        assert await safe_execute_async(_boom(), "Boom", default_return="fallback") == "fallback"
