"""Image handling for gateway calls.

Scan photos arrive in several shapes depending on the caller:
- Data URLs (data:image/jpeg;base64,...), which is what the scan workflow keeps
- Plain base64 strings
- http(s) URLs
- Local file paths (CLI)
- Raw bytes

Core Functions:
- safe_execute_async() / safe_execute_sync(): log-and-degrade wrappers for optional steps
- fetch_image_bytes(): Resolve any supported source into bytes (async)
- validate_image_format(): Check JPEG/PNG only
- validate_image_size(): Check MAX_IMAGE_SIZE_MB limit
- compress_image(): Shrink large photos before upload
- prepare_image(): validate -> compress pipeline returning bytes + MIME type
- to_data_url(): Encode bytes as a data URL for display/fallback use
"""

import base64
from io import BytesIO
from pathlib import Path
from typing import Optional

import aiohttp
import filetype
from PIL import Image

from chefs_eye.utils.config import config
from chefs_eye.utils.logger import logger


# ============================================================================
# Error Handling Helpers
# ============================================================================


def _log_error(operation_name: str, exception: Exception, log_level: str = "warning") -> None:
    msg = f"{operation_name}: {exception}"
    if log_level == "debug":
        logger.debug(msg)
    elif log_level == "error":
        logger.error(msg)
    else:
        logger.warning(msg)


async def safe_execute_async(
    coro,
    operation_name: str,
    log_level: str = "warning",
    default_return=None,
    reraise: bool = False,
):
    """Safely execute async operation with consistent error logging.

    Used for operations where failure is not critical and the caller has a
    sensible default (e.g. a fallback image or an empty list).

    Args:
        coro: Awaitable coroutine to execute.
        operation_name: Description for logging (e.g., "Fetch image from URL").
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception. Default: None.
        reraise: If True, re-raise exception after logging. Default: False.

    Returns:
        Result of coroutine if successful, default_return otherwise.
    """
    try:
        return await coro
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return


def safe_execute_sync(
    func,
    operation_name: str,
    log_level: str = "warning",
    default_return=None,
    reraise: bool = False,
):
    """Synchronous version of safe_execute_async. Same behavior and patterns."""
    try:
        return func()
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return


# ============================================================================
# Source Resolution
# ============================================================================


def split_data_url(image: str) -> tuple[Optional[str], str]:
    """Split a data URL into (mime_type, base64 payload).

    Plain base64 input is returned with a None MIME type.
    """
    if image.startswith("data:") and "," in image:
        header, encoded = image.split(",", 1)
        mime_type = header[len("data:"):].split(";", 1)[0] or None
        return mime_type, encoded
    return None, image


async def fetch_image_bytes(image_source: str | bytes | Path) -> Optional[bytes]:
    """Resolve an image source into raw bytes.

    Args:
        image_source: Data URL, plain base64, http(s) URL, file path, or bytes.

    Returns:
        Image bytes, or None on any failure (logged as warning).
    """
    if isinstance(image_source, bytes):
        return image_source

    if isinstance(image_source, Path):
        return safe_execute_sync(image_source.read_bytes, f"Read image file: {image_source}")

    if not isinstance(image_source, str) or not image_source:
        return None

    if image_source.startswith(("http://", "https://")):

        async def _fetch_url():
            async with aiohttp.ClientSession() as session:
                async with session.get(image_source, timeout=aiohttp.ClientTimeout(total=10)) as response:
                    response.raise_for_status()
                    return await response.read()

        return await safe_execute_async(_fetch_url(), f"Fetch image from URL: {image_source}")

    if not image_source.startswith("data:"):
        path = Path(image_source)
        # Base64 payloads can be huge; only treat short strings as candidate paths
        if len(image_source) < 4096 and safe_execute_sync(path.is_file, "Check image path", log_level="debug"):
            return safe_execute_sync(path.read_bytes, f"Read image file: {image_source}")

    _, encoded = split_data_url(image_source)
    return safe_execute_sync(
        lambda: base64.b64decode(encoded, validate=False),
        "Decode base64 image",
        default_return=None,
    )


# ============================================================================
# Validation & Compression
# ============================================================================


def validate_image_format(image_bytes: bytes) -> bool:
    """Validate image format (JPEG or PNG only), detected from magic bytes."""
    kind = filetype.guess(image_bytes)
    if kind is None or kind.extension not in ("jpg", "jpeg", "png"):
        logger.warning(f"Invalid image format: {kind}. Only JPEG and PNG supported.")
        return False
    return True


def validate_image_size(image_bytes: bytes) -> bool:
    """Validate image size against MAX_IMAGE_SIZE_MB."""
    size_mb = len(image_bytes) / (1024 * 1024)
    if size_mb > config.MAX_IMAGE_SIZE_MB:
        logger.warning(f"Image size {size_mb:.2f}MB exceeds limit of {config.MAX_IMAGE_SIZE_MB}MB")
        return False
    return True


def mime_type_of(image_bytes: bytes) -> str:
    kind = filetype.guess(image_bytes)
    if kind is not None and kind.extension == "png":
        return "image/png"
    return "image/jpeg"


def compress_image(image_bytes: bytes, max_width: int = 1024) -> bytes:
    """Compress image for API transmission using Pillow.

    JPEG quality=85 + optimize + progressive. Resizes oversized images and
    flattens alpha onto white. Images below COMPRESS_IMG_THRESHOLD_KB are
    returned unchanged.

    Args:
        image_bytes: Raw image bytes to compress
        max_width: Maximum image width in pixels

    Returns:
        Compressed image bytes (or the original on failure or below threshold)
    """
    size_kb = len(image_bytes) / 1024
    if size_kb < config.COMPRESS_IMG_THRESHOLD_KB:
        logger.debug(
            f"Image size {size_kb:.1f}KB below compression threshold "
            f"({config.COMPRESS_IMG_THRESHOLD_KB}KB), skipping compression"
        )
        return image_bytes

    def _compress():
        img = Image.open(BytesIO(image_bytes))

        if img.mode in ("RGBA", "LA", "P"):
            img = img.convert("RGBA")
            rgb_img = Image.new("RGB", img.size, (255, 255, 255))
            rgb_img.paste(img, mask=img.split()[-1])
            img = rgb_img
        elif img.mode != "RGB":
            img = img.convert("RGB")

        if img.width > max_width:
            ratio = max_width / img.width
            img = img.resize((max_width, int(img.height * ratio)), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format="JPEG", quality=85, optimize=True, progressive=True)
        compressed = output.getvalue()

        logger.debug(f"Image compressed: {size_kb:.1f}KB → {len(compressed) / 1024:.1f}KB")
        return compressed

    return safe_execute_sync(_compress, "Image compression", default_return=image_bytes)


async def prepare_image(image_source: str | bytes | Path) -> tuple[bytes, str]:
    """Resolve, validate and (optionally) compress an image for upload.

    Returns:
        Tuple of (image_bytes, mime_type).

    Raises:
        ValueError: If the image cannot be read, is not JPEG/PNG, or is too large.
    """
    image_bytes = await fetch_image_bytes(image_source)
    if not image_bytes:
        raise ValueError("Could not retrieve image bytes from provided data")

    if not validate_image_format(image_bytes):
        raise ValueError("Invalid image format. Only JPEG and PNG are supported.")

    if not validate_image_size(image_bytes):
        raise ValueError(f"Image too large. Maximum size is {config.MAX_IMAGE_SIZE_MB}MB")

    if config.COMPRESS_IMG:
        image_bytes = compress_image(image_bytes)

    return image_bytes, mime_type_of(image_bytes)


def to_data_url(image_bytes: bytes, mime_type: Optional[str] = None) -> str:
    mime_type = mime_type or mime_type_of(image_bytes)
    return f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('utf-8')}"
