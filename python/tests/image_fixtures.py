"""Test image fixtures for preprocessing and upload tests.

The images are generated programmatically using Pillow to ensure they're
always valid and can be decoded correctly.
"""

import io

from PIL import Image


def _encode(img: Image.Image, fmt: str, **save_kwargs) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format=fmt, **save_kwargs)
    return buffer.getvalue()


def make_png(width: int = 1, height: int = 1, color: str = "white") -> bytes:
    """Create a valid PNG of the given size."""
    return _encode(Image.new("RGB", (width, height), color=color), "PNG")


def make_rgba_png(width: int = 4, height: int = 4) -> bytes:
    """Create a PNG with an alpha channel."""
    return _encode(Image.new("RGBA", (width, height), color=(255, 0, 0, 128)), "PNG")


def make_jpeg_with_orientation(width: int, height: int, orientation: int) -> bytes:
    """Create a JPEG whose EXIF orientation tag says it must be rotated."""
    img = Image.new("RGB", (width, height), color="blue")
    exif = Image.Exif()
    exif[0x0112] = orientation
    return _encode(img, "JPEG", exif=exif.tobytes())


TINY_PNG = make_png()
TINY_JPEG = _encode(Image.new("RGB", (1, 1), color="white"), "JPEG")
TINY_GIF = _encode(Image.new("RGB", (1, 1), color="white"), "GIF")

# 3000x1500, larger than the default 2048 box
WIDE_PNG = make_png(3000, 1500, color="green")

# Stored 200x100, displayed 100x200 (orientation 6 = rotate 90 CW)
ROTATED_JPEG = make_jpeg_with_orientation(200, 100, orientation=6)

SVG_CONTENT = b'<svg xmlns="http://www.w3.org/2000/svg"><circle cx="50" cy="50" r="40"/></svg>'

# Plain text (not decodable)
TEXT_CONTENT = b"This is plain text, not an image."
