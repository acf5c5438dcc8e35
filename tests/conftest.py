import io
import random
import struct

import pytest
from PIL import Image


def encode_image(image, fmt="PNG", **save_kwargs) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


def noise_image(size=(64, 64), mode="RGB", seed=0):
    """Incompressible pixels, so encoded files are large and truncation hits pixel data."""
    channels = len(mode)
    data = random.Random(seed).randbytes(size[0] * size[1] * channels)
    return Image.frombytes(mode, size, data)


def icon_entries(data):
    """(size, byte_length, offset) per ICO directory entry, in file order."""
    _, kind, count = struct.unpack_from("<HHH", data, 0)
    assert kind == 1
    entries = []
    for index in range(count):
        width, _, _, _, _, _, length, offset = struct.unpack_from("<BBBBHHII", data, 6 + 16 * index)
        entries.append((width or 256, length, offset))
    return entries


@pytest.fixture
def make_image():
    """Return a factory producing encoded image bytes."""

    def _make(size=(64, 48), mode="RGB", fmt="PNG", color=None, **save_kwargs):
        if color is None:
            color = (200, 30, 30, 255)[: len(mode)] if mode in ("RGB", "RGBA") else 0
        return encode_image(Image.new(mode, size, color), fmt, **save_kwargs)

    return _make


@pytest.fixture
def png_bytes(make_image):
    return make_image()


@pytest.fixture
def rgba_png_bytes():
    # left half opaque blue, right half fully transparent
    image = Image.new("RGBA", (40, 20), (0, 0, 0, 0))
    image.paste((0, 0, 255, 255), (0, 0, 20, 20))
    return encode_image(image)


@pytest.fixture
def noise_png_bytes():
    return encode_image(noise_image())
