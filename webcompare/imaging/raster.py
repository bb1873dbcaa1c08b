"""Raster image buffer — decoded RGBA pixels with bounds-checked access."""

from __future__ import annotations

import io
from dataclasses import dataclass, field

from PIL import Image, UnidentifiedImageError

from webcompare.errors import ImageIOError

CHANNELS = 4
WHITE = (255, 255, 255, 255)

Pixel = tuple[int, int, int, int]


@dataclass(eq=True)
class RasterImage:
    """Interleaved RGBA samples, row-major, origin top-left."""

    width: int
    height: int
    data: bytearray = field(repr=False)

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Invalid dimensions {self.width}x{self.height}")
        expected = self.width * self.height * CHANNELS
        if len(self.data) != expected:
            raise ValueError(
                f"Buffer holds {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )
        if not isinstance(self.data, bytearray):
            self.data = bytearray(self.data)

    @classmethod
    def blank(cls, width: int, height: int, fill: Pixel = WHITE) -> "RasterImage":
        return cls(width, height, bytearray(bytes(fill) * (width * height)))

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def _offset(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return (y * self.width + x) * CHANNELS

    def pixel(self, x: int, y: int) -> Pixel:
        i = self._offset(x, y)
        r, g, b, a = self.data[i:i + CHANNELS]
        return (r, g, b, a)

    def set_pixel(self, x: int, y: int, value: Pixel) -> None:
        i = self._offset(x, y)
        self.data[i:i + CHANNELS] = bytes(value)

    def copy(self) -> "RasterImage":
        return RasterImage(self.width, self.height, bytearray(self.data))

    # Pillow interop

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        width, height = rgba.size
        return cls(width, height, bytearray(rgba.tobytes()))

    def to_pil(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), bytes(self.data))


def decode_png(data: bytes, ref: str | None = None) -> RasterImage:
    """Decode encoded image bytes into an RGBA buffer.

    Raises:
        ImageIOError: If the bytes are empty or not a readable image.
    """
    if not data:
        raise ImageIOError(f"Image is empty or corrupted: {ref or '<bytes>'}", ref=ref)
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return RasterImage.from_pil(img)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ImageIOError(f"Cannot decode image {ref or '<bytes>'}: {e}", ref=ref) from e


def encode_png(image: RasterImage) -> bytes:
    buf = io.BytesIO()
    image.to_pil().save(buf, format="PNG")
    return buf.getvalue()
