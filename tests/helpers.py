"""Image builders and a capture stand-in shared by the test modules."""

import io

from PIL import Image, ImageDraw

from webcompare.storage.content_store import ContentStore

# Small canonical viewport keeps pixel work fast in unit tests.
VIEWPORT_W = 64
VIEWPORT_H = 40


def make_image(width, height, color=(255, 255, 255, 255), blocks=()):
    """Create an RGBA image filled with ``color`` and optional (box, fill) blocks."""
    img = Image.new("RGBA", (width, height), color)
    draw = ImageDraw.Draw(img)
    for box, fill in blocks:
        draw.rectangle(box, fill=fill)
    return img


def png_bytes(img):
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class FakeCapture:
    """Stands in for ScreenshotCapture: stores queued images or raises queued errors."""

    def __init__(self, store: ContentStore):
        self.store = store
        self.queue = []
        self.calls = []

    def queue_image(self, img):
        self.queue.append(img)

    def queue_error(self, error):
        self.queue.append(error)

    def queue_bytes(self, data):
        self.queue.append(data)

    async def capture(self, url):
        self.calls.append(url)
        if not self.queue:
            raise AssertionError(f"Unexpected capture of {url}")
        item = self.queue.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, bytes):
            return self.store.write(item)
        return self.store.write(png_bytes(item))
