"""Exceptions raised by the comparison engine and its collaborators."""

from __future__ import annotations


class EngineError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, *args):
        self.message = message
        super().__init__(message, *args)


class RenderError(EngineError):
    """Raised when a capture never produced an image (timeout, network, navigation)."""

    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


class ImageIOError(EngineError):
    """Raised when stored image bytes are missing, unreadable, or not a valid raster."""

    def __init__(self, message: str, ref: str | None = None):
        self.ref = ref
        super().__init__(message)


class DimensionMismatchError(EngineError):
    """Raised when two images reach the diff engine without being normalized."""

    def __init__(self, a_size: tuple[int, int], b_size: tuple[int, int]):
        self.a_size = a_size
        self.b_size = b_size
        super().__init__(
            f"Image dimensions differ: {a_size[0]}x{a_size[1]} vs {b_size[0]}x{b_size[1]}"
        )


class NotFoundError(EngineError):
    """Raised when a looked-up record does not exist."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class WebsiteNotFoundError(NotFoundError):
    def __init__(self, website_id: str):
        self.website_id = website_id
        super().__init__(f"Website not found: {website_id}")


class PageNotFoundError(NotFoundError):
    def __init__(self, page_id: str):
        self.page_id = page_id
        super().__init__(f"Page not found: {page_id}")


class ComparisonNotFoundError(NotFoundError):
    def __init__(self, comparison_id: str):
        self.comparison_id = comparison_id
        super().__init__(f"Comparison not found: {comparison_id}")
