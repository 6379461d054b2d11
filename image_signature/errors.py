"""
Error types raised by the descriptor pipeline.

Every validation error also subclasses ValueError so callers that
already guard extraction with ``except ValueError`` keep working.
"""


class ImageSignatureError(Exception):
    """Base class for all image_signature errors."""


class InvalidParameter(ImageSignatureError, ValueError):
    """A filter or accumulator was configured with an unusable value."""


class DimensionMismatch(ImageSignatureError, ValueError):
    """Two pixel buffers that must share a size do not."""


class ShapeMismatch(ImageSignatureError, ValueError):
    """Two histograms that must share channels/bins do not."""


class EmptyInput(ImageSignatureError, ValueError):
    """A zero-pixel buffer was handed to an accumulator."""


class ParallelExecutionError(ImageSignatureError, RuntimeError):
    """
    One or more workers of a fork-join pass failed.

    Raised only after every worker has been joined. ``errors`` holds
    the original exceptions in row order.
    """

    def __init__(self, errors):
        self.errors = list(errors)
        summary = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        super().__init__(
            f"{len(self.errors)} worker(s) failed: {summary}"
        )
