"""Exception types shared across the bill-splitting pipeline."""


class SplitSnapError(Exception):
    """Base class for all splitsnap errors."""


class DecodeFailure(SplitSnapError):
    """Raised when the source image bytes cannot be decoded."""


class ImageProcessingFailure(SplitSnapError):
    """Raised when a decoded image fails during enhancement or cropping."""


class RecognitionFailure(SplitSnapError):
    """Raised when an OCR engine call fails or times out."""


class InvalidManualEntry(SplitSnapError):
    """Raised for user-supplied amounts that are non-numeric or out of range."""


class InvalidSelection(SplitSnapError):
    """Raised when a region/point selection is too small or off the image."""


class ItemNotFound(SplitSnapError, KeyError):
    """Raised when a candidate item id is not part of the active bill."""

    def __str__(self) -> str:
        # KeyError.__str__ wraps the message in quotes.
        return Exception.__str__(self)
