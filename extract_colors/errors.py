"""
Exception taxonomy for palette extraction.

Every failure is local and synchronous: the computation is pure, so nothing
is retried and no partial palette is ever returned.
"""


class ColorExtractionError(Exception):
    """Base class for all palette extraction errors."""
    pass


class InvalidBufferError(ColorExtractionError, ValueError):
    """Pixel buffer length is not a multiple of the RGBA stride."""
    pass


class InvalidOptionError(ColorExtractionError, ValueError):
    """An extraction option is outside its accepted range."""
    pass


class DivisionByZeroError(ColorExtractionError, ZeroDivisionError):
    """Area requested against a total of zero pixels."""
    pass


class ImageDecodeError(ColorExtractionError):
    """Image source could not be decoded into pixels."""
    pass
