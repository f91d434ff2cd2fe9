from pdfminer.pdfexceptions import PDFException, PDFValueError
from pdfminer.pdfparser import PDFSyntaxError


class PDFColorSpaceError(PDFException):
    """Base class for color space resolution and conversion errors."""


class PDFColorSpaceSyntaxError(PDFColorSpaceError, PDFSyntaxError):
    """A color space descriptor is malformed or names an unknown family."""


class PDFFunctionError(PDFColorSpaceSyntaxError):
    """A function dictionary or stream cannot be turned into a function."""


class PDFICCProfileError(PDFColorSpaceSyntaxError):
    """Embedded ICC profile data cannot be parsed."""


class PDFColorValueError(PDFColorSpaceError, PDFValueError):
    """Color components or a device space kind violate the caller contract."""
