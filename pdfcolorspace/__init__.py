from importlib.metadata import PackageNotFoundError, version

from pdfcolorspace.pdfcolor import DeviceSpaceKind, PDFColorSpace, get_device_space
from pdfcolorspace.pdfexceptions import (
    PDFColorSpaceError,
    PDFColorSpaceSyntaxError,
    PDFColorValueError,
    PDFFunctionError,
    PDFICCProfileError,
)
from pdfcolorspace.pdfresolver import PDFColorSpaceResolver, resolve

try:
    __version__ = version("pdfcolorspace")
except PackageNotFoundError:
    # package is not installed, return default
    __version__ = "0.0"

__all__ = [
    "DeviceSpaceKind",
    "PDFColorSpace",
    "PDFColorSpaceError",
    "PDFColorSpaceResolver",
    "PDFColorSpaceSyntaxError",
    "PDFColorValueError",
    "PDFFunctionError",
    "PDFICCProfileError",
    "get_device_space",
    "resolve",
]

if __name__ == "__main__":
    print(__version__)
