"""Functions that can be used for the most common use-cases for pdfcolorspace"""

import logging
from collections.abc import Container, Iterator, Mapping
from typing import Any

from pdfminer.pdfpage import PDFPage
from pdfminer.pdftypes import resolve1
from pdfminer.psparser import LIT

from pdfcolorspace.pdfcolor import PDFColorSpace
from pdfcolorspace.pdfresolver import PDFColorSpaceResolver

log = logging.getLogger(__name__)

PageColorSpaces = dict[str, PDFColorSpace | None]


def get_colorspaces(
    resources: Mapping[str, Any] | None,
    resolver: PDFColorSpaceResolver | None = None,
) -> PageColorSpaces:
    """Resolve every entry of the ``ColorSpace`` resource dictionary.

    :param resources: a resource dictionary, e.g. `PDFPage.resources`.
    :param resolver: the resolver of the document the resources belong to.
    :return: color spaces by resource name, None for spaces that cannot be
        found.
    """
    if resolver is None:
        resolver = PDFColorSpaceResolver()
    resources = resolve1(resources)
    if not isinstance(resources, Mapping):
        return {}
    csmap = resolve1(resources.get("ColorSpace"))
    if not isinstance(csmap, Mapping):
        return {}
    colorspaces: PageColorSpaces = {}
    for name in csmap:
        colorspaces[name] = resolver.resolve(LIT(name), resources)
    return colorspaces


def extract_colorspaces(
    pdf_file: str,
    password: str = "",
    page_numbers: Container[int] | None = None,
    maxpages: int = 0,
    caching: bool = True,
    use_icc: bool | None = None,
) -> Iterator[PageColorSpaces]:
    """Extract and yield the color spaces of each page

    One resolver is shared by all pages, so a color space used by several
    pages is resolved once.

    :param pdf_file: Path to the PDF file to be worked on
    :param password: For encrypted PDFs, the password to decrypt.
    :param page_numbers: List of zero-indexed page numbers to extract.
    :param maxpages: The maximum number of pages to parse
    :param caching: If resolved color spaces should be cached
    :param use_icc: If embedded ICC profiles should be used, defaults to
        `settings.USE_ICC_PROFILES`
    """
    resolver = PDFColorSpaceResolver(caching=caching, use_icc=use_icc)
    with open(pdf_file, "rb") as fp:
        for page in PDFPage.get_pages(
            fp,
            page_numbers,
            maxpages=maxpages,
            password=password,
            caching=caching,
        ):
            log.debug("extract_colorspaces: page %r", page.pageid)
            yield get_colorspaces(page.resources, resolver)
