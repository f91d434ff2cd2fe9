#!/usr/bin/env python3
"""List the color spaces defined in the resources of each page"""

import logging
import sys
from argparse import ArgumentParser
from collections.abc import Container
from typing import Any, TextIO

from pdfminer.pdfpage import PDFPage

from pdfcolorspace import __version__
from pdfcolorspace.high_level import PageColorSpaces, get_colorspaces
from pdfcolorspace.pdfexceptions import PDFColorSpaceError
from pdfcolorspace.pdfresolver import PDFColorSpaceResolver

logging.basicConfig()

log = logging.getLogger(__name__)


def dumpcolors(
    outfp: TextIO,
    fname: str,
    pagenos: Container[int] | None = None,
    password: str = "",
    use_icc: bool | None = None,
    components: list[float] | None = None,
) -> None:
    resolver = PDFColorSpaceResolver(use_icc=use_icc)
    with open(fname, "rb") as fp:
        for pageno, page in enumerate(PDFPage.get_pages(fp, password=password)):
            if pagenos and pageno not in pagenos:
                continue
            dumppage(outfp, fname, pageno, get_colorspaces(page.resources, resolver), components)


def dumppage(
    outfp: TextIO,
    fname: str,
    pageno: int,
    colorspaces: PageColorSpaces,
    components: list[float] | None,
) -> None:
    for name, colorspace in colorspaces.items():
        line = f"{fname}\t{pageno + 1}\t{name}\t{colorspace!r}"
        if components is not None and colorspace is not None:
            try:
                (r, g, b) = colorspace.to_rgb(components)
                line += f"\t{r:.4f} {g:.4f} {b:.4f}"
            except PDFColorSpaceError as err:
                log.info("Cannot convert %r with %r: %s", components, colorspace, err)
                line += "\t-"
        outfp.write(line + "\n")


def create_parser() -> ArgumentParser:
    parser = ArgumentParser(description=__doc__, add_help=True)
    parser.add_argument(
        "files",
        type=str,
        default=None,
        nargs="+",
        help="One or more paths to PDF files.",
    )

    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"pdfcolorspace v{__version__}",
    )
    parser.add_argument(
        "--debug",
        "-d",
        default=False,
        action="store_true",
        help="Use debug logging level.",
    )

    parse_params = parser.add_argument_group(
        "Parser",
        description="Used during PDF parsing",
    )
    parse_params.add_argument(
        "--page-numbers",
        type=int,
        default=None,
        nargs="+",
        help="A space-seperated list of page numbers to parse.",
    )
    parse_params.add_argument(
        "--password",
        "-P",
        type=str,
        default="",
        help="The password to use for decrypting PDF file.",
    )
    parse_params.add_argument(
        "--no-icc",
        default=False,
        action="store_true",
        help="Use the alternate or device color space instead of embedded "
        "ICC profiles.",
    )

    output_params = parser.add_argument_group(
        "Output",
        description="Used during output generation.",
    )
    output_params.add_argument(
        "--outfile",
        "-o",
        type=str,
        default="-",
        help='Path to file where output is written. Or "-" (default) to '
        "write to stdout.",
    )
    output_params.add_argument(
        "--convert",
        "-c",
        type=str,
        default=None,
        help="A comma-separated list of color components to convert to RGB "
        "with every color space that takes that many components.",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args: Any = parser.parse_args(args=argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    pagenos = {x - 1 for x in args.page_numbers} if args.page_numbers else None
    components = [float(x) for x in args.convert.split(",")] if args.convert else None
    use_icc = False if args.no_icc else None

    if args.outfile == "-":
        outfp = sys.stdout
    else:
        outfp = open(args.outfile, "w", encoding="utf-8")

    try:
        for fname in args.files:
            dumpcolors(
                outfp,
                fname,
                pagenos,
                password=args.password,
                use_icc=use_icc,
                components=components,
            )
    finally:
        if outfp is not sys.stdout:
            outfp.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
