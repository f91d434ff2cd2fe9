"""ICC profile construction and single-color transforms.

Profiles are parsed and evaluated by littleCMS through Pillow's ImageCms
binding. Every transform targets sRGB with the relative colorimetric intent.
"""

import functools
import io
import logging
import struct
from collections.abc import Sequence

from PIL import Image, ImageCms

from pdfcolorspace.cie import D50, clamp, srgb_linear
from pdfcolorspace.pdfexceptions import PDFColorValueError, PDFICCProfileError

log = logging.getLogger(__name__)

ICC_HEADER_SIZE = 128

# ICC color space signature -> (component count, Pillow image mode)
ICC_COLOR_SPACES: dict[bytes, tuple[int, str]] = {
    b"GRAY": (1, "L"),
    b"RGB ": (3, "RGB"),
    b"CMYK": (4, "CMYK"),
}

# Pillow image mode by component count
MODES_BY_NCOMPONENTS = {n: mode for (n, mode) in ICC_COLOR_SPACES.values()}

_COLOR_CACHE_SIZE = 4096


def validate_profile_header(data: bytes) -> bool:
    """Check the fixed part of an ICC profile header.

    The profile must hold at least a full header, carry the ``acsp``
    signature at bytes 36-39 and declare a size no larger than the data.
    """
    if len(data) < ICC_HEADER_SIZE:
        return False
    if data[36:40] != b"acsp":
        return False
    declared_size = int.from_bytes(data[0:4], byteorder="big")
    return declared_size <= len(data)


def profile_color_space(data: bytes) -> bytes:
    """Return the data color space signature (bytes 16-19) of a profile."""
    return bytes(data[16:20])


@functools.cache
def _srgb_profile() -> ImageCms.ImageCmsProfile:
    return ImageCms.ImageCmsProfile(ImageCms.createProfile("sRGB"))


class ICCProfile:
    """An ICC profile able to convert colors of its data color space to sRGB."""

    def __init__(self, data: bytes, profile: ImageCms.ImageCmsProfile) -> None:
        self.data = data
        self.profile = profile
        self.color_space = profile_color_space(data)
        (self.ncomponents, self.mode) = ICC_COLOR_SPACES[self.color_space]
        try:
            self._transform = ImageCms.buildTransform(
                profile,
                _srgb_profile(),
                self.mode,
                "RGB",
                renderingIntent=ImageCms.Intent.RELATIVE_COLORIMETRIC,
            )
        except ImageCms.PyCMSError as err:
            raise PDFICCProfileError(f"Cannot build transform for profile: {err}") from err
        self._convert = functools.lru_cache(maxsize=_COLOR_CACHE_SIZE)(self._convert_quantized)

    def __repr__(self) -> str:
        return (
            f"<ICCProfile: {self.color_space.decode('latin-1').strip()}, "
            f"size={len(self.data)}>"
        )

    def to_rgb(self, components: Sequence[float]) -> tuple[float, float, float]:
        if len(components) != self.ncomponents:
            raise PDFColorValueError(
                f"Profile expects {self.ncomponents} components, got {len(components)}"
            )
        quantized = tuple(round(clamp(float(c)) * 255) for c in components)
        return self._convert(quantized)

    def _convert_quantized(self, quantized: tuple[int, ...]) -> tuple[float, float, float]:
        fill: int | tuple[int, ...] = quantized[0] if self.mode == "L" else quantized
        im = Image.new(self.mode, (1, 1), fill)
        out = ImageCms.applyTransform(im, self._transform)
        assert out is not None
        (r, g, b) = out.getpixel((0, 0))[:3]
        return (r / 255.0, g / 255.0, b / 255.0)


def build_profile(data: bytes) -> ICCProfile:
    """Build an :class:`ICCProfile` from raw profile bytes.

    :raises PDFICCProfileError: if the data is not a usable ICC profile.
    """
    data = bytes(data)
    if not validate_profile_header(data):
        raise PDFICCProfileError(f"Invalid ICC profile header ({len(data)} bytes)")
    color_space = profile_color_space(data)
    if color_space not in ICC_COLOR_SPACES:
        raise PDFICCProfileError(f"Unsupported ICC data color space: {color_space!r}")
    try:
        profile = ImageCms.ImageCmsProfile(io.BytesIO(data))
    except (OSError, ImageCms.PyCMSError, TypeError, ValueError) as err:
        raise PDFICCProfileError(f"Cannot parse ICC profile: {err}") from err
    log.debug("build_profile: %r bytes, color space=%r", len(data), color_space)
    return ICCProfile(data, profile)


def s15fixed16(data: bytes) -> float:
    return struct.unpack(">i", data)[0] / 65536.0


def s15fixed16_tohex(value: float) -> bytes:
    return struct.pack(">i", int(round(value * 65536)))


def _pad4(data: bytes) -> bytes:
    return data + b"\0" * (-len(data) % 4)


def _text_description(text: str) -> bytes:
    ascii_text = text.encode("ascii") + b"\0"
    return (
        b"desc"
        + b"\0" * 4
        + struct.pack(">I", len(ascii_text))
        + ascii_text
        # empty Unicode and ScriptCode descriptions
        + struct.pack(">IIHB", 0, 0, 0, 0)
        + b"\0" * 67
    )


def _xyz(values: Sequence[float]) -> bytes:
    return b"XYZ " + b"\0" * 4 + b"".join(s15fixed16_tohex(v) for v in values)


def _curve(samples: int = 256) -> bytes:
    table = [
        int(round(srgb_linear(i / (samples - 1)) * 65535)) for i in range(samples)
    ]
    return b"curv" + b"\0" * 4 + struct.pack(f">I{samples}H", samples, *table)


def gray_profile_data() -> bytes:
    """Return an ICC v2 display profile for gray with the sRGB tone curve.

    The profile carries a D50 media white point and a sampled gray TRC,
    which is all littleCMS needs to map gray levels into the PCS.
    """
    tags = [
        (b"desc", _pad4(_text_description("sGray"))),
        (b"wtpt", _pad4(_xyz(D50))),
        (b"kTRC", _pad4(_curve())),
    ]
    offset = ICC_HEADER_SIZE + 4 + 12 * len(tags)
    directory = struct.pack(">I", len(tags))
    body = b""
    for (signature, payload) in tags:
        directory += struct.pack(">4sII", signature, offset + len(body), len(payload))
        body += payload
    size = offset + len(body)
    header = struct.pack(
        ">I4sI4s4s4s6H4s4sI4s4sQI12s4s16s28x",
        size,
        b"\0\0\0\0",
        0x02100000,
        b"mntr",
        b"GRAY",
        b"XYZ ",
        2024, 1, 1, 0, 0, 0,
        b"acsp",
        b"\0\0\0\0",
        0,
        b"\0\0\0\0",
        b"\0\0\0\0",
        0,
        0,
        b"".join(s15fixed16_tohex(v) for v in D50),
        b"\0\0\0\0",
        b"\0" * 16,
    )
    return header + directory + body


@functools.cache
def get_gray_profile() -> ICCProfile:
    """Return the process-wide sGray profile backing DeviceGray."""
    return build_profile(gray_profile_data())
