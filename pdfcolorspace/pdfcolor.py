import logging
import math
import threading
from collections.abc import Iterator, Mapping, Sequence
from enum import Enum
from typing import Any

from pdfminer.pdftypes import resolve1

from pdfcolorspace import settings
from pdfcolorspace.cie import D50, clamp, lab_to_xyz, xyz_to_srgb
from pdfcolorspace.iccprofile import ICCProfile, get_gray_profile
from pdfcolorspace.pdfexceptions import (
    PDFColorSpaceError,
    PDFColorSpaceSyntaxError,
    PDFColorValueError,
)
from pdfcolorspace.pdffunction import PDFFunction, interpolate

log = logging.getLogger(__name__)

RGBColor = tuple[float, float, float]
ComponentRange = tuple[float, float]


class PDFColorSpace:
    """A resolved color space that converts its components to sRGB.

    Subclasses implement :meth:`_to_rgb`; :meth:`to_rgb` checks the number
    of components first. Instances are not modified after construction.
    """

    def __init__(self, name: str, ncomponents: int) -> None:
        self.name = name
        self.ncomponents = ncomponents

    def __repr__(self) -> str:
        return f"<PDFColorSpace: {self.name}, ncomponents={self.ncomponents}>"

    def get_component_ranges(self) -> list[ComponentRange]:
        """Return the (min, max) range of each component."""
        return [(0.0, 1.0)] * self.ncomponents

    def to_rgb(self, components: Sequence[float]) -> RGBColor:
        if len(components) != self.ncomponents:
            raise PDFColorValueError(
                f"{self.name} expects {self.ncomponents} components, "
                f"got {len(components)}: {components!r}"
            )
        (r, g, b) = self._to_rgb([float(c) for c in components])
        return (clamp(r), clamp(g), clamp(b))

    def _to_rgb(self, components: list[float]) -> RGBColor:
        raise NotImplementedError


class DeviceGraySpace(PDFColorSpace):
    def __init__(self, profile: ICCProfile) -> None:
        super().__init__("DeviceGray", 1)
        self.profile = profile

    def _to_rgb(self, components: list[float]) -> RGBColor:
        return self.profile.to_rgb(components)


class DeviceRGBSpace(PDFColorSpace):
    """sRGB, which is also the output space of every conversion."""

    def __init__(self) -> None:
        super().__init__("DeviceRGB", 3)

    def _to_rgb(self, components: list[float]) -> RGBColor:
        (r, g, b) = components
        return (r, g, b)


class DeviceCMYKSpace(PDFColorSpace):
    def __init__(self) -> None:
        super().__init__("DeviceCMYK", 4)

    def _to_rgb(self, components: list[float]) -> RGBColor:
        (c, m, y, k) = (clamp(v) for v in components)
        return (
            1.0 - min(1.0, c + k),
            1.0 - min(1.0, m + k),
            1.0 - min(1.0, y + k),
        )


def _numbers(
    spec: Mapping[str, Any],
    key: str,
    count: int,
    default: Sequence[float] | None,
) -> list[float] | None:
    """Read an array of `count` numbers from a calibration dictionary.

    A single number is accepted where `count` is 1. Malformed entries raise
    in strict mode and fall back to `default` otherwise.
    """
    value = resolve1(spec.get(key))
    if value is None:
        return list(default) if default is not None else None
    if count == 1 and not isinstance(value, list):
        value = [value]
    if (
        isinstance(value, list)
        and len(value) == count
        and all(isinstance(resolve1(v), (int, float)) for v in value)
    ):
        return [float(resolve1(v)) for v in value]
    if settings.STRICT:
        raise PDFColorSpaceSyntaxError(f"Invalid /{key}: {value!r}")
    log.warning("Ignoring invalid /%s in color space dictionary: %r", key, value)
    return list(default) if default is not None else None


def _white_point(spec: Mapping[str, Any]) -> list[float]:
    white = _numbers(spec, "WhitePoint", 3, None)
    if white is None or white[0] <= 0 or white[1] <= 0 or white[2] <= 0:
        if settings.STRICT:
            raise PDFColorSpaceSyntaxError(f"Missing or invalid /WhitePoint: {spec!r}")
        log.warning("Color space has no usable /WhitePoint, assuming D50")
        return list(D50)
    return white


def _gamma(spec: Mapping[str, Any], count: int) -> list[float]:
    default = [1.0] * count
    gamma = _numbers(spec, "Gamma", count, default)
    assert gamma is not None
    if all(g > 0 for g in gamma):
        return gamma
    if settings.STRICT:
        raise PDFColorSpaceSyntaxError(f"/Gamma must be positive: {gamma!r}")
    log.warning("Ignoring non-positive /Gamma in color space dictionary: %r", gamma)
    return default


class CalGraySpace(PDFColorSpace):
    def __init__(
        self,
        white_point: Sequence[float],
        black_point: Sequence[float] = (0.0, 0.0, 0.0),
        gamma: float = 1.0,
    ) -> None:
        super().__init__("CalGray", 1)
        self.white_point = tuple(white_point)
        self.black_point = tuple(black_point)
        self.gamma = gamma

    @classmethod
    def from_dict(cls, spec: Mapping[str, Any]) -> "CalGraySpace":
        return cls(
            _white_point(spec),
            _numbers(spec, "BlackPoint", 3, [0.0, 0.0, 0.0]) or (0.0, 0.0, 0.0),
            _gamma(spec, 1)[0],
        )

    def _to_rgb(self, components: list[float]) -> RGBColor:
        ag = clamp(components[0]) ** self.gamma
        (xw, yw, zw) = self.white_point
        return xyz_to_srgb((xw * ag, yw * ag, zw * ag), self.white_point)


class CalRGBSpace(PDFColorSpace):
    IDENTITY = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0)

    def __init__(
        self,
        white_point: Sequence[float],
        black_point: Sequence[float] = (0.0, 0.0, 0.0),
        gamma: Sequence[float] = (1.0, 1.0, 1.0),
        matrix: Sequence[float] = IDENTITY,
    ) -> None:
        super().__init__("CalRGB", 3)
        self.white_point = tuple(white_point)
        self.black_point = tuple(black_point)
        self.gamma = tuple(gamma)
        self.matrix = tuple(matrix)

    @classmethod
    def from_dict(cls, spec: Mapping[str, Any]) -> "CalRGBSpace":
        return cls(
            _white_point(spec),
            _numbers(spec, "BlackPoint", 3, [0.0, 0.0, 0.0]) or (0.0, 0.0, 0.0),
            _gamma(spec, 3),
            _numbers(spec, "Matrix", 9, cls.IDENTITY) or cls.IDENTITY,
        )

    def _to_rgb(self, components: list[float]) -> RGBColor:
        (a, b, c) = (clamp(v) ** g for (v, g) in zip(components, self.gamma))
        m = self.matrix
        xyz = (
            m[0] * a + m[3] * b + m[6] * c,
            m[1] * a + m[4] * b + m[7] * c,
            m[2] * a + m[5] * b + m[8] * c,
        )
        return xyz_to_srgb(xyz, self.white_point)


class LabSpace(PDFColorSpace):
    DEFAULT_RANGE = (-100.0, 100.0, -100.0, 100.0)

    def __init__(
        self,
        white_point: Sequence[float],
        black_point: Sequence[float] = (0.0, 0.0, 0.0),
        range_: Sequence[float] = DEFAULT_RANGE,
    ) -> None:
        super().__init__("Lab", 3)
        self.white_point = tuple(white_point)
        self.black_point = tuple(black_point)
        self.range = tuple(range_)

    @classmethod
    def from_dict(cls, spec: Mapping[str, Any]) -> "LabSpace":
        return cls(
            _white_point(spec),
            _numbers(spec, "BlackPoint", 3, [0.0, 0.0, 0.0]) or (0.0, 0.0, 0.0),
            _numbers(spec, "Range", 4, cls.DEFAULT_RANGE) or cls.DEFAULT_RANGE,
        )

    def get_component_ranges(self) -> list[ComponentRange]:
        (amin, amax, bmin, bmax) = self.range
        return [(0.0, 100.0), (amin, amax), (bmin, bmax)]

    def _to_rgb(self, components: list[float]) -> RGBColor:
        (l_star, a_star, b_star) = (
            clamp(v, low, high)
            for (v, (low, high)) in zip(components, self.get_component_ranges())
        )
        return xyz_to_srgb(lab_to_xyz(l_star, a_star, b_star, self.white_point), self.white_point)


class ICCBasedSpace(PDFColorSpace):
    def __init__(
        self,
        profile: ICCProfile,
        ranges: Sequence[ComponentRange] | None = None,
    ) -> None:
        super().__init__("ICCBased", profile.ncomponents)
        self.profile = profile
        self.ranges = list(ranges) if ranges else [(0.0, 1.0)] * self.ncomponents

    def get_component_ranges(self) -> list[ComponentRange]:
        return list(self.ranges)

    def _to_rgb(self, components: list[float]) -> RGBColor:
        normalized = [
            interpolate(v, low, high, 0.0, 1.0)
            for (v, (low, high)) in zip(components, self.ranges)
        ]
        return self.profile.to_rgb(normalized)


class IndexedSpace(PDFColorSpace):
    """A palette of `hival + 1` colors of a base color space."""

    def __init__(self, base: PDFColorSpace, hival: int, lookup: bytes) -> None:
        super().__init__("Indexed", 1)
        if hival < 0:
            raise PDFColorSpaceSyntaxError(f"Invalid Indexed hival: {hival}")
        if hival > 255:
            log.warning("Indexed hival %d exceeds 255", hival)
        size = (hival + 1) * base.ncomponents
        if len(lookup) < size:
            raise PDFColorSpaceSyntaxError(
                f"Indexed lookup table too short: {len(lookup)} < {size}"
            )
        self.base = base
        self.hival = hival
        self.lookup = bytes(lookup[:size])

    def __repr__(self) -> str:
        return f"<PDFColorSpace: Indexed, base={self.base!r}, hival={self.hival}>"

    def get_palette_entry(self, index: int) -> list[float]:
        """Return the base space components stored at `index`."""
        if not 0 <= index <= self.hival:
            raise PDFColorValueError(f"Index {index} outside palette 0..{self.hival}")
        n = self.base.ncomponents
        entry = self.lookup[index * n : (index + 1) * n]
        return [
            interpolate(v, 0.0, 255.0, low, high)
            for (v, (low, high)) in zip(entry, self.base.get_component_ranges())
        ]

    def _to_rgb(self, components: list[float]) -> RGBColor:
        index = components[0]
        if not math.isfinite(index):
            raise PDFColorValueError(f"Index {index} outside palette 0..{self.hival}")
        return self.base.to_rgb(self.get_palette_entry(int(round(index))))


class AlternateSpace(PDFColorSpace):
    """A Separation or DeviceN space rendered through its alternate space."""

    def __init__(
        self,
        name: str,
        colorants: Sequence[str],
        base: PDFColorSpace,
        function: PDFFunction,
    ) -> None:
        if not colorants:
            raise PDFColorSpaceSyntaxError(f"{name} color space has no colorants")
        super().__init__(name, len(colorants))
        self.colorants = list(colorants)
        self.base = base
        self.function = function

    def __repr__(self) -> str:
        return (
            f"<PDFColorSpace: {self.name}, colorants={self.colorants!r}, "
            f"base={self.base!r}>"
        )

    def _to_rgb(self, components: list[float]) -> RGBColor:
        outputs = self.function(components)
        if len(outputs) < self.base.ncomponents:
            raise PDFColorValueError(
                f"Tint transform returned {len(outputs)} values, "
                f"{self.base.name} needs {self.base.ncomponents}"
            )
        return self.base.to_rgb(outputs[: self.base.ncomponents])


class PatternSpace(PDFColorSpace):
    """The Pattern space, optionally with an underlying space.

    Patterns are painted elsewhere; only the color of an uncolored pattern,
    expressed in the underlying space, converts to RGB here.
    """

    def __init__(self, base: PDFColorSpace | None = None) -> None:
        super().__init__("Pattern", base.ncomponents if base is not None else 1)
        self.base = base

    def __repr__(self) -> str:
        return f"<PDFColorSpace: Pattern, base={self.base!r}>"

    def _to_rgb(self, components: list[float]) -> RGBColor:
        if self.base is None:
            raise PDFColorValueError("Pattern space has no underlying color space")
        return self.base.to_rgb(components)


class DeviceSpaceKind(Enum):
    GRAY = "DeviceGray"
    RGB = "DeviceRGB"
    CMYK = "DeviceCMYK"
    PATTERN = "Pattern"


_DEVICE_FACTORIES = {
    DeviceSpaceKind.GRAY: lambda: DeviceGraySpace(get_gray_profile()),
    DeviceSpaceKind.RGB: DeviceRGBSpace,
    DeviceSpaceKind.CMYK: DeviceCMYKSpace,
    DeviceSpaceKind.PATTERN: PatternSpace,
}
_device_spaces: dict[DeviceSpaceKind, PDFColorSpace] = {}
_device_lock = threading.Lock()


def get_device_space(kind: DeviceSpaceKind | str) -> PDFColorSpace:
    """Return the process-wide singleton for a device color space.

    :param kind: a :class:`DeviceSpaceKind` or its value, e.g. "DeviceRGB".
    :raises PDFColorValueError: if `kind` is not a device space.
    :raises PDFColorSpaceError: if the space cannot be initialized.
    """
    try:
        kind = DeviceSpaceKind(kind)
    except (ValueError, TypeError):
        raise PDFColorValueError(f"Unknown device color space: {kind!r}") from None
    space = _device_spaces.get(kind)
    if space is None:
        with _device_lock:
            space = _device_spaces.get(kind)
            if space is None:
                log.debug("get_device_space: create: %s", kind.value)
                try:
                    space = _DEVICE_FACTORIES[kind]()
                except PDFColorSpaceError:
                    raise
                except Exception as err:
                    raise PDFColorSpaceError(
                        f"Cannot initialize {kind.value} color space: {err!r}"
                    ) from err
                _device_spaces[kind] = space
    return space


class _PredefinedColorSpaces(Mapping[str, PDFColorSpace]):
    """Device color spaces by name, including inline image abbreviations."""

    NAMES = {
        "DeviceGray": DeviceSpaceKind.GRAY,
        "G": DeviceSpaceKind.GRAY,
        "DeviceRGB": DeviceSpaceKind.RGB,
        "RGB": DeviceSpaceKind.RGB,
        "DeviceCMYK": DeviceSpaceKind.CMYK,
        "CMYK": DeviceSpaceKind.CMYK,
        "Pattern": DeviceSpaceKind.PATTERN,
    }

    def __getitem__(self, name: str) -> PDFColorSpace:
        return get_device_space(self.NAMES[name])

    def __iter__(self) -> Iterator[str]:
        return iter(self.NAMES)

    def __len__(self) -> int:
        return len(self.NAMES)


PREDEFINED_COLORSPACE: Mapping[str, PDFColorSpace] = _PredefinedColorSpaces()
