"""Resolution of PDF color space descriptors into :class:`PDFColorSpace`.

A descriptor is either a name (``/DeviceRGB``, or a key of the ``ColorSpace``
resource dictionary) or an array whose first element names the color space
family, e.g. ``[/Indexed /DeviceRGB 255 <...>]``.
"""

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from pdfminer.pdftypes import PDFStream, resolve1
from pdfminer.psparser import PSLiteral, literal_name

from pdfcolorspace import settings
from pdfcolorspace.iccprofile import (
    ICC_COLOR_SPACES,
    MODES_BY_NCOMPONENTS,
    ICCProfile,
    build_profile,
    profile_color_space,
    validate_profile_header,
)
from pdfcolorspace.pdfcolor import (
    PREDEFINED_COLORSPACE,
    AlternateSpace,
    CalGraySpace,
    CalRGBSpace,
    DeviceSpaceKind,
    ICCBasedSpace,
    IndexedSpace,
    LabSpace,
    PatternSpace,
    PDFColorSpace,
    get_device_space,
)
from pdfcolorspace.pdfexceptions import (
    PDFColorSpaceSyntaxError,
    PDFFunctionError,
    PDFICCProfileError,
)
from pdfcolorspace.pdffunction import PDFFunction, build_function

log = logging.getLogger(__name__)

FunctionFactory = Callable[[object], PDFFunction]
ProfileFactory = Callable[[bytes], ICCProfile]

DEVICE_SPACE_BY_NCOMPONENTS = {
    1: DeviceSpaceKind.GRAY,
    3: DeviceSpaceKind.RGB,
    4: DeviceSpaceKind.CMYK,
}


class ResolutionCache:
    """Resolved color spaces keyed by the identity of their descriptor.

    Each entry keeps a reference to its descriptor, so the id of a live
    entry is never handed out to another object. The lock is held while an
    entry is being built; it is reentrant because building an entry resolves
    its nested descriptors through the same cache.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._entries: dict[int, tuple[object, PDFColorSpace]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None

    def get(self, key: object) -> PDFColorSpace | None:
        entry = self._entries.get(id(key))
        if entry is None or entry[0] is not key:
            return None
        return entry[1]

    def put(self, key: object, colorspace: PDFColorSpace) -> None:
        self._entries[id(key)] = (key, colorspace)

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()


class PDFColorSpaceResolver:
    """Turns color space descriptors into color spaces.

    A resolver belongs to one document: its cache holds on to the
    descriptors it has seen for as long as the resolver lives.
    """

    def __init__(
        self,
        caching: bool = True,
        function_factory: FunctionFactory = build_function,
        profile_factory: ProfileFactory = build_profile,
        use_icc: bool | None = None,
    ) -> None:
        self.caching = caching
        self.cache = ResolutionCache()
        self.function_factory = function_factory
        self.profile_factory = profile_factory
        self.use_icc = settings.USE_ICC_PROFILES if use_icc is None else use_icc

    def resolve(
        self,
        spec: object,
        resources: Mapping[str, Any] | None = None,
    ) -> PDFColorSpace | None:
        """Resolve a color space descriptor.

        :param spec: a name or an array, possibly an indirect reference.
        :param resources: the resource dictionary used to look up names
            that are not device color spaces.
        :return: the color space, or None when the descriptor names a
            color space that cannot be found.
        :raises PDFColorSpaceSyntaxError: if the descriptor is malformed.
        """
        return self._resolve(spec, resources, 0)

    def _resolve(
        self,
        spec: object,
        resources: Mapping[str, Any] | None,
        depth: int,
    ) -> PDFColorSpace | None:
        if depth > settings.MAX_COLORSPACE_DEPTH:
            raise PDFColorSpaceSyntaxError(
                f"Color space nesting deeper than {settings.MAX_COLORSPACE_DEPTH}: {spec!r}"
            )
        spec = resolve1(spec)
        if isinstance(spec, PSLiteral):
            name = literal_name(spec)
            if name in PREDEFINED_COLORSPACE:
                return PREDEFINED_COLORSPACE[name]
            return self._lookup(name, resources, depth)
        if spec is None:
            return None
        if not isinstance(spec, list):
            raise PDFColorSpaceSyntaxError(f"Invalid color space: {spec!r}")
        if not self.caching:
            return self._build(spec, resources, depth)
        with self.cache.lock:
            colorspace = self.cache.get(spec)
            if colorspace is not None:
                log.debug("resolve: cached: %r", colorspace)
                return colorspace
            colorspace = self._build(spec, resources, depth)
            if colorspace is not None and not isinstance(colorspace, PatternSpace):
                self.cache.put(spec, colorspace)
            return colorspace

    def _lookup(
        self,
        name: str,
        resources: Mapping[str, Any] | None,
        depth: int,
    ) -> PDFColorSpace | None:
        resources = resolve1(resources)
        if not isinstance(resources, Mapping):
            log.debug("Undefined ColorSpace (no resources): %r", name)
            return None
        csmap = resolve1(resources.get("ColorSpace"))
        if not isinstance(csmap, Mapping) or name not in csmap:
            log.debug("Undefined ColorSpace: %r", name)
            return None
        return self._resolve(csmap[name], resources, depth + 1)

    def _build(
        self,
        spec: list[Any],
        resources: Mapping[str, Any] | None,
        depth: int,
    ) -> PDFColorSpace | None:
        if not spec:
            raise PDFColorSpaceSyntaxError("Empty color space array")
        tag = resolve1(spec[0])
        if not isinstance(tag, PSLiteral):
            raise PDFColorSpaceSyntaxError(f"Color space family is not a name: {tag!r}")
        family = literal_name(tag)
        log.debug("resolve: create: family=%r, spec=%r", family, spec)

        if family == "CalGray":
            return CalGraySpace.from_dict(self._get_dict(spec, family))
        elif family == "CalRGB":
            return CalRGBSpace.from_dict(self._get_dict(spec, family))
        elif family == "Lab":
            return LabSpace.from_dict(self._get_dict(spec, family))
        elif family == "ICCBased":
            return self._build_iccbased(spec, resources, depth)
        elif family in ("Separation", "DeviceN"):
            return self._build_alternate(family, spec, resources, depth)
        elif family in ("Indexed", "I"):
            return self._build_indexed(spec, resources, depth)
        elif family == "Pattern":
            if len(spec) == 1:
                return get_device_space(DeviceSpaceKind.PATTERN)
            return PatternSpace(self._resolve(spec[1], resources, depth + 1))
        first = spec[1] if len(spec) > 1 else None
        raise PDFColorSpaceSyntaxError(f"Unknown color space: {family!r} {first!r}")

    @staticmethod
    def _get_dict(spec: list[Any], family: str) -> Mapping[str, Any]:
        params = resolve1(spec[1]) if len(spec) > 1 else None
        if not isinstance(params, Mapping):
            raise PDFColorSpaceSyntaxError(f"{family} needs a dictionary: {spec!r}")
        return params

    def _build_iccbased(
        self,
        spec: list[Any],
        resources: Mapping[str, Any] | None,
        depth: int,
    ) -> PDFColorSpace:
        stream = resolve1(spec[1]) if len(spec) > 1 else None
        if not isinstance(stream, PDFStream):
            raise PDFColorSpaceSyntaxError(f"ICCBased needs a stream: {spec!r}")
        n = resolve1(stream.get("N"))
        if n is None:
            data = stream.get_data() or b""
            if not validate_profile_header(data):
                raise PDFICCProfileError("ICCBased stream has no /N and no valid profile")
            signature = profile_color_space(data)
            if signature not in ICC_COLOR_SPACES:
                raise PDFICCProfileError(f"Unsupported ICC data color space: {signature!r}")
            n = ICC_COLOR_SPACES[signature][0]
            log.warning("ICCBased stream has no /N, using %d from the profile", n)
        if not isinstance(n, int) or isinstance(n, bool) or n < 1:
            raise PDFColorSpaceSyntaxError(f"Invalid ICCBased /N: {n!r}")

        if not self.use_icc or n not in MODES_BY_NCOMPONENTS:
            return self._icc_fallback(n, stream.get("Alternate"), resources, depth)
        profile = self.profile_factory(stream.get_data() or b"")
        if profile.ncomponents != n:
            raise PDFICCProfileError(
                f"ICC profile has {profile.ncomponents} components, /N is {n}"
            )
        return ICCBasedSpace(profile, self._get_ranges(stream.get("Range"), n))

    def _icc_fallback(
        self,
        n: int,
        alternate: object,
        resources: Mapping[str, Any] | None,
        depth: int,
    ) -> PDFColorSpace:
        if alternate is not None:
            colorspace = self._resolve(alternate, resources, depth + 1)
            if colorspace is not None and colorspace.ncomponents == n:
                return colorspace
            log.warning("Ignoring unusable ICCBased /Alternate: %r", alternate)
        if n not in DEVICE_SPACE_BY_NCOMPONENTS:
            raise PDFColorSpaceSyntaxError(f"No device color space with {n} components")
        return get_device_space(DEVICE_SPACE_BY_NCOMPONENTS[n])

    @staticmethod
    def _get_ranges(obj: object, n: int) -> list[tuple[float, float]] | None:
        values = resolve1(obj)
        if values is None:
            return None
        if (
            isinstance(values, list)
            and len(values) == 2 * n
            and all(isinstance(resolve1(v), (int, float)) for v in values)
        ):
            numbers = [float(resolve1(v)) for v in values]
            return list(zip(numbers[0::2], numbers[1::2]))
        if settings.STRICT:
            raise PDFColorSpaceSyntaxError(f"Invalid ICCBased /Range: {values!r}")
        log.warning("Ignoring invalid ICCBased /Range: %r", values)
        return None

    def _build_alternate(
        self,
        family: str,
        spec: list[Any],
        resources: Mapping[str, Any] | None,
        depth: int,
    ) -> PDFColorSpace:
        if len(spec) < 4:
            raise PDFColorSpaceSyntaxError(f"{family} needs 3 operands: {spec!r}")
        names = resolve1(spec[1])
        if family == "Separation":
            if not isinstance(names, PSLiteral):
                raise PDFColorSpaceSyntaxError(f"Invalid Separation colorant: {names!r}")
            colorants = [literal_name(names)]
        else:
            if not isinstance(names, list) or not names:
                raise PDFColorSpaceSyntaxError(f"Invalid DeviceN colorants: {names!r}")
            colorants = [literal_name(resolve1(c)) for c in names]
        base = self._resolve(spec[2], resources, depth + 1)
        if base is None:
            raise PDFColorSpaceSyntaxError(
                f"Cannot resolve alternate space of {family}: {spec[2]!r}"
            )
        function = self.function_factory(spec[3])
        if function.ninputs != len(colorants):
            raise PDFFunctionError(
                f"{family} tint transform takes {function.ninputs} inputs, "
                f"expected {len(colorants)}"
            )
        if function.noutputs is not None and function.noutputs < base.ncomponents:
            raise PDFFunctionError(
                f"{family} tint transform has {function.noutputs} outputs, "
                f"{base.name} needs {base.ncomponents}"
            )
        return AlternateSpace(family, colorants, base, function)

    def _build_indexed(
        self,
        spec: list[Any],
        resources: Mapping[str, Any] | None,
        depth: int,
    ) -> PDFColorSpace | None:
        if len(spec) < 4:
            raise PDFColorSpaceSyntaxError(f"Indexed needs 3 operands: {spec!r}")
        base = self._resolve(spec[1], resources, depth + 1)
        if base is None:
            log.debug("Indexed base color space not found: %r", spec[1])
            return None
        hival = resolve1(spec[2])
        if isinstance(hival, float) and hival.is_integer():
            hival = int(hival)
        if not isinstance(hival, int) or isinstance(hival, bool):
            raise PDFColorSpaceSyntaxError(f"Invalid Indexed hival: {hival!r}")
        lookup = resolve1(spec[3])
        if isinstance(lookup, PDFStream):
            lookup = lookup.get_data() or b""
        if not isinstance(lookup, (bytes, bytearray)):
            raise PDFColorSpaceSyntaxError(f"Invalid Indexed lookup table: {lookup!r}")
        return IndexedSpace(base, hival, bytes(lookup))


def resolve(
    spec: object,
    resources: Mapping[str, Any] | None = None,
    resolver: PDFColorSpaceResolver | None = None,
) -> PDFColorSpace | None:
    """Resolve a color space descriptor.

    Without a `resolver`, a fresh one is used, so nothing is shared between
    calls except the device color spaces.
    """
    if resolver is None:
        resolver = PDFColorSpaceResolver()
    return resolver.resolve(spec, resources)
