"""CIE XYZ helpers shared by the calibrated color spaces.

All conversions end in sRGB (IEC 61966-2-1), whose reference white is D65.
Tristimulus values relative to any other white point are brought to D65 with
a Bradford chromatic adaptation first.
"""

from collections.abc import Sequence

Vector = tuple[float, float, float]
Matrix3 = tuple[Vector, Vector, Vector]

D50: Vector = (0.9642, 1.0, 0.8249)
D65: Vector = (0.95047, 1.0, 1.08883)

_BRADFORD: Matrix3 = (
    (0.8951, 0.2664, -0.1614),
    (-0.7502, 1.7135, 0.0367),
    (0.0389, -0.0685, 1.0296),
)
_BRADFORD_INV: Matrix3 = (
    (0.9869929, -0.1470543, 0.1599627),
    (0.4323053, 0.5183603, 0.0492912),
    (-0.0085287, 0.0400428, 0.9684867),
)

# XYZ (D65) -> linear sRGB
_XYZ_TO_LRGB: Matrix3 = (
    (3.2404542, -1.5371385, -0.4985314),
    (-0.9692660, 1.8760108, 0.0415560),
    (0.0556434, -0.2040259, 1.0572252),
)

# Lab decoding breakpoint, (6/29)
_LAB_DELTA = 6.0 / 29.0


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def mult_vector(m: Matrix3, v: Sequence[float]) -> Vector:
    return (
        m[0][0] * v[0] + m[0][1] * v[1] + m[0][2] * v[2],
        m[1][0] * v[0] + m[1][1] * v[1] + m[1][2] * v[2],
        m[2][0] * v[0] + m[2][1] * v[1] + m[2][2] * v[2],
    )


def srgb_gamma(u: float) -> float:
    """Apply sRGB companding to a linear component."""
    if u <= 0.0031308:
        return 12.92 * u
    return 1.055 * (u ** (1.0 / 2.4)) - 0.055


def srgb_linear(v: float) -> float:
    """Inverse of :func:`srgb_gamma`."""
    if v <= 0.04045:
        return v / 12.92
    return ((v + 0.055) / 1.055) ** 2.4


def adapt_white(xyz: Sequence[float], source: Sequence[float], target: Sequence[float]) -> Vector:
    """Bradford chromatic adaptation of `xyz` from `source` to `target` white."""
    if tuple(source) == tuple(target):
        return (xyz[0], xyz[1], xyz[2])
    src = mult_vector(_BRADFORD, source)
    dst = mult_vector(_BRADFORD, target)
    cone = mult_vector(_BRADFORD, xyz)
    scaled = (
        cone[0] * dst[0] / src[0],
        cone[1] * dst[1] / src[1],
        cone[2] * dst[2] / src[2],
    )
    return mult_vector(_BRADFORD_INV, scaled)


def xyz_to_srgb(xyz: Sequence[float], white: Sequence[float] = D65) -> Vector:
    """Convert tristimulus values relative to `white` into clamped sRGB."""
    linear = mult_vector(_XYZ_TO_LRGB, adapt_white(xyz, white, D65))
    r, g, b = (clamp(srgb_gamma(max(0.0, c))) for c in linear)
    return (r, g, b)


def _lab_inverse(t: float) -> float:
    if t >= _LAB_DELTA:
        return t * t * t
    return 3.0 * _LAB_DELTA * _LAB_DELTA * (t - 4.0 / 29.0)


def lab_to_xyz(l_star: float, a_star: float, b_star: float, white: Sequence[float]) -> Vector:
    """Decode L*a*b* relative to `white` into XYZ (PDF 32000-1, 8.6.5.4)."""
    m = (l_star + 16.0) / 116.0
    l = m + a_star / 500.0  # noqa: E741
    n = m - b_star / 200.0
    return (
        white[0] * _lab_inverse(l),
        white[1] * _lab_inverse(m),
        white[2] * _lab_inverse(n),
    )
