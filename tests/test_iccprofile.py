import pytest

from pdfcolorspace.cie import D50
from pdfcolorspace.iccprofile import (
    ICC_HEADER_SIZE,
    ICCProfile,
    build_profile,
    get_gray_profile,
    gray_profile_data,
    profile_color_space,
    s15fixed16,
    s15fixed16_tohex,
    validate_profile_header,
)
from pdfcolorspace.pdfexceptions import (
    PDFColorSpaceSyntaxError,
    PDFColorValueError,
    PDFICCProfileError,
)
from tests.helpers import srgb_profile_data


def test_validate_profile_header():
    data = srgb_profile_data()
    assert validate_profile_header(data)
    assert not validate_profile_header(data[:ICC_HEADER_SIZE - 1])
    assert not validate_profile_header(b"\0" * 200)
    # declared size larger than the data
    assert not validate_profile_header(data[: len(data) - 1])


def test_gray_profile_data_header():
    data = gray_profile_data()
    assert validate_profile_header(data)
    assert profile_color_space(data) == b"GRAY"
    assert int.from_bytes(data[0:4], "big") == len(data)
    assert len(data) % 4 == 0


@pytest.mark.parametrize("value", [0.0, 1.0, -0.5, 0.9642, 0.8249])
def test_s15fixed16(value):
    data = s15fixed16_tohex(value)
    assert len(data) == 4
    assert s15fixed16(data) == pytest.approx(value, abs=1 / 65536)


def test_gray_profile_white_point():
    data = gray_profile_data()
    assert [s15fixed16(data[i : i + 4]) for i in (68, 72, 76)] == pytest.approx(
        list(D50), abs=1 / 65536
    )
    ntags = int.from_bytes(data[128:132], "big")
    tags = {}
    for i in range(ntags):
        entry = data[132 + 12 * i : 144 + 12 * i]
        offset = int.from_bytes(entry[4:8], "big")
        tags[entry[:4]] = data[offset : offset + int.from_bytes(entry[8:12], "big")]
    assert set(tags) == {b"desc", b"wtpt", b"kTRC"}
    wtpt = tags[b"wtpt"]
    assert wtpt[:4] == b"XYZ "
    assert [s15fixed16(wtpt[i : i + 4]) for i in (8, 12, 16)] == pytest.approx(
        list(D50), abs=1 / 65536
    )


def test_gray_profile():
    profile = get_gray_profile()
    assert isinstance(profile, ICCProfile)
    assert profile is get_gray_profile()
    assert profile.ncomponents == 1
    assert profile.to_rgb([0.0]) == pytest.approx((0.0, 0.0, 0.0), abs=0.01)
    assert profile.to_rgb([1.0]) == pytest.approx((1.0, 1.0, 1.0), abs=0.01)
    assert profile.to_rgb([0.5]) == pytest.approx((0.5, 0.5, 0.5), abs=0.02)


def test_srgb_profile():
    profile = build_profile(srgb_profile_data())
    assert profile.color_space == b"RGB "
    assert profile.ncomponents == 3
    assert profile.to_rgb([1.0, 0.0, 0.0]) == pytest.approx((1.0, 0.0, 0.0), abs=0.01)
    assert profile.to_rgb([0.2, 0.4, 0.6]) == pytest.approx((0.2, 0.4, 0.6), abs=0.01)


def test_to_rgb_clamps_input():
    profile = build_profile(srgb_profile_data())
    assert profile.to_rgb([2.0, -1.0, 0.0]) == profile.to_rgb([1.0, 0.0, 0.0])


def test_to_rgb_wrong_component_count():
    profile = build_profile(srgb_profile_data())
    with pytest.raises(PDFColorValueError):
        profile.to_rgb([0.5])


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"not a profile",
        b"\0" * 256,
    ],
)
def test_build_profile_rejects_garbage(data):
    with pytest.raises(PDFICCProfileError):
        build_profile(data)


def test_build_profile_rejects_unsupported_color_space():
    data = bytearray(srgb_profile_data())
    data[16:20] = b"Lab "
    with pytest.raises(PDFICCProfileError, match="Unsupported"):
        build_profile(bytes(data))


def test_profile_error_is_syntax_error():
    with pytest.raises(PDFColorSpaceSyntaxError):
        build_profile(b"garbage")
