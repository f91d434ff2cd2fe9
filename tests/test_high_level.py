import pytest
from pdfminer.psparser import LIT

from pdfcolorspace.high_level import extract_colorspaces, get_colorspaces
from pdfcolorspace.pdfcolor import AlternateSpace, IndexedSpace, get_device_space
from pdfcolorspace.pdfresolver import PDFColorSpaceResolver
from tests.helpers import build_pdf

SEPARATION = (
    b"[/Separation /Spot /DeviceRGB"
    b" << /FunctionType 2 /Domain [0 1] /C0 [1 1 1] /C1 [1 0 0] /N 1 >>]"
)

OBJECTS = [
    b"<< /Type /Catalog /Pages 2 0 R >>",
    b"<< /Type /Pages /Kids [3 0 R 4 0 R] /Count 2 >>",
    b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 100 100]"
    b" /Resources << /ColorSpace << /CS0 5 0 R"
    b" /CS1 [/Indexed /DeviceRGB 1 <FF00000000FF>] /CS2 /Missing >> >> >>",
    b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 100 100]"
    b" /Resources << /ColorSpace << /CS0 5 0 R /CS3 /DeviceCMYK >> >> >>",
    SEPARATION,
]


@pytest.fixture
def pdf_path(tmp_path):
    path = tmp_path / "colors.pdf"
    path.write_bytes(build_pdf(OBJECTS))
    return str(path)


def test_extract_colorspaces(pdf_path):
    pages = list(extract_colorspaces(pdf_path))
    assert len(pages) == 2
    (first, second) = pages
    assert sorted(first) == ["CS0", "CS1", "CS2"]
    assert isinstance(first["CS0"], AlternateSpace)
    assert first["CS0"].to_rgb([1]) == (1.0, 0.0, 0.0)
    assert isinstance(first["CS1"], IndexedSpace)
    assert first["CS1"].to_rgb([1]) == (0.0, 0.0, 1.0)
    assert first["CS2"] is None
    assert second["CS3"] is get_device_space("DeviceCMYK")


def test_shared_colorspace_resolved_once(pdf_path):
    (first, second) = extract_colorspaces(pdf_path)
    assert first["CS0"] is second["CS0"]


def test_page_numbers(pdf_path):
    pages = list(extract_colorspaces(pdf_path, page_numbers=[1]))
    assert len(pages) == 1
    assert sorted(pages[0]) == ["CS0", "CS3"]


def test_get_colorspaces():
    resolver = PDFColorSpaceResolver()
    resources = {
        "ColorSpace": {
            "A": LIT("DeviceGray"),
            "B": [LIT("Pattern"), LIT("A")],
            "C": LIT("Nowhere"),
        }
    }
    colorspaces = get_colorspaces(resources, resolver)
    assert colorspaces["A"] is get_device_space("DeviceGray")
    assert colorspaces["B"].base is get_device_space("DeviceGray")
    assert colorspaces["C"] is None


@pytest.mark.parametrize("resources", [None, {}, {"ColorSpace": 1}, "x"])
def test_get_colorspaces_without_colorspaces(resources):
    assert get_colorspaces(resources) == {}
