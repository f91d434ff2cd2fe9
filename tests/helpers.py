from PIL import ImageCms


def build_pdf(objects):
    """Serialize numbered object bodies into a PDF with a valid xref table.

    Object 1 must be the document catalog.
    """
    out = bytearray(b"%PDF-1.7\n")
    offsets = []
    for objid, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n%s\nendobj\n" % (objid, body)
    startxref = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % startxref
    return bytes(out)


def srgb_profile_data():
    return ImageCms.ImageCmsProfile(ImageCms.createProfile("sRGB")).tobytes()
