STRICT = False
USE_ICC_PROFILES = True
MAX_COLORSPACE_DEPTH = 32

try:
    from django.conf import settings

    STRICT = getattr(settings, "PDF_COLORSPACE_IS_STRICT", STRICT)
    USE_ICC_PROFILES = getattr(settings, "PDF_COLORSPACE_USE_ICC", USE_ICC_PROFILES)
except Exception:
    # in case it's not a django project
    pass
