from urllib.parse import quote

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# characters browsers leave unescaped in encodeURIComponent
_SAFE = "-_.!~*'()"


def form_encode(data) -> str:
    """Encode a mapping (or sequence of pairs) as an x-www-form-urlencoded body.

    Field order is preserved. Keys and values are percent-escaped; a space
    becomes ``%20``.
    """
    items = data.items() if hasattr(data, "items") else data
    return "&".join(f"{quote(str(k), safe=_SAFE)}={quote(str(v), safe=_SAFE)}" for k, v in items)
