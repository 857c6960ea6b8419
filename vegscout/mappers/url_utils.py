from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

_TRACKING_PARAMS = frozenset({"fbclid", "gclid", "mc_cid", "mc_eid"})


def validate_url(url: str | None) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not url:
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def ensure_scheme(url: str) -> str:
    url = url.strip()
    if not urlparse(url).scheme:
        return f"https://{url.lstrip('/')}"
    return url


def normalize_url(url: str) -> str:
    """Canonical form used for visited-set membership and dedup."""
    parsed = urlparse(ensure_scheme(url))
    query = urlencode([
        (k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True)
        if not k.lower().startswith("utm_") and k.lower() not in _TRACKING_PARAMS
    ])
    path = parsed.path.rstrip("/")
    return urlunparse((
        parsed.scheme.lower(), parsed.netloc.lower(), path, parsed.params, query, "",
    ))


def scheme_variants(url: str) -> list[str]:
    """HTTPS first, then the original HTTP URL."""
    url = ensure_scheme(url)
    parsed = urlparse(url)
    if parsed.scheme == "http":
        return [urlunparse(parsed._replace(scheme="https")), url]
    return [url]


def site_root(url: str) -> str:
    parsed = urlparse(ensure_scheme(url))
    return f"{parsed.scheme}://{parsed.netloc}"


def resolve(base_url: str, href: str) -> str | None:
    """Absolute http(s) URL for ``href`` relative to ``base_url``, else None."""
    href = (href or "").strip()
    if not href or href.startswith(("#", "mailto:", "tel:", "javascript:")):
        return None
    full = urljoin(base_url, href)
    return full if validate_url(full) else None


def is_pdf_url(url: str) -> bool:
    return urlparse(url).path.lower().endswith(".pdf")
