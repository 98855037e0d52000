# utils/url_utils.py

"""
URL helpers shared by every technique.
"""

import hashlib
import re
from typing import Iterable, List, Optional, Sequence
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

from ..core.constants import TRACKING_PARAM_PREFIXES, TRACKING_PARAMS

_JS_CALL_ARGS = re.compile(r"\(([^)]*)\)")
_QUOTED = re.compile(r"""^['"]|['"]$""")


def normalize_url(url: str, remove_params: Iterable[str] = ()) -> str:
    """
    Drop tracking parameters and a trailing slash.

    Args:
        url: Absolute URL
        remove_params: Extra query parameters to drop

    Returns:
        Normalized URL; the input unchanged when it cannot be parsed
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url

    extra = set(remove_params)
    query = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if key not in TRACKING_PARAMS
        and key not in extra
        and not key.startswith(TRACKING_PARAM_PREFIXES)
    ]
    path = parsed.path
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/")

    return urlunparse(
        (parsed.scheme, parsed.netloc, path, parsed.params, urlencode(query), "")
    )


def generate_article_id(url: str) -> str:
    """Stable 16-hex-char identifier for an article link."""
    return hashlib.sha256(normalize_url(url).encode("utf-8")).hexdigest()[:16]


def resolve_url(href: Optional[str], base_url: str) -> Optional[str]:
    """Join a possibly relative href onto the page URL."""
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith(("javascript:", "mailto:", "tel:", "#")):
        return None
    if href.startswith("//"):
        scheme = urlparse(base_url).scheme or "https"
        return f"{scheme}:{href}"
    return urljoin(base_url, href)


def extract_js_args(href: str) -> List[str]:
    """Arguments of a javascript: call, e.g. goView('12', 3) -> ['12', '3']."""
    match = _JS_CALL_ARGS.search(href)
    if not match:
        return []
    return [
        _QUOTED.sub("", part.strip())
        for part in match.group(1).split(",")
        if part.strip()
    ]


def apply_link_template(template: str, args: Sequence[str], base_url: str) -> str:
    """Fill {0}, {1}... placeholders and resolve the result against the page."""
    link = template
    for index, value in enumerate(args):
        link = link.replace(f"{{{index}}}", value)
    return urljoin(base_url, link)


def origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def same_host(url: str, other: str) -> bool:
    return urlparse(url).netloc.lower() == urlparse(other).netloc.lower()
