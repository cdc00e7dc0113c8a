"""
Rewrites extracted article HTML so image and link references survive being
moved out of their original page (into an EPUB, an email, ...).
"""
import logging
import re
from typing import Iterator, List, Optional, Set, Tuple
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

logger = logging.getLogger(__name__)

LAZY_IMAGE_ATTRIBUTES = ("data-src", "data-original", "data-lazy-src", "data-image")

# Keep void elements as <img ...> rather than <img .../>
FRAGMENT_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")


def resolve_url(value: str, base_url: str) -> Optional[str]:
    """
    Resolve value against base_url. Returns None when value is not a usable
    reference, in which case callers keep the original attribute.
    """
    if value is None:
        return None
    ref = value.strip()
    if not ref:
        return None

    # A colon before the first "/", "?" or "#" is only legal as a scheme delimiter
    head = re.split(r"[/?#]", ref, maxsplit=1)[0]
    if ":" in head and not _SCHEME_RE.match(ref):
        return None

    try:
        resolved = urljoin(base_url, ref)
        parts = urlsplit(resolved)
    except ValueError:
        return None
    if parts.scheme in ("http", "https") and not parts.netloc:
        return None
    return resolved


def parse_srcset(srcset: str) -> Iterator[Tuple[str, str]]:
    """Yield (url, descriptor) candidates. URLs may themselves contain commas (data: URIs)."""
    pos = 0
    length = len(srcset)
    while pos < length:
        while pos < length and (srcset[pos].isspace() or srcset[pos] == ","):
            pos += 1
        if pos >= length:
            break

        start = pos
        while pos < length and not srcset[pos].isspace():
            pos += 1
        url = srcset[start:pos]

        descriptor = ""
        if url.endswith(","):
            url = url.rstrip(",")
        else:
            start = pos
            while pos < length and srcset[pos] != ",":
                pos += 1
            descriptor = srcset[start:pos].strip()
        if url:
            yield url, descriptor


def rewrite_srcset(srcset: str, base_url: str) -> str:
    candidates = []
    for url, descriptor in parse_srcset(srcset):
        resolved = resolve_url(url, base_url) or url
        candidates.append(f"{resolved} {descriptor}" if descriptor else resolved)
    return ", ".join(candidates)


def _parse_fragment(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def _render_fragment(soup: BeautifulSoup) -> str:
    root = soup.body if soup.body is not None else soup
    return root.decode_contents(formatter=FRAGMENT_FORMATTER)


def _rewrite_attribute(tag, attr: str, base_url: str) -> Optional[str]:
    value = tag.get(attr)
    if value is None:
        return None
    resolved = resolve_url(value, base_url)
    if resolved is None:
        logger.debug(f"Leaving unresolvable {attr}={value!r} untouched")
        return None
    tag[attr] = resolved
    return resolved


def normalize_html(html: str, base_url: str) -> str:
    """
    Make every image and link reference in an article fragment absolute.

    Applied to each <img>: src, every srcset candidate (descriptors kept) and
    the known lazy-load attributes, promoting the first lazy URL into src when
    the image has none. Applied to each <a>: href. Values that cannot be
    resolved are left as they are.
    """
    soup = _parse_fragment(html)

    for img in soup.find_all("img"):
        has_src = img.get("src") is not None
        if has_src:
            _rewrite_attribute(img, "src", base_url)

        if img.get("srcset") is not None:
            img["srcset"] = rewrite_srcset(img["srcset"], base_url)

        promoted = None
        for attr in LAZY_IMAGE_ATTRIBUTES:
            resolved = _rewrite_attribute(img, attr, base_url)
            if resolved and promoted is None:
                promoted = resolved
        if not has_src and promoted:
            img["src"] = promoted

    for link in soup.find_all("a"):
        if link.get("href") is not None:
            _rewrite_attribute(link, "href", base_url)

    return _render_fragment(soup)


def _is_collectable_image(url: str) -> bool:
    if url.lower().startswith("data:"):
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def collect_image_urls(html: str, base_url: str) -> Set[str]:
    """
    Gather the distinct absolute image URLs referenced by a fragment, from src,
    srcset and the lazy-load attributes. data: URIs and unparseable values are
    dropped.
    """
    soup = _parse_fragment(html)
    candidates: List[str] = []

    for img in soup.find_all("img"):
        if img.get("src"):
            candidates.append(img["src"])
        if img.get("srcset"):
            candidates.extend(url for url, _ in parse_srcset(img["srcset"]))
        for attr in LAZY_IMAGE_ATTRIBUTES:
            if img.get(attr):
                candidates.append(img[attr])

    images = set()
    for candidate in candidates:
        if candidate.strip().lower().startswith("data:"):
            continue
        resolved = resolve_url(candidate, base_url)
        if resolved and _is_collectable_image(resolved):
            images.add(resolved)
    return images
