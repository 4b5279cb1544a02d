"""Slug generation for catalog rows and heading anchors"""

import hashlib
import re


_NON_ALNUM_RE = re.compile(r'[^a-z0-9]+')


def slugify(name: str) -> str:
    """Catalog slug: lowercase, non-alphanumeric runs collapsed to '-', trimmed."""
    return _NON_ALNUM_RE.sub('-', name.lower()).strip('-')


def node_slug(name: str) -> str:
    """slugify(name), or 'section-<sha256 prefix>' for names with no ASCII letters or digits (e.g. emoji)."""
    if slug := slugify(name):
        return slug
    return f"section-{hashlib.sha256(name.strip().encode('utf-8')).hexdigest()[:12]}"


def anchor(name: str) -> str:
    """Heading anchor as used in the Contents block (e.g. 'Web & APIs' -> 'web-apis')."""
    text = name.lower()
    text = re.sub(r'[^a-z0-9\s-]', '', text)
    text = re.sub(r'\s+', '-', text)
    return text.strip('-')
