from __future__ import annotations

import re

from newsagent.utils import collapse_whitespace

# Phrases that mark a whole paragraph as page chrome wherever they appear.
GARBAGE_PHRASES = (
    "advertisement",
    "copyright",
    "all rights reserved",
    "powered by",
    "developed by",
    "designed by",
    "contact us",
    "about us",
    "privacy policy",
    "terms of service",
    "subscribe to our",
    "follow us on",
    "share this",
    "loading...",
    "cookie",
    "this site uses",
    "javascript must be enabled",
)

_STRONG_NON_CONTENT_RE = re.compile(
    r"\b(advertisement|sponsored|subscribe|sign up|copyright|all rights reserved|"
    r"share this|follow us|tags:|tagged)",
    re.IGNORECASE,
)

# Words that only mark navigation when the paragraph is short enough to be a label.
_WEAK_NON_CONTENT_RE = re.compile(
    r"\b(ads?|related|more|similar|tweet|facebook|comments?|previous|next|back|menu|navigation)\b",
    re.IGNORECASE,
)
NAV_LABEL_MAX_CHARS = 80

NON_CONTENT_CLASSES = ("ad", "advertisement", "nav", "menu", "sidebar", "footer", "header", "share", "social")

AD_IMAGE_MARKERS = (
    "ads",
    "advertisement",
    "banner",
    "sponsor",
    "tracking",
    "pixel",
    "beacon",
    "promo",
    "widget",
    "thumb",
    "icon",
    "logo",
)


def is_garbage_text(text: str, min_length: int = 30) -> bool:
    lowered = text.lower()
    if any(phrase in lowered for phrase in GARBAGE_PHRASES):
        return True
    if len(text) < min_length:
        return True
    return text.replace(" ", "").isdigit()


def is_valid_content_paragraph(text: str, classes: list[str] | str | None = None) -> bool:
    """Decide whether a ``<p>`` inside an article root is article prose."""
    text = collapse_whitespace(text)
    if len(text) < 20:
        return False
    if _STRONG_NON_CONTENT_RE.search(text):
        return False
    if len(text) <= NAV_LABEL_MAX_CHARS and _WEAK_NON_CONTENT_RE.search(text):
        return False
    return not has_non_content_class(classes)


def has_non_content_class(classes: list[str] | str | None) -> bool:
    if not classes:
        return False
    if isinstance(classes, str):
        classes = classes.split()
    tokens = [token.lower() for cls in classes for token in re.split(r"[-_]", cls) if token]
    return any(token in NON_CONTENT_CLASSES for token in tokens)


def is_ad_or_tracking_image(src: str) -> bool:
    lowered = src.lower()
    return any(marker in lowered for marker in AD_IMAGE_MARKERS)
