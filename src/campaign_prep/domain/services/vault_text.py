from __future__ import annotations

import re

from campaign_prep.domain.models.document import Document

INDEX_START = "<!-- WB:INDEX_START -->"
INDEX_END = "<!-- WB:INDEX_END -->"
INDEX_TITLE_SUFFIX = " Index"

EXCERPT_LIMIT = 420
ELLIPSIS = "..."

_WIKILINK = re.compile(r"\[\[([^\]]+)\]\]")
_INLINE_TAG = re.compile(r"@[a-zA-Z_]+:[\w-]+")
_WHITESPACE = re.compile(r"\s+")
_FRONT_MATTER = re.compile(r"^---\n(.*?)\n---\n?", re.DOTALL)


def is_index_doc(doc: Document) -> bool:
    """Auto-generated folder listing pages never take part in graph results."""
    return INDEX_START in (doc.body or "") or doc.title.endswith(INDEX_TITLE_SUFFIX)


def is_visible(doc: Document | None) -> bool:
    return doc is not None and not doc.is_deleted and not is_index_doc(doc)


def _unwrap_wikilink(match: re.Match) -> str:
    inner = match.group(1)
    # [[Target|Label]] renders as its label
    if "|" in inner:
        return inner.split("|", 1)[1]
    return inner


def build_excerpt(body: str, limit: int = EXCERPT_LIMIT) -> str:
    without_links = _WIKILINK.sub(_unwrap_wikilink, body or "")
    without_tags = _INLINE_TAG.sub("", without_links)
    normalized = _WHITESPACE.sub(" ", without_tags).strip()
    if len(normalized) <= limit:
        return normalized
    return f"{normalized[:limit].strip()}{ELLIPSIS}"


def slugify_title(value: str) -> str:
    lowered = str(value or "").strip().lower()
    lowered = re.sub(r"['\"]", "", lowered)
    lowered = re.sub(r"[^a-z0-9]+", "-", lowered)
    return lowered.strip("-")


def split_front_matter(body: str) -> tuple[dict[str, str], str]:
    """Return flat ``key: value`` front-matter pairs and the remaining body."""
    text = (body or "").replace("\r\n", "\n")
    match = _FRONT_MATTER.match(text)
    if not match:
        return {}, text
    fields: dict[str, str] = {}
    for line in match.group(1).split("\n"):
        if ":" not in line or line.startswith((" ", "\t", "-")):
            continue
        key, _, raw_value = line.partition(":")
        value = raw_value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        fields[key.strip()] = value
    return fields, text[match.end():]


def first_content_line(body: str) -> str:
    _, remainder = split_front_matter(body)
    for line in remainder.split("\n"):
        stripped = line.strip()
        if stripped:
            return stripped
    return ""
