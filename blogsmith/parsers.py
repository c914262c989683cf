"""Free-text parsers for drafted blog output and labelled SEO analyses.

Both parsers are pure: they take the raw model text and return either
``Parsed`` (every field found) or ``PartiallyParsed`` (with the names of the
fields that could not be extracted). Filling the gaps is left to the stage
that owns the defaults.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Parsed:
    fields: dict

    @property
    def missing(self) -> list[str]:
        return []

    @property
    def complete(self) -> bool:
        return True


@dataclass(frozen=True)
class PartiallyParsed:
    fields: dict
    missing: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return False


ParseResult = Parsed | PartiallyParsed


def _result(fields: dict, required: tuple[str, ...]) -> ParseResult:
    missing = [name for name in required if not fields.get(name)]
    if missing:
        return PartiallyParsed(fields=fields, missing=missing)
    return Parsed(fields=fields)


def count_words(text: str) -> int:
    """Count whitespace-delimited, non-empty tokens."""
    return len(text.split())


# ---------------------------------------------------------------------------
# Drafted blog content
# ---------------------------------------------------------------------------

TITLE_MARKER = "# "
SUMMARY_LABEL = "Summary:"
KEYWORDS_LABEL = "SEO Keywords:"
HASHTAGS_LABEL = "Hashtags:"
WORD_COUNT_LABEL = "Word count:"

# Exclusive bounds on the trimmed length of a meta-description candidate
META_MIN_LEN = 50
META_MAX_LEN = 200

DRAFT_FIELDS = ("title", "meta_description", "summary", "keywords", "hashtags")


def _after_label(line: str, label: str) -> str:
    return line.split(label, 1)[1].strip()


def _split_list(text: str, strip_hash: bool = False) -> list[str]:
    items = []
    for part in text.split(","):
        part = part.strip()
        if strip_hash:
            part = part.lstrip("#").strip()
        if part:
            items.append(part)
    return items


def parse_draft(raw: str) -> ParseResult:
    """Split a drafted blog response into title, meta, body and trailing metadata.

    Lines are classified in order, first match wins:

    1. ``# `` prefix while no title is set -> title (later ``# `` lines fall through)
    2. ``Summary:`` -> summary
    3. ``SEO Keywords:`` -> comma-separated keywords
    4. ``Hashtags:`` -> comma-separated hashtags, leading ``#`` removed
    5. no meta description yet and 50 < len(trimmed) < 200 -> meta description
    6. anything else non-empty, except ``Word count:`` -> body

    Rule 5 can pick up an ordinary body sentence when the model omits the
    meta line. ``word_count`` is always counted from the assembled body.
    """
    title = ""
    meta_description = ""
    summary = ""
    keywords: list[str] = []
    hashtags: list[str] = []
    body_lines: list[str] = []

    for line in raw.splitlines():
        stripped = line.strip()

        if line.startswith(TITLE_MARKER) and not title:
            title = line[len(TITLE_MARKER):].strip()
        elif SUMMARY_LABEL in line:
            summary = _after_label(line, SUMMARY_LABEL)
        elif KEYWORDS_LABEL in line:
            keywords = _split_list(_after_label(line, KEYWORDS_LABEL))
        elif HASHTAGS_LABEL in line:
            hashtags = _split_list(_after_label(line, HASHTAGS_LABEL), strip_hash=True)
        elif not meta_description and META_MIN_LEN < len(stripped) < META_MAX_LEN:
            meta_description = stripped
        elif stripped and WORD_COUNT_LABEL not in line:
            body_lines.append(line)

    body = "".join(f"{line}\n" for line in body_lines).strip()
    fields = {
        "title": title,
        "body": body,
        "meta_description": meta_description,
        "summary": summary,
        "keywords": keywords,
        "hashtags": hashtags,
        "word_count": count_words(body),
    }
    return _result(fields, DRAFT_FIELDS)


# ---------------------------------------------------------------------------
# SEO analysis
# ---------------------------------------------------------------------------

# Bold header label -> field name, checked in this order
SEO_SECTIONS = (
    ("Primary Keyword", "primary_keyword"),
    ("Secondary Keywords", "secondary_keywords"),
    ("SEO Title", "seo_title"),
    ("Meta Description", "meta_description"),
    ("URL Slug", "url_slug"),
    ("Social Media Hashtags", "hashtags"),
    ("Internal Linking Suggestions", "internal_link_suggestions"),
    ("Content Gaps", "content_gaps"),
)

# "**SEO Title**" and "**SEO Title:**" both open a section
_HEADER_PATTERNS = tuple(
    (re.compile(r"\*\*" + re.escape(label) + r":?\*\*"), name) for label, name in SEO_SECTIONS
)

SINGLE_VALUE_SECTIONS = {"primary_keyword", "seo_title", "meta_description", "url_slug"}

# None = uncapped
LIST_CAPS = {
    "secondary_keywords": 5,
    "hashtags": 8,
    "internal_link_suggestions": 3,
    "content_gaps": None,
}

# Sections that accept a single comma-separated line as the whole list
COMMA_SECTIONS = {"secondary_keywords", "hashtags"}

SEO_FIELDS = ("primary_keyword", "secondary_keywords", "seo_title", "meta_description", "url_slug", "hashtags")

_BULLET_RE = re.compile(r"^(?:[-*•]\s+|\d+[.)]\s+)")


def _clean_value(text: str) -> str:
    text = text.strip()
    text = _BULLET_RE.sub("", text)
    text = re.sub(r"^\*\*|\*\*$", "", text).strip()
    # Values are often quoted or wrapped in backticks
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'`":
        text = text[1:-1].strip()
    return text


def _match_header(line: str) -> tuple[str, str] | None:
    """Return (field, inline remainder) when the line opens a section."""
    for pattern, name in _HEADER_PATTERNS:
        match = pattern.search(line)
        if match:
            rest = line[match.end():]
            rest = rest.lstrip(" :*-").strip()
            return name, rest
    return None


def _accept(fields: dict, section: str, value: str):
    if not value:
        return
    if section in SINGLE_VALUE_SECTIONS:
        if not fields[section]:
            fields[section] = value
        return

    cap = LIST_CAPS[section]
    is_hashtags = section == "hashtags"
    if section in COMMA_SECTIONS and "," in value:
        items = _split_list(value, strip_hash=is_hashtags)
        fields[section] = items[:cap] if cap else items
        return
    if is_hashtags and value.count("#") > 1:
        # "#compost #garden #soil" on one line
        for tag in value.split():
            if len(fields[section]) >= cap:
                break
            tag = tag.lstrip("#").strip()
            if tag:
                fields[section].append(tag)
        return
    if cap is not None and len(fields[section]) >= cap:
        return
    if is_hashtags:
        value = value.lstrip("#").strip()
        if not value:
            return
    fields[section].append(value)


def parse_seo_analysis(raw: str) -> ParseResult:
    """Parse a response laid out as eight bold-labelled sections.

    A header line (``**SEO Title**`` etc.) moves the current-section pointer;
    text after the header on the same line counts as the section's first
    value. Single-value sections keep the first value seen. Secondary
    keywords and hashtags take either one comma-separated line or successive
    single-item lines, capped at 5 and 8. Link suggestions cap at 3; content
    gaps are uncapped. Lines before the first header are ignored.
    """
    fields = {
        "primary_keyword": "",
        "secondary_keywords": [],
        "seo_title": "",
        "meta_description": "",
        "url_slug": "",
        "hashtags": [],
        "internal_link_suggestions": [],
        "content_gaps": [],
    }
    section = ""

    for line in raw.splitlines():
        stripped = line.strip()
        if not stripped:
            continue

        header = _match_header(stripped)
        if header:
            section, inline = header
            _accept(fields, section, _clean_value(inline))
        elif section:
            _accept(fields, section, _clean_value(stripped))

    return _result(fields, SEO_FIELDS)
