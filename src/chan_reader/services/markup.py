from __future__ import annotations

import re
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Iterable, Optional

MENTION_RE = re.compile(r">>(?P<id>[0-9]+)")
URL_RE = re.compile(r"(?:https?://|www\.)[^\s<>\"]+", re.IGNORECASE)
_URL_TRAILING_PUNCTUATION = ".,;:!?)]}'\""

OP_LABEL_TEXT = "(OP)"


class SpanStyle(str, Enum):
    PLAIN = "plain"
    QUOTE = "quote"
    REFERENCE = "reference"
    REFERENCE_ACTIVE = "reference_active"
    OP_LABEL = "op_label"
    LINK = "link"


@dataclass(frozen=True)
class Span:
    text: str
    style: SpanStyle = SpanStyle.PLAIN
    bold: bool = False
    underline: bool = False
    link: Optional[str] = None
    reference: Optional[int] = None

    @property
    def is_annotation(self) -> bool:
        return self.style is SpanStyle.OP_LABEL

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["style"] = self.style.value
        return payload


@dataclass(frozen=True)
class _Match:
    start: int
    end: int
    kind: str
    value: str


def is_greentext(line: str) -> bool:
    return line.startswith(">") and not line.startswith(">>")


def _trim_url(url: str) -> str:
    while url and url[-1] in _URL_TRAILING_PUNCTUATION:
        # A closing paren stays when it balances one inside the URL.
        if url[-1] == ")" and url.count(")") <= url.count("("):
            break
        url = url[:-1]
    return url


def _url_matches(line: str) -> Iterable[_Match]:
    for match in URL_RE.finditer(line):
        url = _trim_url(match.group(0))
        if not url or url.lower() in ("http://", "https://", "www."):
            continue
        target = url if "://" in url else f"http://{url}"
        yield _Match(match.start(), match.start() + len(url), "link", target)


def _mention_matches(line: str) -> Iterable[_Match]:
    for match in MENTION_RE.finditer(line):
        yield _Match(match.start(), match.end(), "reference", match.group("id"))


def _overrides(line: str) -> list[_Match]:
    candidates = sorted(
        [*_mention_matches(line), *_url_matches(line)],
        key=lambda item: (item.start, -item.end),
    )
    kept: list[_Match] = []
    cursor = 0
    for candidate in candidates:
        if candidate.start < cursor:
            continue
        kept.append(candidate)
        cursor = candidate.end
    return kept


def _reference_spans(
    text: str,
    post_id: int,
    thread_root_id: int,
    active_ancestor_id: Optional[int],
    multi_quote: bool,
) -> list[Span]:
    if post_id == thread_root_id:
        return [
            Span(text, SpanStyle.REFERENCE, bold=True, reference=post_id),
            Span(OP_LABEL_TEXT, SpanStyle.OP_LABEL),
        ]
    if multi_quote and post_id == active_ancestor_id:
        return [Span(text, SpanStyle.REFERENCE_ACTIVE, bold=True, reference=post_id)]
    return [Span(text, SpanStyle.REFERENCE, bold=True, reference=post_id)]


def _render_line(
    line: str,
    thread_root_id: int,
    active_ancestor_id: Optional[int],
    multi_quote: bool,
) -> list[Span]:
    base = SpanStyle.QUOTE if is_greentext(line) else SpanStyle.PLAIN
    spans: list[Span] = []
    cursor = 0

    for match in _overrides(line):
        if match.start > cursor:
            spans.append(Span(line[cursor:match.start], base))
        text = line[match.start:match.end]
        if match.kind == "link":
            spans.append(Span(text, SpanStyle.LINK, underline=True, link=match.value))
        else:
            spans.extend(
                _reference_spans(text, int(match.value), thread_root_id, active_ancestor_id, multi_quote)
            )
        cursor = match.end

    if cursor < len(line):
        spans.append(Span(line[cursor:], base))
    return spans


def _coalesce(spans: list[Span]) -> list[Span]:
    merged: list[Span] = []
    for span in spans:
        previous = merged[-1] if merged else None
        if (
            previous is not None
            and previous.style is span.style
            and span.style in (SpanStyle.PLAIN, SpanStyle.QUOTE)
        ):
            merged[-1] = replace(previous, text=previous.text + span.text)
            continue
        merged.append(span)
    return merged


def render_spans(
    text: str,
    thread_root_id: int,
    active_ancestor_id: Optional[int] = None,
) -> list[Span]:
    """Split cleaned comment text into styled spans.

    Lines starting with a single ``>`` form the base quote style; mentions
    (``>>123``) and URLs override it for their exact range. A mention of the
    opening post is followed by an ``(OP)`` label span. When a post cites
    more than one distinct post, the mention of ``active_ancestor_id`` (the
    post framing the current view) gets ``REFERENCE_ACTIVE``.

    Joining the ``text`` of every non-annotation span gives back ``text``.
    """
    if not text:
        return [Span("")]

    multi_quote = len({int(match.group("id")) for match in MENTION_RE.finditer(text)}) > 1
    spans: list[Span] = []
    lines = text.split("\n")
    for index, line in enumerate(lines):
        spans.extend(_render_line(line, thread_root_id, active_ancestor_id, multi_quote))
        if index < len(lines) - 1:
            spans.append(Span("\n"))
    return _coalesce(spans)


def plain_text(spans: Iterable[Span]) -> str:
    return "".join(span.text for span in spans if not span.is_annotation)
