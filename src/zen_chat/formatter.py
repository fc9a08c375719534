"""Turn raw model replies into a flat sequence of styled inline spans.

The formatter never emits markup. Hosts map each ``SpanKind`` onto their own
safe styling primitive, so text coming back from the model is always shown as
literal characters.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
import re


class SpanKind(str, Enum):
    """Inline styles recognised in model replies."""

    PLAIN = "plain"
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    CODE = "code"


@dataclass(frozen=True)
class Span:
    """A run of text rendered with a single inline style."""

    kind: SpanKind
    text: str


# Applied in order; later rules only see text no earlier rule claimed, so a
# triple-asterisk run is never split by the double or single rules.
_RULES: tuple[tuple[re.Pattern[str], SpanKind], ...] = (
    (re.compile(r"\*\*\*(.*?)\*\*\*"), SpanKind.BOLD),
    (re.compile(r"\*\*(.*?)\*\*"), SpanKind.BOLD),
    (re.compile(r"\*(.*?)\*"), SpanKind.ITALIC),
    (re.compile(r"__(.*?)__"), SpanKind.UNDERLINE),
    (re.compile(r"`(.*?)`"), SpanKind.CODE),
)


def _split_plain(span: Span, pattern: re.Pattern[str], kind: SpanKind) -> Iterator[Span]:
    if span.kind is not SpanKind.PLAIN:
        yield span
        return
    text = span.text
    position = 0
    for match in pattern.finditer(text):
        if match.start() > position:
            yield Span(SpanKind.PLAIN, text[position : match.start()])
        yield Span(kind, match.group(1))
        position = match.end()
    if position < len(text):
        yield Span(SpanKind.PLAIN, text[position:])


def _normalize(spans: Iterable[Span]) -> list[Span]:
    """Drop empty spans and merge neighbouring plain runs."""
    result: list[Span] = []
    for span in spans:
        if not span.text:
            continue
        if result and span.kind is SpanKind.PLAIN and result[-1].kind is SpanKind.PLAIN:
            result[-1] = Span(SpanKind.PLAIN, result[-1].text + span.text)
        else:
            result.append(span)
    return result


def _trim(spans: list[Span]) -> list[Span]:
    if spans and spans[0].kind is SpanKind.PLAIN:
        spans[0] = Span(SpanKind.PLAIN, spans[0].text.lstrip())
    if spans and spans[-1].kind is SpanKind.PLAIN:
        spans[-1] = Span(SpanKind.PLAIN, spans[-1].text.rstrip())
    return [span for span in spans if span.text]


def format_reply(text: str) -> tuple[Span, ...]:
    """Convert a raw reply into inline spans.

    Recognised delimiters, in precedence order: ``***bold***``, ``**bold**``,
    ``*italic*``, ``__underline__`` and ```code```. Everything else is kept
    as plain text. Surrounding whitespace is trimmed.
    """
    spans = [Span(SpanKind.PLAIN, text)]
    for pattern, kind in _RULES:
        spans = [piece for span in spans for piece in _split_plain(span, pattern, kind)]
    return tuple(_trim(_normalize(spans)))


def spans_to_text(spans: Iterable[Span]) -> str:
    """Return the visible text of ``spans`` without any styling."""
    return "".join(span.text for span in spans)
