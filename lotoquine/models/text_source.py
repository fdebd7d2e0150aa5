"""
OCR output shapes.

An OCR engine returns either one text blob or a list of tokens with
bounding boxes. Both are modelled explicitly:

    TextSource = WholeText | AnnotatedTokens

Every parsing entry point accepts either variant. `source_text()` turns
annotated tokens back into reading-order text so whole-text parsers work
on both; positional code uses `source_tokens()`.
"""

from dataclasses import dataclass, field
from statistics import median


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Polygon around a token, as (x, y) vertices in image pixels."""

    vertices: tuple[tuple[float, float], ...]

    @property
    def left(self) -> float:
        return min((x for x, _ in self.vertices), default=0.0)

    @property
    def right(self) -> float:
        return max((x for x, _ in self.vertices), default=0.0)

    @property
    def top(self) -> float:
        return min((y for _, y in self.vertices), default=0.0)

    @property
    def bottom(self) -> float:
        return max((y for _, y in self.vertices), default=0.0)

    @property
    def center(self) -> tuple[float, float]:
        return ((self.left + self.right) / 2, (self.top + self.bottom) / 2)

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass(frozen=True, slots=True)
class TextToken:
    """One recognised token and where it was found."""

    text: str
    box: BoundingBox


@dataclass(frozen=True, slots=True)
class WholeText:
    """OCR result as a single text blob."""

    text: str = ""


@dataclass(frozen=True, slots=True)
class AnnotatedTokens:
    """OCR result as positioned tokens."""

    tokens: tuple[TextToken, ...] = field(default_factory=tuple)


TextSource = WholeText | AnnotatedTokens


def source_tokens(source: TextSource) -> tuple[TextToken, ...]:
    """Positioned tokens of a source; empty for whole text."""
    if isinstance(source, AnnotatedTokens):
        return source.tokens
    return ()


def is_empty(source: TextSource) -> bool:
    if isinstance(source, AnnotatedTokens):
        return not any(token.text.strip() for token in source.tokens)
    return not source.text.strip()


def source_text(source: TextSource) -> str:
    """
    Reading-order text of a source.

    Tokens are grouped into lines by vertical centre: a token joins the
    current line when its centre lies within half a typical token height
    of the line's first token. Lines read left to right, top to bottom.
    """
    if isinstance(source, WholeText):
        return source.text

    tokens = [token for token in source.tokens if token.text.strip()]
    if not tokens:
        return ""

    tolerance = median(token.box.height for token in tokens) / 2
    ordered = sorted(tokens, key=lambda t: (t.box.center[1], t.box.center[0]))

    lines: list[list[TextToken]] = []
    line_y = 0.0
    for token in ordered:
        y = token.box.center[1]
        if lines and abs(y - line_y) <= tolerance:
            lines[-1].append(token)
        else:
            lines.append([token])
            line_y = y

    return "\n".join(
        " ".join(token.text.strip() for token in sorted(line, key=lambda t: t.box.center[0])) for line in lines
    )
