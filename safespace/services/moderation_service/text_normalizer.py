"""Markup stripping for submitted posts.

Posts arrive as rich-text HTML from the editor. Analysis runs on the
plain text a reader would see, with invisible characters removed so they
cannot split a phrase and slip past the rule groups.
"""
import re
import unicodedata
from html.parser import HTMLParser
from typing import FrozenSet, List

# Characters to strip (zero-width, invisible, separators)
STRIP_CHARS: FrozenSet[str] = frozenset({
    "\u200b",  # Zero-width space
    "\u200c",  # Zero-width non-joiner
    "\u200d",  # Zero-width joiner
    "\ufeff",  # Byte order mark
    "\u00ad",  # Soft hyphen
    "\u2060",  # Word joiner
})

# Tags whose content is never shown to readers
SKIPPED_TAGS: FrozenSet[str] = frozenset({"script", "style", "template"})

# Tags that start a new line when rendered
BLOCK_TAGS: FrozenSet[str] = frozenset({
    "p", "div", "br", "li", "ul", "ol", "blockquote", "pre",
    "h1", "h2", "h3", "h4", "h5", "h6", "hr", "tr",
})

_INLINE_SPACE = re.compile(r"[ \t\f\v]+")
_BLANK_LINES = re.compile(r"\n{3,}")


class _TextExtractor(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts: List[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in SKIPPED_TAGS:
            self._skip_depth += 1
        elif tag in BLOCK_TAGS:
            self.parts.append("\n")

    def handle_startendtag(self, tag, attrs):
        if tag in BLOCK_TAGS:
            self.parts.append("\n")

    def handle_endtag(self, tag):
        if tag in SKIPPED_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
        elif tag in BLOCK_TAGS:
            self.parts.append("\n")

    def handle_data(self, data):
        if not self._skip_depth:
            self.parts.append(data)


def to_plain_text(body: str) -> str:
    """Return the visible text of a possibly-HTML body.

    Line structure is preserved so a leading trigger-warning line stays
    on its own line. Returns an empty string when nothing visible remains.
    """
    if not body:
        return ""

    extractor = _TextExtractor()
    extractor.feed(body)
    extractor.close()
    text = "".join(extractor.parts)

    text = unicodedata.normalize("NFC", text)
    text = "".join(ch for ch in text if ch not in STRIP_CHARS)
    text = text.replace("\r\n", "\n").replace("\xa0", " ")

    lines = [_INLINE_SPACE.sub(" ", line).strip() for line in text.split("\n")]
    text = _BLANK_LINES.sub("\n\n", "\n".join(lines))
    return text.strip()
