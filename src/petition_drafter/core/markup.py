from __future__ import annotations

import re
from html.parser import HTMLParser

# Elements whose bodies are dropped. Each must always be closed, so void tags such as embed are not listed.
_DROPPED_TAGS = frozenset({"script", "style", "template"})
_BLOCK_TAGS = frozenset(
    {"p", "div", "br", "li", "ol", "ul", "tr", "table", "section", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6"}
)
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")


class _TextExtractor(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._parts: list[str] = []
        self._dropped_depth = 0

    def _break_line(self) -> None:
        if self._parts and not self._parts[-1].endswith("\n"):
            self._parts.append("\n")

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in _DROPPED_TAGS:
            self._dropped_depth += 1
            return
        if tag in _BLOCK_TAGS:
            self._break_line()
        if tag == "li" and not self._dropped_depth:
            self._parts.append("- ")

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in _BLOCK_TAGS:
            self._break_line()

    def handle_endtag(self, tag: str) -> None:
        if tag in _DROPPED_TAGS:
            if self._dropped_depth:
                self._dropped_depth -= 1
            return
        if tag in _BLOCK_TAGS:
            self._break_line()

    def handle_data(self, data: str) -> None:
        if not self._dropped_depth:
            self._parts.append(data)

    def text(self) -> str:
        return "".join(self._parts)


def markup_to_text(markup: str) -> str:
    """
    Reduce untrusted backend markup to plain text.

    Tags are removed, entities decoded, and the bodies of script-like elements dropped.
    """
    if not markup:
        return ""
    parser = _TextExtractor()
    parser.feed(markup)
    parser.close()
    lines = [line.rstrip() for line in parser.text().replace("\r\n", "\n").split("\n")]
    return _EXTRA_BLANK_LINES.sub("\n\n", "\n".join(lines)).strip()
