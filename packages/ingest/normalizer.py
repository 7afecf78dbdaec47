"""Plain-text extraction for rich content bodies.

Turns markup (page bodies, HTML files) and encoded binary bodies into the
plain text stored in the index. Script, style and navigation blocks are dropped.
"""

import logging
import re
from html.parser import HTMLParser

from packages.core.errors import ExtractionError

logger = logging.getLogger(__name__)

_SKIPPED_TAGS = ("script", "style", "nav", "footer", "aside", "head")
_BLOCK_TAGS = (
    "p", "div", "section", "article", "li", "tr", "pre", "blockquote",
    "h1", "h2", "h3", "h4", "h5", "h6",
)


class _TextConverter(HTMLParser):
    """HTML to plain text converter using html.parser."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.parts: list[str] = []
        self.current_text: list[str] = []
        self.in_pre = False
        self.skip_depth = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        tag = tag.lower()

        if tag in _SKIPPED_TAGS:
            self.skip_depth += 1
            return

        if tag == "pre":
            self.in_pre = True
        elif tag == "br":
            self.current_text.append("\n")
        elif tag in _BLOCK_TAGS:
            self._flush()

    def handle_endtag(self, tag: str) -> None:
        tag = tag.lower()

        if tag in _SKIPPED_TAGS:
            self.skip_depth = max(0, self.skip_depth - 1)
            return

        if tag == "pre":
            self.in_pre = False
        if tag in _BLOCK_TAGS:
            self._flush()

    def handle_data(self, data: str) -> None:
        if self.skip_depth:
            return

        if self.in_pre:
            self.current_text.append(data)
        else:
            cleaned = re.sub(r"\s+", " ", data)
            if cleaned.strip():
                self.current_text.append(cleaned)

    def get_text(self) -> str:
        self._flush()
        return "\n\n".join(self.parts)

    def _flush(self) -> None:
        text = "".join(self.current_text).strip()
        if text:
            self.parts.append(text)
        self.current_text = []


class HtmlTextExtractor:
    """Text extractor for markup and encoded text bodies.

    Implements the TextExtractor port.

    Example:
        >>> HtmlTextExtractor().extract_text("<h1>Title</h1><p>Body</p>")
        'Title\\n\\nBody'
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        logger.info("Initialized HtmlTextExtractor", extra={"encoding": encoding})

    def extract_text(self, data: bytes | str) -> str:
        """Extract plain text from ``data``.

        Args:
            data: Markup or plain text, as str or encoded bytes.

        Returns:
            str: The extracted text (may be empty).

        Raises:
            ExtractionError: If data is not text or cannot be decoded.
        """
        if isinstance(data, (bytes, bytearray)):
            try:
                data = bytes(data).decode(self.encoding)
            except (UnicodeDecodeError, LookupError) as e:
                raise ExtractionError(f"Cannot decode content as {self.encoding}: {e}") from e
        elif not isinstance(data, str):
            raise ExtractionError(f"Unsupported content type for extraction: {type(data).__name__}")

        if "\x00" in data:
            raise ExtractionError("Content contains NUL bytes and is not text")

        if not data.strip():
            return ""

        converter = _TextConverter()
        converter.feed(data)
        converter.close()
        text = self._clean_whitespace(converter.get_text())

        logger.debug(f"Extracted {len(text)} chars of text from {len(data)} chars of content")
        return text

    def _clean_whitespace(self, text: str) -> str:
        # Remove excessive spaces
        text = re.sub(r" {2,}", " ", text)

        # Remove excessive newlines
        text = re.sub(r"\n{3,}", "\n\n", text)

        lines = [line.strip() for line in text.split("\n")]
        text = "\n".join(lines)

        return text.strip()


__all__ = ["HtmlTextExtractor"]
