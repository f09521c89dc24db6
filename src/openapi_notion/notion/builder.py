"""Notion block builder.

Blocks are plain dictionaries in the Notion API wire format, so a built tree
can be sent as-is. :class:`BlocksBuilder` keeps an explicit stack of child
lists: scoped primitives (``section``, ``toggle``, ``table``) are context
managers that push a new list, and splice it back into the enclosing scope
when the ``with`` block ends, chunked to the API limits.
"""

from contextlib import contextmanager
from typing import Any, Iterator

Block = dict[str, Any]
Span = dict[str, Any]
Cell = str | Span | list[Span | str | None] | None

# Notion accepts at most 100 children per array and 2000 characters per span.
MAX_CHILDREN = 100
MAX_TEXT_LENGTH = 2000

# Marks generated pages, both as page icon and in the header callout.
PAGE_ICON = "✨"


def text(
    content: str,
    link: str | None = None,
    bold: bool | None = None,
    italic: bool | None = None,
    strikethrough: bool | None = None,
    underline: bool | None = None,
    code: bool | None = None,
    color: str | None = None,
) -> Span:
    """Build one rich-text span."""
    span: Span = {"type": "text", "text": {"content": content}}
    if link:
        span["text"]["link"] = {"url": link}
    flags = {
        "bold": bold,
        "italic": italic,
        "strikethrough": strikethrough,
        "underline": underline,
        "code": code,
        "color": color,
    }
    annotations = {k: v for k, v in flags.items() if v is not None}
    if annotations:
        span["annotations"] = annotations
    return span


def plain_text(spans: list[Span]) -> str:
    """Concatenated content of *spans*."""
    return "".join(s["text"]["content"] for s in spans)


def chunked(items: list, size: int) -> list[list]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def _split(span: Span) -> list[Span]:
    """Cut *span* into pieces of at most ``MAX_TEXT_LENGTH`` characters, keeping its style."""
    content = span["text"]["content"]
    if len(content) <= MAX_TEXT_LENGTH:
        return [span]
    return [{**span, "text": {**span["text"], "content": part}} for part in chunked(content, MAX_TEXT_LENGTH)]


def _spans(parts: tuple[str | Span | None, ...] | list) -> list[Span]:
    return [piece for p in parts if p is not None for piece in _split(text(p) if isinstance(p, str) else p)]


def _block(block_type: str, **payload: Any) -> Block:
    return {
        "object": "block",
        "type": block_type,
        block_type: {k: v for k, v in payload.items() if v is not None},
    }


class RowsBuilder:
    """Collects the rows of one table."""

    def __init__(self):
        self.rows: list[Block] = []

    def row(self, *cells: Cell) -> None:
        """Append a row; each cell is a string, a span or a list of spans."""
        self.rows.append(_block("table_row", cells=[self._cell(c) for c in cells]))

    @staticmethod
    def _cell(cell: Cell) -> list[Span]:
        if cell is None:
            return []
        if isinstance(cell, (str, dict)):
            return _spans((cell,))
        return _spans(cell)


class BlocksBuilder:
    """Accumulates blocks into the current scope."""

    def __init__(self):
        self._frames: list[list[Block]] = [[]]

    def build(self) -> list[Block]:
        if len(self._frames) != 1:
            raise RuntimeError("build() called inside an open scope")
        return list(self._frames[0])

    def add(self, block: Block) -> None:
        self._frames[-1].append(block)

    # -- leaf blocks ----------------------------------------------------------

    def heading1(self, *content: str | Span) -> None:
        self.add(_block("heading_1", rich_text=_spans(content)))

    def heading2(self, *content: str | Span) -> None:
        self.add(_block("heading_2", rich_text=_spans(content)))

    def heading3(self, *content: str | Span) -> None:
        self.add(_block("heading_3", rich_text=_spans(content)))

    def paragraph(self, *content: str | Span | None, color: str | None = None) -> None:
        self.add(_block("paragraph", rich_text=_spans(content), color=color))

    def divider(self) -> None:
        self.add(_block("divider"))

    def bullet(self, *content: str | Span) -> None:
        self.add(_block("bulleted_list_item", rich_text=_spans(content)))

    def quote(self, *content: str | Span | None, color: str | None = None) -> None:
        self.add(_block("quote", rich_text=_spans(content), color=color))

    def callout(self, *content: str | Span, icon: str) -> None:
        self.add(_block(
            "callout",
            rich_text=_spans(content),
            icon={"type": "emoji", "emoji": icon},
            color="gray_background",
        ))

    def code_block(self, language: str, content: str) -> None:
        segments = [text(s) for s in chunked(content, MAX_TEXT_LENGTH)] if content else []
        self.add(_block("code", rich_text=segments, language=language))

    # -- scoped blocks --------------------------------------------------------

    @contextmanager
    def _scope(self) -> Iterator[list[Block]]:
        frame: list[Block] = []
        self._frames.append(frame)
        try:
            yield frame
        finally:
            self._frames.pop()

    @contextmanager
    def section(self, *content: str | Span, color: str | None = None) -> Iterator[None]:
        """A paragraph holding the blocks added inside the ``with`` body.

        One paragraph is emitted per chunk of children; nothing at all when
        the body added no blocks.
        """
        with self._scope() as children:
            yield
        for chunk in chunked(children, MAX_CHILDREN):
            self.add(_block("paragraph", rich_text=_spans(content), color=color, children=chunk))

    @contextmanager
    def toggle(self, title: str | Span) -> Iterator[None]:
        with self._scope() as children:
            yield
        for chunk in chunked(children, MAX_CHILDREN) or [[]]:
            self.add(_block("toggle", rich_text=_spans((title,)), children=chunk))

    @contextmanager
    def table(
        self,
        columns: int,
        has_column_header: bool = False,
        has_row_header: bool = False,
    ) -> Iterator[RowsBuilder]:
        """A table whose rows are added through the yielded :class:`RowsBuilder`.

        Tables over the child limit are split in consecutive tables, each
        repeating the header row when there is one.
        """
        rows = RowsBuilder()
        yield rows
        if has_column_header and rows.rows:
            header, body = rows.rows[:1], rows.rows[1:]
            chunks = [header + c for c in chunked(body, MAX_CHILDREN - 1)] or [header]
        else:
            chunks = chunked(rows.rows, MAX_CHILDREN)
        for chunk in chunks:
            self.add(_block(
                "table",
                table_width=columns,
                has_column_header=has_column_header,
                has_row_header=has_row_header,
                children=chunk,
            ))
