"""
Block tree for structural edits.

The document is parsed once per structural mutation into a flat sequence of
top-level blocks:

    HeadingBlock    one ``#`` line (any level)
    ListBlock       a run of column-0 list items, blank lines allowed between items
    ParagraphBlock  any other run of non-blank lines

A ListItem owns its marker line plus every following indented line (blank
lines in between included), so a task and its update lines move as one node.
Nested lists inside an item are parsed on demand from the item's body.

Blank lines are never dropped: each block (and each list item) keeps the blank
lines that follow it in ``blank_after``, and render_blocks re-emits them
verbatim. Parsing then rendering an unmodified tree gives back the input text
byte for byte.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

from mdtasker.parsers.lines import HEADING_RE, TASK_RE, split_lines

LIST_MARKER_RE = re.compile(r"^([-*+]|\d+[.)])(?: |$)")


def _is_blank(line: str) -> bool:
    return not line.strip()


def _is_indented(line: str) -> bool:
    return line[:1] in (" ", "\t")


def _marker_kind(line: str) -> Optional[str]:
    """'-', '*', '+' for bullets, '.' or ')' for ordered items, None otherwise."""
    m = LIST_MARKER_RE.match(line)
    if not m:
        return None
    marker = m.group(1)
    return marker if marker in "-*+" else marker[-1]


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

@dataclass
class ListItem:
    """One list item: marker line plus its indented continuation lines."""

    lines: List[str]
    blank_after: List[str] = field(default_factory=list)
    start: int = -1

    @property
    def end(self) -> int:
        return self.start + len(self.lines) - 1

    @property
    def checked(self) -> Optional[bool]:
        """True/False for ``- [x]``/``- [ ]`` items, None for plain items."""
        m = TASK_RE.match(self.lines[0])
        if not m:
            return None
        return m.group(1) == "x"

    @property
    def body_indent(self) -> int:
        body = [line for line in self.lines[1:] if not _is_blank(line)]
        if not body:
            return 0
        return min(len(line) - len(line.lstrip(" ")) for line in body)

    def body_tree(self) -> Optional[DocumentTree]:
        """Parse the item body as a nested document, or None if it is not indented."""
        indent = self.body_indent
        if len(self.lines) < 2 or indent == 0:
            return None
        prefix = " " * indent
        dedented = [line[indent:] if line.startswith(prefix) else "" for line in self.lines[1:]]
        return parse_lines(dedented, offset=self.start + 1)

    def set_body_tree(self, tree: DocumentTree, indent: int) -> None:
        prefix = " " * indent
        body = [prefix + line if line else line for line in tree.render_lines()]
        self.lines = [self.lines[0]] + body


@dataclass
class HeadingBlock:
    level: int
    text: str
    line: str = ""
    blank_after: List[str] = field(default_factory=list)
    start: int = -1

    def __post_init__(self) -> None:
        if not self.line:
            self.line = f"{'#' * self.level} {self.text}"

    @property
    def content(self) -> List[str]:
        return [self.line]


@dataclass
class ParagraphBlock:
    lines: List[str]
    blank_after: List[str] = field(default_factory=list)
    start: int = -1

    @property
    def content(self) -> List[str]:
        return list(self.lines)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass
class ListBlock:
    items: List[ListItem] = field(default_factory=list)
    blank_after: List[str] = field(default_factory=list)
    start: int = -1
    kind: str = "-"

    @property
    def content(self) -> List[str]:
        lines: List[str] = []
        for idx, item in enumerate(self.items):
            lines.extend(item.lines)
            if idx < len(self.items) - 1:
                lines.extend(item.blank_after)
        return lines


Block = Union[HeadingBlock, ParagraphBlock, ListBlock]


def block_end(block: Block) -> int:
    """Last source line of a block's content (trailing blanks excluded)."""
    return block.start + max(len(block.content), 1) - 1


@dataclass
class DocumentTree:
    """Top-level blocks of a document plus any blank lines before the first block."""

    blocks: List[Block] = field(default_factory=list)
    leading: List[str] = field(default_factory=list)
    trailing_newline: bool = False

    def render_lines(self) -> List[str]:
        lines = list(self.leading)
        for block in self.blocks:
            lines.extend(block.content)
            lines.extend(block.blank_after)
        return lines

    def render(self) -> str:
        text = "\n".join(self.render_lines())
        if self.trailing_newline and not text.endswith("\n"):
            text += "\n"
        return text

    def headings(self) -> List[tuple]:
        """(index, HeadingBlock) for every heading block."""
        return [(i, b) for i, b in enumerate(self.blocks) if isinstance(b, HeadingBlock)]

    def block_range(self, start_line: int, end_line: int) -> Optional[range]:
        """
        Indexes of the blocks lying within ``start_line..end_line``.

        The range runs from the first block starting at or after start_line to
        the last block ending at or before end_line. None if that is empty.
        """
        first = next((i for i, b in enumerate(self.blocks) if b.start >= start_line), None)
        if first is None:
            return None
        last = None
        for i in range(len(self.blocks) - 1, first - 1, -1):
            if block_end(self.blocks[i]) <= end_line:
                last = i
                break
        if last is None or last < first:
            return None
        return range(first, last + 1)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _read_item(lines: List[str], pos: int, offset: int) -> tuple:
    """Read one list item starting at ``pos``. Returns (item, next_pos)."""
    item_lines = [lines[pos]]
    pending: List[str] = []
    j = pos + 1
    while j < len(lines):
        line = lines[j]
        if _is_blank(line):
            pending.append(line)
        elif _is_indented(line):
            item_lines.extend(pending)
            pending = []
            item_lines.append(line)
        else:
            break
        j += 1
    # Trailing blank lines are left for the caller
    return ListItem(lines=item_lines, start=offset + pos), j - len(pending)


def parse_lines(lines: List[str], offset: int = 0) -> DocumentTree:
    """Parse raw lines into a DocumentTree; ``offset`` is the source line of lines[0]."""
    tree = DocumentTree()
    blocks = tree.blocks
    pos = 0

    while pos < len(lines):
        line = lines[pos]

        if _is_blank(line):
            (blocks[-1].blank_after if blocks else tree.leading).append(line)
            pos += 1
            continue

        m = HEADING_RE.match(line)
        if m:
            blocks.append(HeadingBlock(
                level=len(m.group(1)),
                text=m.group(2).strip(),
                line=line,
                start=offset + pos,
            ))
            pos += 1
            continue

        kind = _marker_kind(line)
        if kind is not None:
            item, pos = _read_item(lines, pos, offset)
            prev = blocks[-1] if blocks else None
            if isinstance(prev, ListBlock) and prev.kind == kind:
                # Blank lines between items belong to the previous item
                prev.items[-1].blank_after = prev.blank_after
                prev.blank_after = []
                prev.items.append(item)
            else:
                blocks.append(ListBlock(items=[item], start=item.start, kind=kind))
            continue

        para = [line]
        pos += 1
        while pos < len(lines):
            nxt = lines[pos]
            if _is_blank(nxt) or HEADING_RE.match(nxt) or _marker_kind(nxt) is not None:
                break
            para.append(nxt)
            pos += 1
        blocks.append(ParagraphBlock(lines=para, start=offset + pos - len(para)))

    return tree


def parse_blocks(text: str) -> DocumentTree:
    """Parse document text into a DocumentTree."""
    tree = parse_lines(split_lines(text))
    tree.trailing_newline = text.endswith("\n")
    return tree


def render_blocks(tree: DocumentTree) -> str:
    return tree.render()


# ---------------------------------------------------------------------------
# List item lookup
# ---------------------------------------------------------------------------

ItemEdit = Callable[[ListBlock, int], bool]


def _edit_in_blocks(blocks: List[Block], line: int, edit: ItemEdit) -> bool:
    for block in blocks:
        if not isinstance(block, ListBlock):
            continue
        for idx, item in enumerate(block.items):
            if item.start == line:
                return edit(block, idx)
            if item.start < line <= item.end:
                indent = item.body_indent
                sub = item.body_tree()
                if sub is None:
                    return False
                changed = _edit_in_blocks(sub.blocks, line, edit)
                if changed:
                    item.set_body_tree(sub, indent)
                return changed
    return False


def edit_list_item(tree: DocumentTree, line: int, edit: ItemEdit) -> bool:
    """
    Find the list item whose marker is on ``line`` (at any nesting depth) and
    apply ``edit(parent_list, item_index)`` to it.

    Returns:
        The edit's result; False if no item starts on that line
    """
    return _edit_in_blocks(tree.blocks, line, edit)


def ensure_gap(blocks: List[Block], index: int) -> None:
    """Make sure blocks[index - 1] and blocks[index] are separated by a blank line."""
    if 0 < index < len(blocks) and not blocks[index - 1].blank_after:
        blocks[index - 1].blank_after = [""]


def insert_blocks(tree: DocumentTree, index: int, new: List[Block], separate_all: bool = False) -> None:
    """
    Insert blocks at ``index``, keeping them visually apart from their neighbours.

    Only the two outer seams get a blank line unless ``separate_all`` is set,
    so the inner layout of a moved section is kept as it was.
    """
    if not new:
        return
    if not tree.blocks:
        tree.leading = []
        tree.trailing_newline = True
    tree.blocks[index:index] = new
    seams = range(index, index + len(new) + 1) if separate_all else (index, index + len(new))
    for seam in seams:
        ensure_gap(tree.blocks, seam)


def remove_blocks(tree: DocumentTree, span: range) -> List[Block]:
    """Remove and return ``tree.blocks[span]``; the neighbours left behind stay separated."""
    removed = tree.blocks[span.start:span.stop]
    del tree.blocks[span.start:span.stop]
    ensure_gap(tree.blocks, span.start)
    return removed
