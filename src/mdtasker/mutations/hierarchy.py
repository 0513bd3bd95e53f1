"""
Hierarchy resolver: find or create a heading path inside a block tree.

A path is a list of HeadingRef from the outermost heading inwards, e.g.
[("Alpha", 1), ("Tasks", 2)]. Archive and restore use it to put content under
an equivalently named path in the other document, whatever that document's
existing order.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from mdtasker.models.task import HeadingRef
from mdtasker.parsers.blocks import DocumentTree, HeadingBlock, ListBlock, insert_blocks
from mdtasker.parsers.lines import HeadingLine, split_lines, tokenize

log = logging.getLogger(__name__)


def heading_path_for(tree: DocumentTree, index: int) -> List[HeadingRef]:
    """
    Heading chain enclosing ``tree.blocks[index]``, outermost first.

    If the block is itself a heading it ends the chain. Walking backwards,
    each earlier heading with a strictly smaller level becomes the next parent.
    """
    chain: List[HeadingRef] = []
    level: Optional[int] = None
    block = tree.blocks[index]
    if isinstance(block, HeadingBlock):
        chain.append(HeadingRef(block.text, block.level))
        level = block.level

    for i in range(index - 1, -1, -1):
        prev = tree.blocks[i]
        if isinstance(prev, HeadingBlock) and (level is None or prev.level < level):
            chain.insert(0, HeadingRef(prev.text, prev.level))
            level = prev.level
            if level == 1:
                break
    return chain


def find_or_create_path(tree: DocumentTree, path: Sequence[HeadingRef]) -> int:
    """
    Walk ``path`` top-down, creating any missing heading, and return the block
    index right after the last path heading.

    At each step the search covers only the current parent's slice: from the
    parent heading up to the next heading at the parent's level or shallower.
    A missing heading is created at the end of that slice.
    """
    blocks = tree.blocks
    parent_index = -1
    parent_level = 0

    for ref in path:
        lo = parent_index + 1
        hi = next(
            (i for i in range(lo, len(blocks))
             if isinstance(blocks[i], HeadingBlock) and blocks[i].level <= parent_level),
            len(blocks),
        )
        found = next(
            (i for i in range(lo, hi)
             if isinstance(blocks[i], HeadingBlock)
             and blocks[i].level == ref.level and blocks[i].text == ref.text),
            None,
        )
        if found is None:
            log.debug("Creating heading %r (level %d) at block %d", ref.text, ref.level, hi)
            insert_blocks(tree, hi, [HeadingBlock(level=ref.level, text=ref.text)])
            found = hi
        parent_index = found
        parent_level = ref.level

    return parent_index + 1


def find_or_create_list(tree: DocumentTree, path: Sequence[HeadingRef]) -> ListBlock:
    """The list directly under ``path``, created empty if there is none."""
    index = find_or_create_path(tree, path)
    if index < len(tree.blocks) and isinstance(tree.blocks[index], ListBlock):
        return tree.blocks[index]
    new_list = ListBlock()
    insert_blocks(tree, index, [new_list])
    return new_list


def section_bounds(text: str, heading_line: int) -> Optional[Tuple[int, int]]:
    """
    (start, end) lines of the section opened by the heading on ``heading_line``.

    The section runs up to, not including, the next heading of equal or
    shallower depth. None if the line is not a heading.
    """
    tokens = list(tokenize(split_lines(text)))
    if not 0 <= heading_line < len(tokens) or not isinstance(tokens[heading_line], HeadingLine):
        return None
    level = tokens[heading_line].level
    for token in tokens[heading_line + 1:]:
        if isinstance(token, HeadingLine) and token.level <= level:
            return heading_line, token.index - 1
    return heading_line, len(tokens) - 1
