"""Structural operations expressed as edits of the block tree."""

import copy
import logging

from mdtasker.parsers.blocks import ListBlock, block_end, edit_list_item, insert_blocks, parse_blocks, remove_blocks

log = logging.getLogger(__name__)

DIRECTIONS = ("up", "down", "top", "bottom")


def reorder_task(text: str, line: int, direction: str) -> str:
    """
    Move the list item whose marker is on ``line`` among its siblings.

    The item moves with its whole body (update lines, nested items). Blank
    lines between siblings stay where they were, so only the order changes.
    Moving the first item up or the last one down is a no-op.
    """
    if direction not in DIRECTIONS:
        log.debug("Unknown direction %r", direction)
        return text

    tree = parse_blocks(text)

    def move(parent: ListBlock, index: int) -> bool:
        count = len(parent.items)
        target = {"top": 0, "bottom": count - 1, "up": index - 1, "down": index + 1}[direction]
        if target < 0 or target >= count or target == index:
            return False
        gaps = [item.blank_after for item in parent.items]
        parent.items.insert(target, parent.items.pop(index))
        for item, gap in zip(parent.items, gaps):
            item.blank_after = gap
        return True

    if not edit_list_item(tree, line, move):
        log.debug("Nothing to reorder at line %d (%s)", line, direction)
        return text
    return tree.render()


def _relocate(text: str, start: int, end: int, destination: int, duplicate: bool) -> str:
    tree = parse_blocks(text)
    span = tree.block_range(start, end)
    if span is None:
        log.debug("No blocks in %d..%d", start, end)
        return text

    first, last = tree.blocks[span.start], tree.blocks[span.stop - 1]
    if not duplicate and first.start < destination <= block_end(last):
        log.debug("Destination %d lies inside the section being moved", destination)
        return text

    if duplicate:
        section = copy.deepcopy(tree.blocks[span.start:span.stop])
    else:
        section = remove_blocks(tree, span)

    index = next((i for i, b in enumerate(tree.blocks) if b.start >= destination), len(tree.blocks))
    insert_blocks(tree, index, section)
    return tree.render()


def move_section(text: str, start: int, end: int, destination: int) -> str:
    """
    Move the blocks within ``start..end`` so they begin before the first
    block at or after ``destination`` (or at the end of the document).
    """
    return _relocate(text, start, end, destination, duplicate=False)


def duplicate_section(text: str, start: int, end: int, destination: int) -> str:
    """Like move_section, but leaves the original in place."""
    return _relocate(text, start, end, destination, duplicate=True)
