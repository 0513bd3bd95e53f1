"""
Move sections and tasks between the live document and the archive document.

The archive mirrors the live heading hierarchy: archived content is filed
under the same Project > Section path it came from (created on demand), and
restoring files it back under that path in the live document.

Every function takes both texts and returns the pair ``(live, archive)``.
Like the other mutations they never raise for a bad target; they return both
documents unchanged.
"""

import copy
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from mdtasker.models.task import HeadingRef
from mdtasker.parsers.blocks import (
    Block,
    DocumentTree,
    HeadingBlock,
    ListBlock,
    ListItem,
    ParagraphBlock,
    insert_blocks,
    parse_blocks,
    remove_blocks,
)
from mdtasker.parsers.document_parser import DEFAULT_PROJECT_TITLE, parse_tasks
from mdtasker.mutations.hierarchy import find_or_create_list, find_or_create_path, heading_path_for
from mdtasker.utils.dates import today_iso

log = logging.getLogger(__name__)

ARCHIVED_ON_PREFIX = "_Archived on:"

DocumentPair = Tuple[str, str]


def _archived_marker(day: str) -> ParagraphBlock:
    return ParagraphBlock(lines=[f"{ARCHIVED_ON_PREFIX} {day}_"])


def _is_archived_marker(block: Block) -> bool:
    return isinstance(block, ParagraphBlock) and block.text.startswith(ARCHIVED_ON_PREFIX)


def _section_content(section: List[Block]) -> List[Block]:
    """Drop the heading that opens a section; its path is rebuilt on the other side."""
    if section and isinstance(section[0], HeadingBlock):
        return section[1:]
    return section


def archive_section(live: str, archive: str, start: int, end: int,
                    today: Optional[str] = None) -> DocumentPair:
    """
    Move the section within ``start..end`` of the live document to the archive.

    The content is filed under the section's heading path, followed by an
    ``_Archived on: YYYY-MM-DD_`` line.
    """
    tree = parse_blocks(live)
    span = tree.block_range(start, end)
    if span is None:
        log.debug("Nothing to archive in %d..%d", start, end)
        return live, archive

    path = heading_path_for(tree, span.start) or [HeadingRef(DEFAULT_PROJECT_TITLE, 1)]
    content = _section_content(remove_blocks(tree, span))
    if content and not content[-1].blank_after:
        content[-1].blank_after = [""]
    content.append(_archived_marker(today or today_iso()))

    archive_tree = parse_blocks(archive)
    index = find_or_create_path(archive_tree, path)
    insert_blocks(archive_tree, index, content)

    log.info("Archived section %s (lines %d-%d)", " > ".join(ref.text for ref in path), start, end)
    return tree.render(), archive_tree.render()


def _content_index(tree: DocumentTree, path: List[HeadingRef]) -> int:
    """Block index after the path heading and any paragraphs directly under it."""
    index = find_or_create_path(tree, path)
    while index < len(tree.blocks) and isinstance(tree.blocks[index], ParagraphBlock):
        index += 1
    return index


def restore_section(live: str, archive: str, start: int, end: int) -> DocumentPair:
    """
    Move the archived section within ``start..end`` back into the live document.

    Each block goes back under its own heading path, so sub-sections keep their
    tasks. List items are appended to the list under the matching live path (or
    a new list there); paragraphs go in front of it. Archive markers are dropped.
    """
    archive_tree = parse_blocks(archive)
    span = archive_tree.block_range(start, end)
    if span is None:
        log.debug("Nothing to restore in %d..%d", start, end)
        return live, archive
    path = heading_path_for(archive_tree, span.start)
    if not path:
        log.debug("Archived block at %d has no heading path", start)
        return live, archive

    paths = [heading_path_for(archive_tree, i) for i in span]
    removed = remove_blocks(archive_tree, span)

    tree = parse_blocks(live)
    for block, block_path in zip(removed, paths):
        if _is_archived_marker(block):
            continue
        if isinstance(block, HeadingBlock):
            find_or_create_path(tree, block_path)
        elif isinstance(block, ListBlock):
            block.items[-1].blank_after = []
            index = _content_index(tree, block_path)
            target = tree.blocks[index] if index < len(tree.blocks) else None
            if isinstance(target, ListBlock):
                target.items.extend(block.items)
            else:
                insert_blocks(tree, index, [ListBlock(items=block.items, kind=block.kind)])
        else:
            insert_blocks(tree, _content_index(tree, block_path), [block])

    log.info("Restored section %s", " > ".join(ref.text for ref in path))
    return tree.render(), archive_tree.render()


def archive_tasks(live: str, archive: str, task_lines: Iterable[int]) -> DocumentPair:
    """
    Move individual tasks (with their updates) to the archive.

    Each task lands in the list under its own heading path in the archive.
    Lists left empty in the live document are removed.
    """
    wanted = set(task_lines)
    tasks = {t.line_index: t for t in parse_tasks(live) if t.line_index in wanted}
    if not tasks:
        log.debug("No tasks on lines %s", sorted(wanted))
        return live, archive

    tree = parse_blocks(live)
    extracted: Dict[Tuple[HeadingRef, ...], List[ListItem]] = {}
    for block in tree.blocks:
        if not isinstance(block, ListBlock):
            continue
        kept = []
        for item in block.items:
            task = tasks.get(item.start)
            if task is None:
                kept.append(item)
                continue
            path = tuple(task.heading_path) or (HeadingRef(DEFAULT_PROJECT_TITLE, 1),)
            moved = copy.copy(item)
            moved.blank_after = []
            extracted.setdefault(path, []).append(moved)
        block.items = kept

    for i in range(len(tree.blocks) - 1, -1, -1):
        block = tree.blocks[i]
        if isinstance(block, ListBlock) and not block.items:
            remove_blocks(tree, range(i, i + 1))

    archive_tree = parse_blocks(archive)
    for path, items in extracted.items():
        find_or_create_list(archive_tree, path).items.extend(items)

    log.info("Archived %d task(s)", sum(len(items) for items in extracted.values()))
    return tree.render(), archive_tree.render()
