from .lines import classify_line, split_lines, tokenize
from .tokens import TaskTokens, extract_tokens, render_tokens
from .document_parser import find_task, group_tasks, parse_document, parse_headings, parse_tasks
from .blocks import DocumentTree, parse_blocks, render_blocks

__all__ = [
    "classify_line",
    "split_lines",
    "tokenize",
    "TaskTokens",
    "extract_tokens",
    "render_tokens",
    "find_task",
    "group_tasks",
    "parse_document",
    "parse_headings",
    "parse_tasks",
    "DocumentTree",
    "parse_blocks",
    "render_blocks",
]
