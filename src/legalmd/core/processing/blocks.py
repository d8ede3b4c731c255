"""Block tag scanning shared by the mixin and template-loop engines.

Blocks open with ``{{#name args}}`` and close with ``{{/name}}``. Matching is
done with a depth-counting stack so nested blocks of the same name pair up
correctly.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional

BLOCK_TAG = re.compile(r"\{\{\s*([#/])\s*([\w.@-]+)([^}]*)\}\}")
ELSE_TAG = re.compile(r"\{\{\s*else(?:\s+if\s+([^}]*?))?\s*\}\}")


@dataclass
class BlockRange:
    """One matched ``{{#name}}...{{/name}}`` block.

    ``start``/``end`` span the whole block including its tags; ``body_start``
    and ``body_end`` span the interior.
    """

    name: str
    args: str
    start: int
    end: int
    body_start: int
    body_end: int
    children: List["BlockRange"] = field(default_factory=list)

    def body(self, content: str) -> str:
        return content[self.body_start:self.body_end]

    def contains(self, start: int, end: int) -> bool:
        return self.start <= start and end <= self.end


def find_blocks(content: str) -> List[BlockRange]:
    """Return top-level blocks (with nested blocks as ``children``).

    Unmatched closing tags are ignored; unclosed opening tags never form a
    block.
    """
    stack: List[BlockRange] = []
    roots: List[BlockRange] = []
    for match in BLOCK_TAG.finditer(content):
        kind, name, args = match.group(1), match.group(2), match.group(3).strip()
        if kind == "#":
            stack.append(BlockRange(name, args, match.start(), -1, match.end(), -1))
            continue
        # Close the innermost open block with this name.
        for depth in range(len(stack) - 1, -1, -1):
            if stack[depth].name == name:
                block = stack[depth]
                unclosed = stack[depth + 1:]
                del stack[depth:]
                block.body_end = match.start()
                block.end = match.end()
                parent: Optional[BlockRange] = stack[-1] if stack else None
                # Unclosed openers inside the block are plain text.
                for opener in unclosed:
                    block.children.extend(opener.children)
                block.children.sort(key=lambda b: b.start)
                (parent.children if parent else roots).append(block)
                break
    for opener in stack:
        roots.extend(opener.children)
    roots.sort(key=lambda b: b.start)
    return roots


def split_else(body: str) -> tuple[str, Optional[str]]:
    """Split a block body on its top-level ``{{else}}`` marker.

    ``{{else}}`` tags inside nested blocks are not considered.
    """
    nested = find_blocks(body)
    for match in ELSE_TAG.finditer(body):
        if match.group(1):
            continue
        if any(b.contains(match.start(), match.end()) for b in nested):
            continue
        return body[:match.start()], body[match.end():]
    return body, None


__all__ = ["BlockRange", "BLOCK_TAG", "ELSE_TAG", "find_blocks", "split_else"]
