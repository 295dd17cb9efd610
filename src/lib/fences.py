"""
Scanner for fenced code blocks in Markdown / MDX pages

Finds ``` and ~~~ fences, returning each block's metadata string (everything
after the fence characters), its literal body, and the page line of the
opening fence.

Fence rules:
- An opening fence is 3+ backticks or tildes, after any indentation (MDX
  pages indent code blocks inside JSX components)
- Backtick fence metadata may not contain backticks
- The closing fence uses the same character, is at least as long as the
  opening fence, and has nothing but whitespace after it
- Body lines lose up to the opening fence's indentation
- An unclosed fence runs to the end of the page

Example:
    >>> blocks = blocks_scan("# Title\\n```ts file=<rootDir>/a.ts\\n```\\n")
    >>> blocks[0].meta, blocks[0].pageLine
    ('ts file=<rootDir>/a.ts', 2)
"""

import re
from typing import List, Optional

from ..models.snippets import FenceBlock


OPENING_FENCE_PATTERN = re.compile(r"^(?P<indent>[ \t]*)(?P<fence>`{3,}|~{3,})(?P<meta>.*)$")


def indent_strip(line: str, width: int) -> str:
    """Remove up to width leading whitespace characters from a line"""
    index = 0
    while index < width and index < len(line) and line[index] in " \t":
        index += 1
    return line[index:]


def fence_closes(line: str, char: str, length: int) -> bool:
    stripped = line.strip()
    if len(stripped) < length:
        return False
    return stripped == char * len(stripped)


def blocks_scan(text: str, page: Optional[str] = None) -> List[FenceBlock]:
    """
    Find every fenced code block in a page

    Args:
        text: Page source
        page: Page name recorded on each block

    Returns:
        FenceBlocks in page order
    """
    lines = text.split("\n")
    blocks: List[FenceBlock] = []
    index = 0

    while index < len(lines):
        opening = OPENING_FENCE_PATTERN.match(lines[index])
        if not opening:
            index += 1
            continue

        fence = opening.group("fence")
        meta = opening.group("meta").strip()
        if fence[0] == "`" and "`" in meta:
            # Inline code span such as ```foo``` on one line, not a fence
            index += 1
            continue

        width = len(opening.group("indent"))
        body: List[str] = []
        cursor = index + 1
        while cursor < len(lines) and not fence_closes(lines[cursor], fence[0], len(fence)):
            body.append(indent_strip(lines[cursor], width))
            cursor += 1

        blocks.append(
            FenceBlock(meta=meta, body="\n".join(body), pageLine=index + 1, page=page)
        )
        index = cursor + 1

    return blocks
