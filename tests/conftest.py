"""
Shared fixtures: a small repository of source files bound to <rootDir>
"""

from pathlib import Path

import pytest

from fenceline.lib.resolver import RootMap, SourceCache, SourceResolver
from fenceline.lib.assembler import SnippetAssembler


EIGHT_LINES = [
    "import { Effect } from 'effect'",
    "",
    "const program = Effect.gen(function* () {",
    "  const queue = yield* Queue.bounded<number>(100)",
    "  yield* Queue.offer(queue, 1)",
    "  const value = yield* Queue.take(queue)",
    "  return value",
    "})",
]


def numbered(count: int) -> str:
    """File content with lines 'line 1' .. 'line N', newline terminated"""
    return "".join(f"line {n}\n" for n in range(1, count + 1))


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Repository checkout with a few source files"""
    root = tmp_path / "repo"
    (root / "src").mkdir(parents=True)
    (root / "src" / "queue.ts").write_text("\n".join(EIGHT_LINES) + "\n", encoding="utf-8")
    (root / "src" / "long.ts").write_text(numbered(25), encoding="utf-8")
    (root / "src" / "indented.py").write_text(
        "def f():\n    if True:\n        return 1  \n\treturn 2\n", encoding="utf-8"
    )
    (root / "src" / "empty.ts").write_text("", encoding="utf-8")
    (tmp_path / "outside.ts").write_text("secret\n", encoding="utf-8")
    return root


@pytest.fixture
def roots(repo: Path) -> RootMap:
    return RootMap({"<rootDir>": repo})


@pytest.fixture
def resolver(roots: RootMap) -> SourceResolver:
    return SourceResolver(roots, SourceCache())


@pytest.fixture
def assembler(roots: RootMap) -> SnippetAssembler:
    return SnippetAssembler.session_create(roots, highlightOutsideRangeFatal=False, maxWorkers=4)
