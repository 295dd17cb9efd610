"""
Source resolution and the build-session file cache

A SourceResolver turns a Directive's (rootToken, sourcePath) pair into a
SourceFile. Root tokens are looked up in a RootMap; loaded files live in a
SourceCache that is created at build start, passed in explicitly, and thrown
away at build end. Nothing in this module keeps module-level state.

Concurrency:
    The cache may be shared by many worker threads. A registry lock protects
    the map of per-path guards; each path's guard makes sure the file is read
    at most once, and every concurrent caller receives the same SourceFile.
"""

import os
import threading
from pathlib import Path
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple, Union

import yaml

from ..models.directives import Directive, ParseFailure
from ..models.snippets import SourceFile
from .errors import DirectiveSyntaxError, SourceNotFoundError
from .log import LOG


class RootMapError(Exception):
    """Raised when root token configuration is invalid"""
    pass


class RootMap:
    """
    Mapping of root tokens (e.g. "<rootDir>") to absolute directories

    Directories are resolved with realpath once, so containment checks in the
    resolver compare like with like.
    """

    def __init__(self, roots: Optional[Mapping[str, Union[str, Path]]] = None):
        from ..config import appsettings

        self.settings = appsettings
        self.roots: Dict[str, Path] = {}
        for token, directory in (roots or {}).items():
            self.bind(token, directory)

    def bind(self, token: str, directory: Union[str, Path]) -> None:
        """
        Bind a token to a directory

        Raises:
            RootMapError: If the token is malformed or the directory is missing
        """
        if not self.settings.rootToken_is(token):
            raise RootMapError(f"Root token '{token}' must look like <name>")
        resolved = Path(os.path.realpath(Path(directory).expanduser()))
        if not resolved.is_dir():
            raise RootMapError(f"Root {token} points to a missing directory: {resolved}")
        self.roots[token] = resolved

    def get(self, token: str) -> Optional[Path]:
        return self.roots.get(token)

    @property
    def tokens(self) -> Tuple[str, ...]:
        return tuple(self.roots)

    def __contains__(self, token: object) -> bool:
        return token in self.roots

    def __iter__(self) -> Iterator[str]:
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)

    @classmethod
    def file_load(cls, path: Union[str, Path], base: Optional[Path] = None) -> "RootMap":
        """
        Load token bindings from a YAML mapping

        Relative directories are taken relative to the YAML file's own
        directory unless base is given.

        Example file:
            <rootDir>: ..
            <examples>: ../examples

        Raises:
            RootMapError: If the file is missing, unparsable or not a mapping
        """
        config_path = Path(path)
        if not config_path.is_file():
            raise RootMapError(f"Roots file not found: {config_path}")
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise RootMapError(f"Failed to parse {config_path}: {e}")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise RootMapError(f"{config_path} must contain a mapping of token: directory")

        anchor = base or config_path.parent
        roots: Dict[str, Path] = {}
        for token, directory in config.items():
            directory_path = Path(str(directory)).expanduser()
            if not directory_path.is_absolute():
                directory_path = anchor / directory_path
            roots[str(token)] = directory_path
        return cls(roots)


def lines_split(text: str) -> Tuple[str, ...]:
    """
    Split file content into lines without terminators

    One trailing newline ends the last line instead of starting an empty one,
    and an empty file has no lines. Carriage returns and other separators are
    kept verbatim inside lines.

    Example:
        "a\\nb\\n" -> ("a", "b")
        "a\\n\\n"  -> ("a", "")
    """
    if not text:
        return ()
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return tuple(lines)


class SourceCache:
    """
    Build-session cache of SourceFile objects keyed by normalized absolute path

    Lifecycle: create one per build, share it across every directive and
    page of that build, discard it when the build ends. Entries are never
    invalidated; the build runs against a static checkout.

    Attributes:
        reads: Number of times the loader was invoked
    """

    def __init__(
        self,
        loader: Optional[Callable[[str], str]] = None,
        encoding: Optional[str] = None,
    ) -> None:
        """
        Args:
            loader: Callable returning the text of a path (defaults to reading
                    the file from disk)
            encoding: Text encoding used by the default loader
        """
        from ..config import appsettings

        self.encoding = encoding or appsettings.source_encoding
        self.loader: Callable[[str], str] = loader or self.file_read
        self.reads = 0
        self._files: Dict[str, SourceFile] = {}
        self._guards: Dict[str, threading.Lock] = {}
        self._registry = threading.Lock()

    def file_read(self, path: str) -> str:
        """Read a file with its line endings untouched (no universal newlines)"""
        return Path(path).read_bytes().decode(self.encoding)

    def get(self, path: str) -> SourceFile:
        """
        Return the SourceFile for a normalized absolute path, loading it once

        Args:
            path: Normalized absolute path (the cache key)

        Returns:
            The cached SourceFile; the same object for every caller

        Raises:
            Whatever the loader raises. No entry is stored on failure.
        """
        cached = self._files.get(path)
        if cached is not None:
            return cached

        with self._registry:
            guard = self._guards.setdefault(path, threading.Lock())

        with guard:
            cached = self._files.get(path)
            if cached is not None:
                return cached

            with self._registry:
                self.reads += 1
            text = self.loader(path)
            source = SourceFile(path=path, lines=lines_split(text))
            self._files[path] = source
            LOG(f"Loaded {path} ({source.lineCount} lines)", level=3)
            return source

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def __len__(self) -> int:
        return len(self._files)


class SourceResolver:
    """
    Resolves directives against configured roots through a SourceCache
    """

    def __init__(self, roots: RootMap, cache: SourceCache) -> None:
        self.roots = roots
        self.cache = cache

    def path_resolve(self, directive: Directive) -> Path:
        """
        Compute the normalized absolute path a directive refers to

        Args:
            directive: Directive with a sourcePath

        Returns:
            Absolute path inside the directive's root

        Raises:
            DirectiveSyntaxError: For unknown roots or paths escaping the root
        """
        if directive.sourcePath is None:
            raise ValueError("Inline directives have no source path to resolve")

        token = directive.rootToken or self.roots.settings.root_token
        root = self.roots.get(token)
        if root is None:
            raise DirectiveSyntaxError(
                f"{ParseFailure.UNKNOWN_ROOT.value}: no directory is configured for {token}",
                raw=directive.raw,
                reason=ParseFailure.UNKNOWN_ROOT,
                sourcePath=directive.sourcePath,
            )

        resolved = Path(os.path.realpath(root / directive.sourcePath))
        if resolved != root and not resolved.is_relative_to(root):
            raise DirectiveSyntaxError(
                f"{ParseFailure.PATH_ESCAPES_ROOT.value}: "
                f"'{directive.sourcePath}' resolves outside {token}",
                raw=directive.raw,
                reason=ParseFailure.PATH_ESCAPES_ROOT,
                sourcePath=directive.sourcePath,
            )
        return resolved

    def resolve(self, directive: Directive) -> SourceFile:
        """
        Return the SourceFile a directive refers to

        Raises:
            DirectiveSyntaxError: For unknown roots or paths escaping the root
            SourceNotFoundError: When no readable file exists at the path
        """
        path = self.path_resolve(directive)

        if not path.is_file():
            raise SourceNotFoundError(
                f"{directive.sourcePath} not found under {directive.rootToken} ({path})",
                raw=directive.raw,
                sourcePath=directive.sourcePath,
            )

        try:
            return self.cache.get(str(path))
        except (OSError, UnicodeDecodeError) as e:
            raise SourceNotFoundError(
                f"{directive.sourcePath} could not be read: {e}",
                raw=directive.raw,
                sourcePath=directive.sourcePath,
            ) from e
