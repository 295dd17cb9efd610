"""
Snippet assembly

Runs one directive through the pipeline

    meta string -> Directive -> SourceFile -> ExtractedSlice
                -> HighlightAnnotation -> Snippet | Diagnostic

and runs many directives concurrently. This is the only place where the
per-stage exceptions (SnippetError subclasses) are turned into Diagnostic
values: each directive fails alone, and the rest of the batch continues.

Example:
    >>> roots = RootMap({"<rootDir>": "/path/to/repo"})
    >>> assembler = SnippetAssembler.session_create(roots)
    >>> result = assembler.assemble("ts {3} file=<rootDir>/src/a.ts#L2-L4")
    >>> result.snippet.highlightedRelativeLines
    frozenset({2})
"""

import contextvars
import dataclasses
from concurrent.futures import ThreadPoolExecutor
from typing import FrozenSet, Iterable, List, Optional, Tuple

from ..models.directives import Diagnostic, Directive
from ..models.snippets import (
    ExtractedSlice,
    FenceBlock,
    PageReport,
    Snippet,
    SnippetResult,
)
from .errors import HighlightOutsideRangeError, SnippetError
from .extractor import directive_extract
from .fences import blocks_scan
from .highlight import highlights_annotate, inlineMarkers_strip, outsideRange_diagnostic
from .languages import language_resolve
from .log import LOG
from .parser import DirectiveParser
from .resolver import RootMap, SourceCache, SourceResolver


class SnippetAssembler:
    """
    Produces a Snippet or Diagnostic for every directive of a build session

    Holds the session's SourceResolver (and through it the SourceCache), so
    one assembler corresponds to one build.
    """

    def __init__(
        self,
        resolver: SourceResolver,
        parser: Optional[DirectiveParser] = None,
        highlightOutsideRangeFatal: Optional[bool] = None,
        maxWorkers: Optional[int] = None,
    ) -> None:
        """
        Args:
            resolver: Source resolver bound to the session cache
            parser: Directive parser (defaults to one accepting the
                    resolver's root tokens)
            highlightOutsideRangeFatal: Promote HighlightOutsideRange to an
                                        error (defaults to settings)
            maxWorkers: Concurrency bound for batches (defaults to settings)
        """
        from ..config import appsettings

        self.resolver = resolver
        self.parser = parser or DirectiveParser(rootTokens=resolver.roots.tokens)
        self.highlightOutsideRangeFatal = (
            appsettings.highlight_outside_range_fatal
            if highlightOutsideRangeFatal is None
            else highlightOutsideRangeFatal
        )
        self.maxWorkers = appsettings.max_workers if maxWorkers is None else maxWorkers
        if self.maxWorkers < 1:
            raise ValueError(f"maxWorkers must be at least 1, got {self.maxWorkers}")

    @classmethod
    def session_create(
        cls,
        roots: RootMap,
        highlightOutsideRangeFatal: Optional[bool] = None,
        maxWorkers: Optional[int] = None,
        cache: Optional[SourceCache] = None,
    ) -> "SnippetAssembler":
        """Start a build session with a fresh (or given) SourceCache"""
        resolver = SourceResolver(roots, cache if cache is not None else SourceCache())
        return cls(
            resolver,
            highlightOutsideRangeFatal=highlightOutsideRangeFatal,
            maxWorkers=maxWorkers,
        )

    def assemble(
        self,
        raw: str,
        body: str = "",
        page: Optional[str] = None,
        pageLine: Optional[int] = None,
    ) -> SnippetResult:
        """
        Resolve one fence

        Args:
            raw: Fence metadata string
            body: Literal block content (used only for inline blocks)
            page: Originating page, attached to diagnostics
            pageLine: Page line of the opening fence

        Returns:
            SnippetResult holding either a Snippet or the first Diagnostic
        """
        try:
            directive = self.parser.parse(raw)
        except SnippetError as e:
            return self.failure_make(raw, e, page, pageLine)
        return self.directive_assemble(directive, body, page, pageLine)

    def directive_assemble(
        self,
        directive: Directive,
        body: str = "",
        page: Optional[str] = None,
        pageLine: Optional[int] = None,
    ) -> SnippetResult:
        """Resolve an already parsed directive into a SnippetResult"""
        try:
            snippet = self.snippet_build(directive, body)
        except SnippetError as e:
            return self.failure_make(directive.raw, e, page, pageLine, directive)

        if snippet.warnings:
            snippet = dataclasses.replace(
                snippet,
                warnings=tuple(
                    dataclasses.replace(w, page=page, pageLine=pageLine)
                    for w in snippet.warnings
                ),
            )
        return SnippetResult(
            raw=directive.raw,
            snippet=snippet,
            directive=directive,
            page=page,
            pageLine=pageLine,
        )

    def snippet_build(self, directive: Directive, body: str = "") -> Snippet:
        """
        Build the Snippet for a directive

        Inline blocks bypass the resolver and extractor: their body is the
        code, minus any highlight comments, and their marker numbers refer
        to the block's own lines. File blocks keep the requested lines
        verbatim.

        Raises:
            SnippetError: From whichever stage failed first
        """
        highlightedLines: FrozenSet[int] = directive.highlightedLines

        if directive.isInline:
            code, commentLines = inlineMarkers_strip(body)
            extracted = ExtractedSlice(lines=tuple(code.split("\n")), firstOriginalLineNumber=1)
            highlightedLines = highlightedLines | commentLines
        else:
            source = self.resolver.resolve(directive)
            extracted = directive_extract(source, directive)

        annotation = highlights_annotate(extracted, highlightedLines)
        warnings: List[Diagnostic] = []

        outside = outsideRange_diagnostic(
            extracted, annotation, directive.raw, directive.sourcePath
        )
        if outside is not None:
            if self.highlightOutsideRangeFatal:
                raise HighlightOutsideRangeError(
                    outside.message, raw=directive.raw, sourcePath=directive.sourcePath
                )
            warnings.append(outside)

        lexer, unknown = language_resolve(
            directive.language, raw=directive.raw, sourcePath=directive.sourcePath
        )
        if unknown is not None:
            warnings.append(unknown)

        return Snippet(
            language=directive.language,
            code="\n".join(extracted.lines),
            highlightedRelativeLines=annotation.highlightedRelativeLines,
            lexer=lexer,
            sourcePath=directive.sourcePath,
            firstOriginalLineNumber=extracted.firstOriginalLineNumber,
            attributes=dict(directive.attributes),
            warnings=tuple(warnings),
        )

    def block_assemble(self, block: FenceBlock) -> SnippetResult:
        return self.assemble(block.meta, block.body, page=block.page, pageLine=block.pageLine)

    def batch_assemble(self, blocks: Iterable[FenceBlock]) -> List[SnippetResult]:
        """
        Resolve many fences concurrently

        Work is spread over at most maxWorkers threads. Results come back in
        input order; each worker runs in a copy of the caller's context so
        LOG() verbosity carries over.

        Args:
            blocks: Fence blocks, from any number of pages

        Returns:
            One SnippetResult per block, in the same order
        """
        blocks = list(blocks)
        if not blocks:
            return []

        with ThreadPoolExecutor(max_workers=min(self.maxWorkers, len(blocks))) as pool:
            futures = [
                pool.submit(contextvars.copy_context().run, self.block_assemble, block)
                for block in blocks
            ]
            return [future.result() for future in futures]

    def pages_assemble(self, pages: Iterable[Tuple[str, str]]) -> List[PageReport]:
        """
        Resolve every fence of several pages in one concurrent batch

        Args:
            pages: (page name, page text) pairs

        Returns:
            PageReports in input order, each listing its fences in page order
        """
        reports: List[PageReport] = []
        blocks: List[FenceBlock] = []
        owners: List[int] = []

        for page, text in pages:
            page_blocks = blocks_scan(text, page=page)
            LOG(f"{page}: {len(page_blocks)} code blocks", level=2)
            owners.extend([len(reports)] * len(page_blocks))
            blocks.extend(page_blocks)
            reports.append(PageReport(page=page))

        for owner, result in zip(owners, self.batch_assemble(blocks)):
            reports[owner].results.append(result)

        return reports

    def failure_make(
        self,
        raw: str,
        error: SnippetError,
        page: Optional[str],
        pageLine: Optional[int],
        directive: Optional[Directive] = None,
    ) -> SnippetResult:
        diagnostic = error.diagnostic_make(page=page, pageLine=pageLine)
        if not diagnostic.directive:
            diagnostic = dataclasses.replace(diagnostic, directive=raw)
        LOG(f"Directive failed: {diagnostic}", level=3)
        return SnippetResult(
            raw=raw,
            diagnostic=diagnostic,
            directive=directive,
            page=page,
            pageLine=pageLine,
        )
