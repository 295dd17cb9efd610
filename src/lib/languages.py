"""
Language tag resolution

Maps fence language tags onto Pygments lexer aliases so the external
highlighter receives a name it understands ("ts" -> "typescript").
Unknown tags fall back to the configured fallback language and produce an
UnknownLanguage warning instead of failing the directive.
"""

from functools import lru_cache
from typing import Optional, Tuple

from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from ..models.directives import Diagnostic, ErrorKind, Severity


@lru_cache(maxsize=256)
def lexer_alias(language: str) -> Optional[str]:
    """
    Return the canonical Pygments alias for a language tag

    Args:
        language: Tag as written in the fence

    Returns:
        First alias of the matching lexer, or None if Pygments has no lexer

    Example:
        >>> lexer_alias("ts")
        'typescript'
        >>> lexer_alias("no-such-language") is None
        True
    """
    try:
        lexer = get_lexer_by_name(language.lower())
    except ClassNotFound:
        return None
    aliases = getattr(lexer, "aliases", None) or [language.lower()]
    return aliases[0]


def language_resolve(
    language: str,
    raw: str = "",
    sourcePath: Optional[str] = None,
    fallback: Optional[str] = None,
) -> Tuple[str, Optional[Diagnostic]]:
    """
    Resolve a fence language to a lexer alias

    Args:
        language: Tag as written in the fence
        raw: Raw directive text, for the warning
        sourcePath: Directive path, for the warning
        fallback: Alias used for unknown tags (defaults to settings)

    Returns:
        (lexer alias, UnknownLanguage warning or None)
    """
    from ..config import appsettings

    fallback = fallback or appsettings.fallback_language
    alias = lexer_alias(language) if language else None
    if alias is not None:
        return alias, None

    warning = Diagnostic(
        kind=ErrorKind.UNKNOWN_LANGUAGE,
        sourcePath=sourcePath,
        directive=raw,
        message=f"no lexer for language '{language}', using '{fallback}'",
        severity=Severity.WARNING,
    )
    return fallback, warning
