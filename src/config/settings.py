"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use FENCELINE_ prefix (e.g., FENCELINE_MAX_WORKERS=4).

Settings can also be loaded from a .env file in the project root.
"""

import re
from typing import List, Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


ROOT_TOKEN_PATTERN = re.compile(r"^<[A-Za-z_][\w-]*>$")


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use FENCELINE_ prefix.

    Examples:
        FENCELINE_ROOT_TOKEN=<siteDir>
        FENCELINE_MAX_WORKERS=16
        FENCELINE_HIGHLIGHT_OUTSIDE_RANGE_FATAL=true
    """

    model_config = SettingsConfigDict(
        env_prefix="FENCELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Directive configuration
    root_token: str = Field(
        default="<rootDir>",
        description="Token standing for the default root directory in file= paths",
    )

    fallback_language: str = Field(
        default="text",
        description="Language used for fences without a language tag or with an unknown one",
    )

    # Resolution configuration
    max_workers: int = Field(
        default=8,
        ge=1,
        description="Upper bound on directives resolved concurrently",
    )

    source_encoding: str = Field(
        default="utf-8",
        description="Encoding used to read source files and documentation pages",
    )

    max_highlight_span: int = Field(
        default=10000,
        ge=1,
        description="Largest line count a single highlight marker range such as {1-40} may cover",
    )

    highlight_outside_range_fatal: bool = Field(
        default=False,
        description="Treat highlight lines outside the extracted range as errors instead of warnings",
    )

    # Build configuration
    page_patterns: List[str] = Field(
        default_factory=lambda: ["*.md", "*.mdx"],
        description="Glob patterns of documentation pages scanned under inputdir",
    )

    report_filename: str = Field(
        default="snippets.yaml",
        description="Name of the snippet report written to outputdir",
    )

    def rootToken_is(self, token: str) -> bool:
        """
        Check whether a string has the shape of a root token.

        Args:
            token: Candidate token

        Returns:
            True for strings like "<rootDir>" or "<site-dir>"

        Example:
            >>> settings = AppSettings()
            >>> settings.rootToken_is("<rootDir>")
            True
            >>> settings.rootToken_is("rootDir")
            False
        """
        return bool(ROOT_TOKEN_PATTERN.match(token))

    def rootBinding_split(self, binding: str) -> Optional[Tuple[str, str]]:
        """
        Split a TOKEN=DIR command line binding.

        A bare name is wrapped in angle brackets so "--root site=docs" and
        "--root <site>=docs" are equivalent.

        Args:
            binding: Raw binding string

        Returns:
            (token, directory) or None if the binding is malformed

        Example:
            >>> settings = AppSettings()
            >>> settings.rootBinding_split("<site>=docs")
            ('<site>', 'docs')
            >>> settings.rootBinding_split("site=docs")
            ('<site>', 'docs')
        """
        if "=" not in binding:
            return None
        token, directory = binding.split("=", 1)
        token = token.strip()
        directory = directory.strip()
        if not token or not directory:
            return None
        if not token.startswith("<"):
            token = f"<{token}>"
        if not self.rootToken_is(token):
            return None
        return token, directory


# Singleton instance - import this in your code
appsettings = AppSettings()
