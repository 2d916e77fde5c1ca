"""
Loader configuration with resource limits.

These limits prevent pathological inputs from causing OOM crashes. The
defaults are generous for normal usage but will catch genuinely
problematic files.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoaderConfig(BaseModel):
    """
    Configuration for the plan loader with resource limits.

    Attributes:
        max_file_size_mb: Maximum file size to load.
        max_nodes: Maximum number of operators across all statements.
        max_depth: Maximum operator tree depth. Pydantic validates nested
            models recursively, so extremely deep documents are refused
            before validation.

    Example:
        # Stricter limits for a web API
        config = LoaderConfig(max_file_size_mb=10, max_nodes=1000)
    """

    max_file_size_mb: float = Field(
        default=100.0,
        gt=0,
        description="Maximum file size in megabytes",
    )

    max_nodes: int = Field(
        default=50_000,
        gt=0,
        description="Maximum number of plan operators",
    )

    max_depth: int = Field(
        default=200,
        gt=0,
        description="Maximum operator tree depth",
    )


DEFAULT_CONFIG = LoaderConfig()

# Stricter limits for untrusted input
STRICT_CONFIG = LoaderConfig(
    max_file_size_mb=10.0,
    max_nodes=5_000,
    max_depth=100,
)
