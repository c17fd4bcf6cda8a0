"""Build ordering and archive manifest generation for multi-target applications."""
from __future__ import annotations

__version__ = "1.0.0"

from .cli import main  # noqa: E402

__all__ = ["__version__", "main"]
