"""issue-archive core library.

This package normalizes a directory of archived HTML issues into a
year-grouped JSON index and makes the archive self-contained by caching
remote images locally.

Repo rules:
- Issue files are only ever modified to rewrite image ``src`` values.
- Every batch job must be safe to re-run.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
