"""build-publish: per-variant build numbering, changelogs and release notifications."""

from __future__ import annotations

__version__ = "0.1.0"
