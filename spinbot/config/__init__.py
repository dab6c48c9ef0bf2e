from __future__ import annotations

from .settings import Settings

# Settings are loaded explicitly by main() so tests can import without BOT_TOKEN.

__all__ = ["Settings"]
