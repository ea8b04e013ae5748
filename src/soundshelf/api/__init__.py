# HTTP API package.
# Created: 2026-10-19

from soundshelf.api.files import router

__all__ = ["router"]
