# Shared FastAPI dependencies for the API layer.
# Created: 2026-10-19

from __future__ import annotations

from fastapi import Request

from soundshelf.storage.protocol import StorageBackend


def get_storage(request: Request) -> StorageBackend:
    """The backend built once by create_app()."""
    return request.app.state.storage
