from __future__ import annotations

from typing import Any


def list_response(items: list[Any], limit: int, offset: int) -> dict[str, Any]:
    return {"items": items, "count": len(items), "limit": limit, "offset": offset}


class ListResponseMixin:
    """Adds ``list_response`` to managers exposing a ``list`` method.

    ``list_response`` takes the same arguments as ``list``; ``limit`` and
    ``offset`` must be passed by keyword.
    """

    def list_response(self, *args, limit: int = 50, offset: int = 0, **kwargs) -> dict[str, Any]:
        items = self.list(*args, limit=limit, offset=offset, **kwargs)
        return list_response(items, limit, offset)
