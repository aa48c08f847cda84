from __future__ import annotations

from typing import List


def normalize_path(raw: str) -> List[str]:
    """Split ``raw`` on ``/`` into lower-cased, non-empty segments.

    ``normalize_path("/Foo//Bar/")`` returns ``["foo", "bar"]``.
    """

    return [segment.lower() for segment in raw.split("/") if segment]


__all__ = ["normalize_path"]
