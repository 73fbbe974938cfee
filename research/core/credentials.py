from __future__ import annotations

from typing import Optional

from research.errors import MissingCredential


def resolve_credential(*candidates: Optional[str]) -> str:
    """Return the first usable API key among ``candidates``, in order.

    Callers pass the most specific source first (request, then session, then
    environment). Blank strings count as absent.
    """
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    raise MissingCredential()
