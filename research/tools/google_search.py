from __future__ import annotations

from typing import Any, Dict


def build_google_search_tool() -> Dict[str, Any]:
    """Gemini's built-in Google Search grounding tool.

    Passed to ``bind_tools``; the provider runs the search itself and attaches
    grounding metadata (chunks and supports) to the response.
    """
    return {"google_search": {}}
