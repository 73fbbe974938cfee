from research.tools.google_search import build_google_search_tool

__all__ = ["build_google_search_tool"]
