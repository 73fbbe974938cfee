from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from config.settings import Settings, get_settings
from research.core.credentials import resolve_credential
from research.core.formatter import format_response
from research.core.memory import Session, SessionStore
from research.core.sources import Source, extract_sources
from research.errors import (
    CredentialRejected,
    ProviderFailure,
    SearchError,
    ValidationError,
)
from research.executor import GroundedQueryExecutor, QueryResult


logger = logging.getLogger(__name__)

CREDENTIAL_SIGNALS = (
    "api key",
    "api_key",
    "apikey",
    "permission denied",
    "permission_denied",
    "unauthenticated",
)


@dataclass
class FollowUpResult:
    summary: str
    sources: List[Source] = field(default_factory=list)


@dataclass
class SearchResult(FollowUpResult):
    session_id: str = ""


def _is_credential_error(exc: Exception) -> bool:
    text = str(exc).lower()
    return any(signal in text for signal in CREDENTIAL_SIGNALS)


def _require(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(message)
    return value.strip()


class SearchService:
    """Start searches and continue them with follow-up questions."""

    def __init__(
        self,
        executor: Optional[GroundedQueryExecutor] = None,
        store: Optional[SessionStore] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._executor = executor or GroundedQueryExecutor(settings=self._settings)
        self.store = store or SessionStore(id_length=self._settings.session_id_length)

    async def start_search(
        self, query: Optional[str], api_key: Optional[str] = None
    ) -> SearchResult:
        query = _require(query, "Query parameter 'q' is required")
        credential = resolve_credential(api_key, self._settings.google_api_key)
        logger.info(
            "Search: query_len=%s request_key_set=%s", len(query), bool(api_key)
        )

        result = await self._run(None, query, credential)
        summary, sources = self._assemble(result)

        session_id = self.store.create()
        self.store.put(session_id, result.session)
        logger.info("Search complete: session=%s sources=%s", session_id, len(sources))
        return SearchResult(summary=summary, sources=sources, session_id=session_id)

    async def continue_follow_up(
        self,
        session_id: Optional[str],
        query: Optional[str],
        api_key: Optional[str] = None,
    ) -> FollowUpResult:
        if not (session_id and session_id.strip()) or not (query and query.strip()):
            raise ValidationError("Both sessionId and query are required")
        session_id = session_id.strip()
        query = query.strip()

        self.store.get(session_id)
        async with self.store.lock(session_id):
            session = self.store.get(session_id)
            credential = resolve_credential(
                api_key, session.credential, self._settings.google_api_key
            )
            logger.info(
                "Follow-up: session=%s turns=%s query_len=%s",
                session_id,
                session.turns,
                len(query),
            )
            result = await self._run(session, query, credential)
            summary, sources = self._assemble(result)
            self.store.put(session_id, result.session)

        logger.info("Follow-up complete: session=%s sources=%s", session_id, len(sources))
        return FollowUpResult(summary=summary, sources=sources)

    async def _run(
        self, session: Optional[Session], query: str, credential: str
    ) -> QueryResult:
        try:
            return await self._executor.query(session, query, credential)
        except SearchError:
            raise
        except Exception as exc:
            if _is_credential_error(exc):
                logger.warning("Model rejected API key: %s", exc)
                raise CredentialRejected(str(exc)) from exc
            logger.exception("Model request failed")
            raise ProviderFailure(
                str(exc) or "An error occurred while processing your search"
            ) from exc

    @staticmethod
    def _assemble(result: QueryResult):
        summary = format_response(result.answer_text)
        sources = extract_sources(result.grounding_metadata)
        return summary, sources
