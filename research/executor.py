from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from config.settings import Settings, get_settings
from research.core.memory import Session
from research.core.prompt import build_prompt
from research.core.sources import GroundingMetadata, parse_grounding_metadata
from research.errors import ProviderTimeout
from research.tools import build_google_search_tool


logger = logging.getLogger(__name__)

ModelFactory = Callable[[str], BaseChatModel]


def build_chat_model(api_key: str, settings: Optional[Settings] = None) -> BaseChatModel:
    settings = settings or get_settings()
    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=api_key,
        temperature=settings.temperature,
        top_p=settings.top_p,
        top_k=settings.top_k,
        max_output_tokens=settings.max_output_tokens,
    )


@dataclass
class QueryResult:
    answer_text: str
    grounding_metadata: GroundingMetadata
    session: Session


def message_text(message: BaseMessage) -> str:
    """Plain text of a model message; content may be a string or content blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    parts: List[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text") or "")
    return "".join(parts)


def _raw_grounding(message: AIMessage) -> Optional[Dict[str, Any]]:
    metadata = getattr(message, "response_metadata", None) or {}
    return metadata.get("grounding_metadata") or metadata.get("groundingMetadata")


class GroundedQueryExecutor:
    """Send a query to Gemini with Google Search grounding enabled.

    A fresh chat model is built per call from the resolved API key; the
    conversation itself lives in the ``Session`` history, so a follow-up only
    needs the session and a key.
    """

    def __init__(
        self,
        model_factory: Optional[ModelFactory] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._model_factory = model_factory or partial(
            build_chat_model, settings=self._settings
        )
        self._prompt = build_prompt()

    async def query(
        self, session: Optional[Session], text: str, credential: str
    ) -> QueryResult:
        session = session if session is not None else Session(credential=credential)
        llm = self._model_factory(credential).bind_tools([build_google_search_tool()])
        prompt_value = self._prompt.invoke(
            {
                "language": self._settings.response_language,
                "chat_history": list(session.history),
                "input": text,
            }
        )

        logger.info(
            "Grounded query: model=%s history_turns=%s query_len=%s",
            self._settings.gemini_model,
            session.turns,
            len(text),
        )
        try:
            message = await asyncio.wait_for(
                llm.ainvoke(prompt_value.to_messages()),
                timeout=self._settings.request_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderTimeout(
                f"Model request timed out after {self._settings.request_timeout:g}s"
            ) from exc

        answer_text = message_text(message)
        grounding = parse_grounding_metadata(_raw_grounding(message))
        logger.debug(
            "Raw model response: text_len=%s chunks=%s supports=%s search_queries=%s",
            len(answer_text),
            len(grounding.grounding_chunks),
            len(grounding.grounding_supports),
            grounding.web_search_queries,
        )

        session.history.append(HumanMessage(content=text))
        session.history.append(message)
        return QueryResult(
            answer_text=answer_text, grounding_metadata=grounding, session=session
        )
