"""Shared test fixtures.

Environment variables are set at module level, before ``config.settings`` is
imported anywhere, so the cached settings see them.
"""

from __future__ import annotations

import os

os.environ["GOOGLE_API_KEY"] = "env-key"
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("REQUEST_TIMEOUT", "5")

from typing import Any, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from langchain_core.messages import AIMessage, BaseMessage  # noqa: E402

from config.settings import get_settings  # noqa: E402
from research.core.memory import SessionStore  # noqa: E402
from research.executor import GroundedQueryExecutor  # noqa: E402
from research.service import SearchService  # noqa: E402


SAMPLE_GROUNDING: Dict[str, Any] = {
    "grounding_chunks": [
        {"web": {"uri": "https://example.com/a", "title": "Example A"}},
        {"web": {"uri": "https://example.com/b", "title": "Example B"}},
    ],
    "grounding_supports": [
        {
            "segment": {"start_index": 0, "end_index": 9, "text": "Fact one."},
            "grounding_chunk_indices": [0],
            "confidence_scores": [0.9],
        },
        {
            "segment": {"start_index": 10, "end_index": 19, "text": "Fact two."},
            "grounding_chunk_indices": [0, 1],
            "confidence_scores": [0.8, 0.7],
        },
    ],
    "web_search_queries": ["example query"],
}


class FakeChatModel:
    """Stands in for ChatGoogleGenerativeAI; records how it was built and called."""

    def __init__(
        self,
        api_key: str,
        reply: str,
        grounding: Optional[Dict[str, Any]],
        error: Optional[Exception],
    ) -> None:
        self.api_key = api_key
        self.reply = reply
        self.grounding = grounding
        self.error = error
        self.tools: List[Any] = []
        self.calls: List[List[BaseMessage]] = []

    def bind_tools(self, tools: List[Any]) -> "FakeChatModel":
        self.tools = list(tools)
        return self

    async def ainvoke(self, messages: List[BaseMessage]) -> AIMessage:
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        metadata = {"grounding_metadata": self.grounding} if self.grounding else {}
        return AIMessage(content=self.reply, response_metadata=metadata)


class FakeModelFactory:
    def __init__(self) -> None:
        self.reply = "Overview: Some text"
        self.grounding: Optional[Dict[str, Any]] = SAMPLE_GROUNDING
        self.error: Optional[Exception] = None
        self.models: List[FakeChatModel] = []

    def __call__(self, api_key: str) -> FakeChatModel:
        model = FakeChatModel(api_key, self.reply, self.grounding, self.error)
        self.models.append(model)
        return model

    @property
    def last(self) -> FakeChatModel:
        return self.models[-1]


@pytest.fixture
def sample_grounding() -> Dict[str, Any]:
    return SAMPLE_GROUNDING


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def model_factory() -> FakeModelFactory:
    return FakeModelFactory()


@pytest.fixture
def executor(model_factory, settings) -> GroundedQueryExecutor:
    return GroundedQueryExecutor(model_factory=model_factory, settings=settings)


@pytest.fixture
def service(executor, settings) -> SearchService:
    return SearchService(executor=executor, store=SessionStore(), settings=settings)
