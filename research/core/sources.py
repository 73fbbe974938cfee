from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _GroundingRecord(BaseModel):
    """Accepts both snake_case (SDK dumps) and camelCase (REST JSON) keys."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class WebSource(_GroundingRecord):
    uri: Optional[str] = None
    title: Optional[str] = None


class GroundingChunk(_GroundingRecord):
    web: Optional[WebSource] = None


class TextSegment(_GroundingRecord):
    start_index: int = 0
    end_index: int = 0
    text: str = ""

    @field_validator("start_index", "end_index", mode="before")
    @classmethod
    def _none_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("text", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class GroundingSupport(_GroundingRecord):
    segment: Optional[TextSegment] = None
    grounding_chunk_indices: List[int] = Field(default_factory=list)
    confidence_scores: List[float] = Field(default_factory=list)

    @field_validator("grounding_chunk_indices", "confidence_scores", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class GroundingMetadata(_GroundingRecord):
    grounding_chunks: List[GroundingChunk] = Field(default_factory=list)
    grounding_supports: List[GroundingSupport] = Field(default_factory=list)
    web_search_queries: List[str] = Field(default_factory=list)

    @field_validator(
        "grounding_chunks", "grounding_supports", "web_search_queries", mode="before"
    )
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class Source(BaseModel):
    title: str
    url: str
    snippet: str = ""


MetadataLike = Union[GroundingMetadata, Mapping[str, Any], None]


def parse_grounding_metadata(raw: MetadataLike) -> GroundingMetadata:
    if raw is None:
        return GroundingMetadata()
    if isinstance(raw, GroundingMetadata):
        return raw
    return GroundingMetadata.model_validate(dict(raw))


def _snippet_for(index: int, supports: List[GroundingSupport]) -> str:
    texts = [
        support.segment.text
        for support in supports
        if index in support.grounding_chunk_indices
        and support.segment is not None
        and support.segment.text
    ]
    return " ".join(texts)


def extract_sources(raw: MetadataLike) -> List[Source]:
    """Build the deduplicated source list for one answer.

    Chunks without both a URI and a title are skipped. The first chunk seen
    for a URL provides its title; the snippet joins every support citing that
    chunk index, in support order.
    """
    metadata = parse_grounding_metadata(raw)
    seen: Dict[str, Source] = {}
    for index, chunk in enumerate(metadata.grounding_chunks):
        web = chunk.web
        if web is None or not web.uri or not web.title:
            continue
        if web.uri in seen:
            continue
        seen[web.uri] = Source(
            title=web.title,
            url=web.uri,
            snippet=_snippet_for(index, metadata.grounding_supports),
        )
    return list(seen.values())
