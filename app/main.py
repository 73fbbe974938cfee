from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import uvicorn
from pydantic import BaseModel, ConfigDict, Field

from config.settings import get_settings
from research.core.sources import Source
from research.errors import CredentialError, SearchError
from research.service import SearchService


settings = get_settings()
logging.basicConfig(
    level=settings.log_level, format="[%(asctime)s] %(levelname)s - %(message)s"
)
logger = logging.getLogger("grounded_search")

app = FastAPI(title="Grounded Search", version="1.0.0")

# CORS: allow local frontend during development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class SearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    summary: str = Field(..., description="Answer rendered as HTML")
    sources: List[Source] = Field(default_factory=list)


class FollowUpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(None, alias="sessionId")
    query: Optional[str] = None
    api_key: Optional[str] = Field(None, alias="apiKey")


class FollowUpResponse(BaseModel):
    summary: str
    sources: List[Source] = Field(default_factory=list)


@lru_cache(maxsize=1)
def get_service() -> SearchService:
    return SearchService()


@app.exception_handler(SearchError)
async def search_error_handler(request: Request, exc: SearchError) -> JSONResponse:
    body: Dict[str, Any] = {"message": exc.message}
    if isinstance(exc, CredentialError):
        body = {"error": "API key error", "message": exc.message, "requiresApiKey": True}
    elif exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = "Invalid request"
    if request.url.path == "/api/follow-up":
        message = "Both sessionId and query are required"
    logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"message": str(exc) or "An error occurred while processing your request"},
    )


@app.get("/api/search", response_model=SearchResponse, response_model_by_alias=True)
async def search(
    q: Optional[str] = Query(None, description="User's search query"),
    api_key: Optional[str] = Query(None, alias="apiKey"),
    service: SearchService = Depends(get_service),
) -> SearchResponse:
    result = await service.start_search(q, api_key=api_key)
    return SearchResponse(
        session_id=result.session_id, summary=result.summary, sources=result.sources
    )


@app.post("/api/follow-up", response_model=FollowUpResponse)
async def follow_up(
    req: FollowUpRequest, service: SearchService = Depends(get_service)
) -> FollowUpResponse:
    result = await service.continue_follow_up(
        req.session_id, req.query, api_key=req.api_key
    )
    return FollowUpResponse(summary=result.summary, sources=result.sources)


@app.get("/health")
def health(service: SearchService = Depends(get_service)) -> Dict[str, Any]:
    return {"status": "ok", "sessions": len(service.store)}


def main() -> None:
    logger.info("Starting server on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
