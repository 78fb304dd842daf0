"""API routes for the discovery service."""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..indexer.indexer import Indexer, IndexerPreconditionError
from ..search.router import InvalidQueryError, QueryRouter
from ..vector_store.base import ContentStore

logger = structlog.get_logger("discovery_service.api")

router = APIRouter()

MISSING_PROVIDER_SUGGESTION = (
    "Set the OPENAI_API_KEY environment variable and restart the service"
)


def get_query_router(request: Request) -> QueryRouter:
    """Get query router from application state."""
    return request.app.state.query_router


def get_indexer(request: Request) -> Indexer:
    """Get indexer from application state."""
    return request.app.state.indexer


def get_content_store(request: Request) -> ContentStore:
    """Get content store from application state."""
    return request.app.state.content_store


async def _read_query(request: Request) -> Any:
    """Pull ``query`` out of a JSON object body; ``None`` when absent."""
    try:
        payload = await request.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    return payload.get("query")


@router.post("/search")
async def search(
    request: Request,
    query_router: QueryRouter = Depends(get_query_router)
):
    """Search all collections, semantically when possible."""
    query = await _read_query(request)

    try:
        response = await query_router.search(query)
    except InvalidQueryError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        logger.error("Search failed", error=str(e))
        return JSONResponse(status_code=500, content={"error": "Search failed"})

    return response.to_dict()


@router.post("/admin/reindex")
async def reindex(indexer: Indexer = Depends(get_indexer)):
    """Recompute embeddings for every record."""
    try:
        counts: Dict[str, int] = await indexer.reindex_all()
    except IndexerPreconditionError as e:
        logger.warning("Reindex refused", error=str(e))
        return JSONResponse(
            status_code=400,
            content={"error": str(e), "suggestion": MISSING_PROVIDER_SUGGESTION}
        )
    except Exception as e:
        logger.error("Reindex failed", error=str(e))
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to reindex content", "detail": str(e)}
        )

    logger.info("Reindex completed", indexed=counts)
    return {"success": True, "indexed": counts}
