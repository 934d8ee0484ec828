"""Administrative routes: index rebuilds, index stats, metrics."""

from __future__ import annotations

import hmac
from pathlib import Path

from fastapi import APIRouter, Depends, Header, HTTPException

from handbook_chat.api.dependencies import get_app_settings, get_indexer
from handbook_chat.core.config import Settings
from handbook_chat.core.metrics import metrics_response
from handbook_chat.documents.types import Document
from handbook_chat.ingest.indexer import EmbeddingIndexer
from handbook_chat.models.dto import IndexStatsResponse, RebuildRequest, RebuildResponse

router = APIRouter()


def require_admin(
    x_admin_token: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Index routes are operator-only; without a configured token they stay closed."""
    if not settings.admin_token:
        raise HTTPException(status_code=403, detail="Index administration is disabled: no admin token configured")
    if x_admin_token is None or not hmac.compare_digest(x_admin_token, settings.admin_token):
        raise HTTPException(status_code=403, detail="Admin token required")


@router.post(
    "/index/rebuild",
    response_model=RebuildResponse,
    summary="Rebuild the index collection",
    dependencies=[Depends(require_admin)],
)
async def rebuild_index(
    request: RebuildRequest | None = None,
    settings: Settings = Depends(get_app_settings),
    indexer: EmbeddingIndexer = Depends(get_indexer),
) -> RebuildResponse:
    request = request or RebuildRequest()
    if request.data_uri:
        document = Document.from_data_uri(request.data_uri, origin="upload")
    else:
        path = Path(request.path).expanduser() if request.path else settings.handbook_path
        if not path.is_file():
            raise HTTPException(status_code=404, detail=f"Document not found: {path}")
        document = Document.from_path(path, mime=None if request.path else settings.handbook_mime)
    result = await indexer.reindex_document(document)
    return RebuildResponse(**result.to_dict())


@router.get(
    "/index/stats",
    response_model=IndexStatsResponse,
    summary="Index collection statistics",
    dependencies=[Depends(require_admin)],
)
async def index_stats(indexer: EmbeddingIndexer = Depends(get_indexer)) -> IndexStatsResponse:
    stats = indexer.stats()
    return IndexStatsResponse(
        collection=stats.collection,
        entries=stats.entries,
        dim=stats.dim,
        models=stats.models,
    )


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router", "require_admin"]
