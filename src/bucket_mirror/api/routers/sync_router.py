"""Router for sync status and derived documents."""

from fastapi import APIRouter, HTTPException

from bucket_mirror.clients import TargetAPIError
from bucket_mirror.deps import SitemapServiceDep, SyncServiceDep
from bucket_mirror.schemas import MessageResponse, SyncStatusResponse
from bucket_mirror.sync import RunError, SyncInProgressError, TransientFetchError

router = APIRouter(tags=["sync"])


@router.get("/sync/status", response_model=SyncStatusResponse)
async def sync_status(sync_service: SyncServiceDep) -> SyncStatusResponse:
    """Changes the next synchronization would apply."""
    try:
        delta, guard = await sync_service.find_changes()
    except SyncInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RunError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return SyncStatusResponse.from_changes(delta, guard)


@router.post("/sitemap/update", response_model=MessageResponse)
async def update_sitemap(sitemap_service: SitemapServiceDep) -> MessageResponse:
    """Regenerate sitemap.xml from the bucket contents."""
    try:
        count = await sitemap_service.update()
    except (TransientFetchError, TargetAPIError) as e:
        raise HTTPException(status_code=502, detail=f"failed to update sitemap: {e}") from e
    return MessageResponse(message=f"sitemap updated with {count} urls")
