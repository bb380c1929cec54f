"""Router for Dropbox browsing and the Dropbox -> bucket synchronization."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from loguru import logger

from bucket_mirror.clients import SourceAPIError, TargetAPIError
from bucket_mirror.deps import FileServiceDep, SyncServiceDep
from bucket_mirror.schemas import FileLink, FileListing, SyncReportResponse
from bucket_mirror.sync import RunError, SyncInProgressError

router = APIRouter(prefix="/dropbox", tags=["dropbox"])


@router.get("/list", response_model=List[FileListing])
async def list_files(
    file_service: FileServiceDep,
    path: Optional[str] = None,
    folder: Optional[str] = None,
) -> List[FileListing]:
    """List the files in a Dropbox folder."""
    try:
        return await file_service.list_files(path or folder or "")
    except SourceAPIError as e:
        logger.error(f"Error listing files: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.get("/recentUpdates", response_model=List[FileListing])
async def recent_updates(
    file_service: FileServiceDep,
    path: Optional[str] = None,
    folder: Optional[str] = None,
    count: int = Query(0, ge=0),
) -> List[FileListing]:
    """Most recently modified files below a Dropbox folder."""
    try:
        return await file_service.get_recent_updates(path or folder or "", count)
    except SourceAPIError as e:
        logger.error(f"Error listing recent updates: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.get("/getFileLink", response_model=FileLink)
async def get_file_link(
    file_service: FileServiceDep,
    path: Optional[str] = None,
    file: Optional[str] = None,
) -> FileLink:
    """Public and signed links to the bucket copy of a Dropbox file."""
    try:
        return file_service.get_file_link(path or file)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TargetAPIError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.get("/synchronizeDropboxToS3", response_model=SyncReportResponse)
async def synchronize(sync_service: SyncServiceDep) -> SyncReportResponse:
    """Run one synchronization pass and return its report."""
    try:
        report = await sync_service.sync()
    except SyncInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RunError as e:
        raise HTTPException(status_code=502, detail="synchronization failed") from e
    return SyncReportResponse.from_report(report)
