"""Backup download, restore and data wipe"""

import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from starlette.concurrency import run_in_threadpool

from lendbook.api.v1.schemas import RestoreResponse
from lendbook.api.dependencies import get_loanbook, get_request_id
from lendbook.domain.exceptions import FormatError, PersistenceError
from lendbook.infrastructure.backup import backup_filename
from lendbook.service import LoanBookService

router = APIRouter()


@router.get("/backup")
def download_backup(loanbook: LoanBookService = Depends(get_loanbook)):
    """Current dataset as a downloadable text file"""
    return Response(
        content=loanbook.export_backup(),
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{backup_filename(date.today())}"'},
    )


@router.post("/backup/restore", response_model=RestoreResponse)
async def restore_backup(
    request: Request,
    confirm: bool = Query(False, description="Overwrite current data"),
    loanbook: LoanBookService = Depends(get_loanbook),
):
    """
    Replace live data with an uploaded backup.

    The file is validated first. Without confirm=true nothing changes and the
    response carries the backup's timestamp so the caller can ask the user.
    """
    request_id = get_request_id(request)
    seen = {}

    def ask(timestamp: str) -> bool:
        seen["timestamp"] = timestamp
        return confirm

    try:
        text = (await request.body()).decode("utf-8")
        # Save retries block, keep them off the event loop
        restored = await run_in_threadpool(loanbook.restore_backup, text, ask)
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Error reading file")
    except FormatError as e:
        logging.warning(f"Backup rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        logging.error(f"Backup not saved: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    if restored:
        logging.info("Backup restored", extra={"request_id": request_id, "backup_timestamp": seen["timestamp"]})

    return RestoreResponse(restored=restored, timestamp=seen["timestamp"])


@router.delete("/data", status_code=status.HTTP_204_NO_CONTENT)
def clear_data(
    request: Request,
    confirm: bool = Query(False, description="Wipe every client, loan and expense"),
    loanbook: LoanBookService = Depends(get_loanbook),
):
    request_id = get_request_id(request)
    if not confirm:
        raise HTTPException(status_code=400, detail="Confirmation required; save a backup first")

    try:
        loanbook.clear_data()
    except PersistenceError as e:
        logging.error(f"Data wipe not saved: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    logging.warning("All data cleared", extra={"request_id": request_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
