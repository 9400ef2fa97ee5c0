"""Artist sync endpoint."""

import logging

from fastapi import APIRouter, Depends

from reachsync.api.dependencies import get_sync_service
from reachsync.api.schemas import SyncRequest, SyncResponse
from reachsync.application.services.canonical_sync_service import CanonicalSyncService

logger = logging.getLogger(__name__)

router = APIRouter()


# Hey future me - a sync that fetched nothing still answers 200 with success=false and
# an error, the caller gets a well-shaped body either way. Only a binding conflict (409,
# see exception_handlers) and bad input (422) change the status code.
@router.post("/artists/sync", response_model=SyncResponse, response_model_exclude_none=True)
async def sync_artist(
    body: SyncRequest,
    service: CanonicalSyncService = Depends(get_sync_service),
) -> SyncResponse:
    """Fetch, reconcile and store the external artist for the account."""
    result = await service.sync(body.account_id, body.external_id)
    return SyncResponse.from_result(result)
