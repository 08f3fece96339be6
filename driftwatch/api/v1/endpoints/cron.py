"""Periodic trigger endpoint for external job runners."""

from fastapi import APIRouter, Depends

from driftwatch.api.dependencies import get_reconciler, verify_cron_secret
from driftwatch.core.config import get_settings
from driftwatch.core.logging_config import get_logger
from driftwatch.core.reconciler import Reconciler
from driftwatch.models.schemas import ErrorResponse, RunSummaryResponse
from driftwatch.scheduler.cron import run_all_watches
from driftwatch.utils.datetime_helpers import now_utc

logger = get_logger(__name__)

router = APIRouter(tags=["Cron"])


@router.post(
    "/cron/check-drift",
    response_model=RunSummaryResponse,
    dependencies=[Depends(verify_cron_secret)],
    responses={401: {"model": ErrorResponse, "description": "Missing or wrong cron secret"}},
)
async def check_drift(
    reconciler: Reconciler = Depends(get_reconciler),
) -> RunSummaryResponse:
    """
    Reconcile every active drift watch once.

    Called by an external scheduler with `Authorization: Bearer <CRON_SECRET>`.

    Returns:
        Counts of successful, failed and skipped checks
    """
    logger.info("Starting drift check via cron trigger")
    summary = await run_all_watches(reconciler, settings=get_settings())
    return RunSummaryResponse(
        success=True,
        successful=summary.successful,
        failed=summary.failed,
        skipped=summary.skipped,
        total=summary.total,
        timestamp=now_utc(),
    )
