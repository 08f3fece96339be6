"""Drift watch management endpoints."""

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from driftwatch.api.dependencies import get_reconciler
from driftwatch.core.constants import WatchStatus
from driftwatch.core.exceptions import WatchNotFoundError
from driftwatch.core.logging_config import get_logger
from driftwatch.core.reconciler import Reconciler
from driftwatch.database import get_db
from driftwatch.database.repositories import AlertRepository, WatchRepository
from driftwatch.models.drift import NORMALIZATION_VERSION, NormalizedProperties
from driftwatch.models.drift_watch import DriftWatch
from driftwatch.models.schemas import (
    AlertListResponse,
    AlertResponse,
    CheckEnqueuedResponse,
    DriftStatsResponse,
    ErrorResponse,
    WatchCreateRequest,
    WatchDetailResponse,
    WatchListResponse,
    WatchResponse,
    WatchUpdateRequest,
)
from driftwatch.utils.datetime_helpers import now_utc
from driftwatch.workers.drift_worker import check_watch_task

logger = get_logger(__name__)

router = APIRouter(tags=["Watches"])

RECENT_ALERT_LIMIT = 10
RECENT_WINDOW = timedelta(days=7)


def _get_watch_or_404(repo: WatchRepository, watch_id: str) -> DriftWatch:
    watch = repo.get(watch_id)
    if watch is None:
        raise WatchNotFoundError(watch_id)
    return watch


@router.post(
    "/watches",
    response_model=WatchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Figma integration not connected"},
        404: {"model": ErrorResponse, "description": "Figma component not found"},
    },
)
async def create_watch(
    request: WatchCreateRequest,
    reconciler: Reconciler = Depends(get_reconciler),
) -> WatchResponse:
    """
    Register a new drift watch.

    When no snapshot is supplied, the component's current Figma properties
    are captured as the baseline.
    """
    if request.snapshot is None:
        properties = await reconciler.capture(
            request.organization_id,
            request.figma_file_id,
            request.figma_component_id,
        )
    else:
        properties = NormalizedProperties.from_dict(request.snapshot)

    watch = DriftWatch(
        organization_id=request.organization_id,
        figma_file_id=request.figma_file_id,
        figma_file_name=request.figma_file_name,
        figma_component_id=request.figma_component_id,
        figma_component_name=request.figma_component_name,
        github_repo_id=request.github_repo_id,
        github_repo_name=request.github_repo_name,
        github_file_path=request.github_file_path,
        github_branch=request.github_branch,
        snapshot=properties.to_dict(),
        snapshot_version=NORMALIZATION_VERSION,
        status=WatchStatus.ACTIVE.value,
        is_active=True,
        alert_on_drift=request.alert_on_drift,
        slack_webhook_url=request.slack_webhook_url,
    )
    watch = await reconciler.store.create_watch(watch)
    return WatchResponse.model_validate(watch)


@router.get("/watches", response_model=WatchListResponse)
def list_watches(
    organization_id: str = Query(..., min_length=1),
    is_active: Optional[bool] = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> WatchListResponse:
    """List an organization's drift watches, newest first."""
    watches = WatchRepository(db).list_for_organization(
        organization_id, is_active=is_active, limit=limit, offset=offset
    )
    return WatchListResponse(
        organization_id=organization_id,
        watches=[WatchResponse.model_validate(w) for w in watches],
        count=len(watches),
    )


@router.get("/watches/stats", response_model=DriftStatsResponse)
def get_drift_stats(
    organization_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
) -> DriftStatsResponse:
    """Alert and watch counts for an organization."""
    alert_stats = AlertRepository(db).stats_for_organization(
        organization_id, recent_since=now_utc() - RECENT_WINDOW
    )
    return DriftStatsResponse(
        organization_id=organization_id,
        total_alerts=alert_stats["total"],
        unacknowledged_alerts=alert_stats["unacknowledged"],
        recent_alerts=alert_stats["recent"],
        alerts_by_severity=alert_stats["by_severity"],
        watches_by_status=WatchRepository(db).count_by_status(organization_id),
    )


@router.get(
    "/watches/{watch_id}",
    response_model=WatchDetailResponse,
    responses={404: {"model": ErrorResponse, "description": "Watch not found"}},
)
def get_watch(watch_id: str, db: Session = Depends(get_db)) -> WatchDetailResponse:
    """Get a watch with its most recent alerts."""
    watch = _get_watch_or_404(WatchRepository(db), watch_id)
    alerts = AlertRepository(db).list_for_watch(watch_id, limit=RECENT_ALERT_LIMIT)
    return WatchDetailResponse(
        **WatchResponse.model_validate(watch).model_dump(),
        recent_alerts=[AlertResponse.model_validate(a) for a in alerts],
    )


@router.patch(
    "/watches/{watch_id}",
    response_model=WatchResponse,
    responses={404: {"model": ErrorResponse, "description": "Watch not found"}},
)
def update_watch(
    watch_id: str,
    request: WatchUpdateRequest,
    db: Session = Depends(get_db),
) -> WatchResponse:
    """
    Update a watch.

    Setting is_active=false moves the watch to inactive and stops checks;
    setting it back to true moves it to active until the next check.
    """
    watch = WatchRepository(db).update(watch_id, request.model_dump(exclude_unset=True))
    if watch is None:
        raise WatchNotFoundError(watch_id)
    logger.info(f"Updated drift watch {watch_id}")
    return WatchResponse.model_validate(watch)


@router.delete(
    "/watches/{watch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Watch not found"}},
)
def delete_watch(watch_id: str, db: Session = Depends(get_db)) -> Response:
    """Delete a watch and its alerts."""
    if not WatchRepository(db).delete(watch_id):
        raise WatchNotFoundError(watch_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/watches/{watch_id}/check",
    response_model=CheckEnqueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={404: {"model": ErrorResponse, "description": "Watch not found"}},
)
def check_watch_now(watch_id: str, db: Session = Depends(get_db)) -> CheckEnqueuedResponse:
    """Queue an immediate drift check for one watch."""
    _get_watch_or_404(WatchRepository(db), watch_id)
    task = check_watch_task.delay(watch_id)
    logger.info(f"Queued drift check for watch {watch_id} as task {task.id}")
    return CheckEnqueuedResponse(watch_id=watch_id, task_id=task.id)


@router.post(
    "/watches/{watch_id}/rebaseline",
    response_model=WatchResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Watch or component not found"},
        429: {"model": ErrorResponse, "description": "Figma budget exhausted"},
    },
)
async def rebaseline_watch(
    watch_id: str,
    reconciler: Reconciler = Depends(get_reconciler),
) -> WatchResponse:
    """Accept the component's current Figma state as the new baseline."""
    watch = await reconciler.rebaseline(watch_id)
    return WatchResponse.model_validate(watch)


@router.get(
    "/watches/{watch_id}/alerts",
    response_model=AlertListResponse,
    responses={404: {"model": ErrorResponse, "description": "Watch not found"}},
)
def list_watch_alerts(
    watch_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> AlertListResponse:
    """Get a watch's alerts, newest first."""
    _get_watch_or_404(WatchRepository(db), watch_id)
    repo = AlertRepository(db)
    alerts = repo.list_for_watch(watch_id, limit=limit, offset=offset)
    return AlertListResponse(
        watch_id=watch_id,
        alerts=[AlertResponse.model_validate(a) for a in alerts],
        total=repo.count_for_watch(watch_id),
    )
