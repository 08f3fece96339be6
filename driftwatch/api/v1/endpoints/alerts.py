"""Drift alert endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from driftwatch.core.exceptions import AlertNotFoundError
from driftwatch.database import get_db
from driftwatch.database.repositories import AlertRepository
from driftwatch.models.schemas import AlertResponse, ErrorResponse
from driftwatch.utils.datetime_helpers import now_utc

router = APIRouter(tags=["Alerts"])


@router.post(
    "/alerts/{alert_id}/acknowledge",
    response_model=AlertResponse,
    responses={404: {"model": ErrorResponse, "description": "Alert not found"}},
)
def acknowledge_alert(alert_id: str, db: Session = Depends(get_db)) -> AlertResponse:
    """
    Mark an alert as seen.

    Acknowledging twice keeps the first acknowledgement time.
    """
    alert = AlertRepository(db).acknowledge(alert_id, acknowledged_at=now_utc())
    if alert is None:
        raise AlertNotFoundError(alert_id)
    return AlertResponse.model_validate(alert)
