"""Commission endpoints: listing, statistics, CSV export and status."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from src.api.dependencies import get_actor, get_services
from src.api.models import CommissionStatusRequest
from src.marketplace import Actor, MarketplaceServices

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/commissions", tags=["commissions"])


@router.get("")
def list_commissions(
    status: Optional[str] = None,
    campaign_id: Optional[str] = None,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Commissions visible to the caller with a summary block."""
    result = services.commissions.list_commissions(actor, status=status, campaign_id=campaign_id)
    return {
        "commissions": [c.to_dict() for c in result["commissions"]],
        "summary": result["summary"],
    }


@router.get("/stats")
def commission_stats(
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.commissions.commission_stats(actor)


@router.get("/export")
def export_commissions(
    status: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> Response:
    """Download the caller's commissions as CSV."""
    body = services.commissions.export_csv(actor, status=status, start=start, end=end)
    filename = f"commissions-{datetime.now().strftime('%Y-%m-%d')}.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{commission_id}")
def get_commission(
    commission_id: str,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    return services.commissions.get_commission(actor, commission_id).to_dict()


@router.put("/{commission_id}/status")
def update_commission_status(
    commission_id: str,
    request: CommissionStatusRequest,
    actor: Actor = Depends(get_actor),
    services: MarketplaceServices = Depends(get_services),
) -> dict:
    """Approve or mark paid (owning restaurant or admin)."""
    commission = services.commissions.update_status(actor, commission_id, request.status)
    return commission.to_dict()
