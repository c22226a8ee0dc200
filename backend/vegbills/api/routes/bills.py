"""API routes for bill creation and retrieval."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query, status

from vegbills.api.dependencies import enforce_bills_rate_limit, get_bill_service
from vegbills.core.config import settings
from vegbills.models.schemas import BillCreate, BillRead, BulkDeleteResult
from vegbills.services.bill_service import BillService

router = APIRouter(prefix=f"{settings.API_PREFIX}/bills", tags=["bills"])


@router.get("", response_model=List[BillRead], dependencies=[Depends(enforce_bills_rate_limit)])
async def list_bills(service: BillService = Depends(get_bill_service)) -> List[Dict[str, Any]]:
    """List all bills, newest ``date`` first."""
    return await service.list_bills()


@router.get("/{bill_id}", response_model=BillRead)
async def get_bill(bill_id: str, service: BillService = Depends(get_bill_service)) -> Dict[str, Any]:
    return await service.get_bill(bill_id)


@router.post("", response_model=BillRead, status_code=status.HTTP_201_CREATED)
async def create_bill(payload: BillCreate, service: BillService = Depends(get_bill_service)) -> BillRead:
    """Reconcile the items against the catalogue, price them and store the bill."""
    return await service.create_bill(payload)


@router.delete("/test-provider", response_model=BulkDeleteResult)
async def delete_test_provider_bills(service: BillService = Depends(get_bill_service)) -> BulkDeleteResult:
    """Administrative escape hatch: drop every bill of the configured test provider."""
    return await service.delete_bills_for_provider(settings.ADMIN_PROVIDER_NAME)


@router.delete("", response_model=BulkDeleteResult)
async def delete_provider_bills(
    provider_name: str = Query(..., alias="providerName", min_length=1),
    service: BillService = Depends(get_bill_service),
) -> BulkDeleteResult:
    return await service.delete_bills_for_provider(provider_name)
