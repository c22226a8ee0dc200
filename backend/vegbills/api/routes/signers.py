"""API routes for signers."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from vegbills.api.dependencies import get_signer_service
from vegbills.core.config import settings
from vegbills.models.schemas import SignerCreate, SignerRead
from vegbills.services.directory_service import SignerService

router = APIRouter(prefix=f"{settings.API_PREFIX}/signers", tags=["signers"])


@router.get("", response_model=List[SignerRead])
async def list_signers(service: SignerService = Depends(get_signer_service)) -> List[SignerRead]:
    return await service.list_signers()


@router.post("", response_model=SignerRead, status_code=status.HTTP_201_CREATED)
async def create_signer(payload: SignerCreate, service: SignerService = Depends(get_signer_service)) -> SignerRead:
    return await service.create_signer(payload)
