"""Business router - FastAPI endpoints for business profiles and service catalogs"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor, get_optional_actor
from ...database import get_db
from ..scheduling.hours import OperatingHours
from .schemas import (
    BusinessCreate,
    BusinessResponse,
    BusinessUpdate,
    ServiceCreate,
    ServiceDeleteResponse,
    ServiceResponse,
    ServiceUpdate,
)
from .service import BusinessService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/businesses", tags=["Businesses"])

services_router = APIRouter(prefix="/services", tags=["Services"])


def get_business_service(db: Session = Depends(get_db)) -> BusinessService:
    """Dependency injection for BusinessService"""
    return BusinessService(db)


# ============================================================================
# BUSINESS PROFILE
# ============================================================================


@router.post("", response_model=BusinessResponse, status_code=status.HTTP_201_CREATED)
async def create_business(
    data: BusinessCreate,
    actor: Actor = Depends(get_current_actor),
    service: BusinessService = Depends(get_business_service),
):
    """Create a business in draft status"""
    return service.create_business(data, actor)


@router.get("/{business_id}", response_model=BusinessResponse)
async def get_business(
    business_id: int,
    service: BusinessService = Depends(get_business_service),
):
    return service.get_business(business_id)


@router.patch("/{business_id}", response_model=BusinessResponse)
async def update_business(
    business_id: int,
    data: BusinessUpdate,
    actor: Actor = Depends(get_current_actor),
    service: BusinessService = Depends(get_business_service),
):
    """Update profile fields; setting status to active publishes the business"""
    return service.update_business(business_id, data, actor)


@router.put("/{business_id}/hours", response_model=BusinessResponse)
async def set_operating_hours(
    business_id: int,
    hours: OperatingHours,
    actor: Actor = Depends(get_current_actor),
    service: BusinessService = Depends(get_business_service),
):
    return service.set_operating_hours(business_id, hours, actor)


# ============================================================================
# SERVICE CATALOG
# ============================================================================


@router.post(
    "/{business_id}/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED
)
async def create_service(
    business_id: int,
    data: ServiceCreate,
    actor: Actor = Depends(get_current_actor),
    service: BusinessService = Depends(get_business_service),
):
    return service.create_service(business_id, data, actor)


@router.get("/{business_id}/services", response_model=list[ServiceResponse])
async def list_services(
    business_id: int,
    actor: Optional[Actor] = Depends(get_optional_actor),
    service: BusinessService = Depends(get_business_service),
):
    """Public catalog; the business's managers also see inactive and private services"""
    return service.list_services(business_id, actor)


@services_router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    actor: Actor = Depends(get_current_actor),
    service: BusinessService = Depends(get_business_service),
):
    return service.update_service(service_id, data, actor)


@services_router.delete("/{service_id}", response_model=ServiceDeleteResponse)
async def delete_service(
    service_id: int,
    actor: Actor = Depends(get_current_actor),
    service: BusinessService = Depends(get_business_service),
):
    """Delete a service, or deactivate it while reservations still reference it"""
    return service.delete_service(service_id, actor)
