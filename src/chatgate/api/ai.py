"""Provider status and configuration endpoints"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
import structlog

from chatgate.models import OrchestratorConfigUpdate, ProviderDescriptor
from chatgate.services import ProviderAdminService
from .deps import get_admin_service_dep

router = APIRouter()
logger = structlog.get_logger()


class StatusResponse(BaseModel):
    """Live provider status with the current configuration"""
    providers: List[ProviderDescriptor]
    enabled_providers: List[str]
    preferred_providers: List[str]
    fallback_to_free: bool


class ConfigureRequest(BaseModel):
    """Either a toggle/reorder action or a partial configuration"""
    action: Optional[Literal["toggle", "reorder"]] = Field(None, description="Admin shortcut action")
    provider: Optional[str] = Field(None, description="Provider to toggle")
    enabled: Optional[bool] = Field(None, description="New enabled state for toggle")
    preferred_order: Optional[List[str]] = Field(None, description="New preferred order for reorder")
    enabled_providers: Optional[List[str]] = None
    preferred_providers: Optional[List[str]] = None
    fallback_to_free: Optional[bool] = None
    validate_names: bool = Field(False, description="Reject provider names that are not registered")


class TestProviderRequest(BaseModel):
    """Request model for a directed provider test"""
    provider: str


class TestProviderResponse(BaseModel):
    success: bool
    message: str
    provider: str
    cost: str


@router.get("/status", response_model=StatusResponse)
async def get_status(service: ProviderAdminService = Depends(get_admin_service_dep)):
    """Current configuration and live availability of every provider"""
    return service.get_status()


@router.post("/configure", response_model=StatusResponse)
async def configure(request: ConfigureRequest, service: ProviderAdminService = Depends(get_admin_service_dep)):
    """Toggle, reorder or partially update the provider configuration"""
    if request.action == "toggle":
        if not request.provider or request.enabled is None:
            raise HTTPException(status_code=400, detail="toggle requires provider and enabled")
        service.toggle_provider(request.provider, request.enabled)
    elif request.action == "reorder":
        if request.preferred_order is None:
            raise HTTPException(status_code=400, detail="reorder requires preferred_order")
        service.reorder(request.preferred_order)
    else:
        update = OrchestratorConfigUpdate(
            enabled_providers=request.enabled_providers,
            preferred_providers=request.preferred_providers,
            fallback_to_free=request.fallback_to_free,
        )
        service.update_config(update, validate=request.validate_names)

    return service.get_status()


@router.post("/test", response_model=TestProviderResponse)
async def test_provider(request: TestProviderRequest, service: ProviderAdminService = Depends(get_admin_service_dep)):
    """Send a short prompt to one provider and confirm it starts streaming"""
    return await service.test_provider(request.provider)
