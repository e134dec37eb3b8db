"""Request-scoped dependencies"""

from fastapi import Request

from chatgate.providers import ProviderOrchestrator, get_orchestrator
from chatgate.services import ProviderAdminService


def get_orchestrator_dep(request: Request) -> ProviderOrchestrator:
    """Orchestrator attached to the app, or the process-wide one"""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    return orchestrator or get_orchestrator()


def get_admin_service_dep(request: Request) -> ProviderAdminService:
    return ProviderAdminService(get_orchestrator_dep(request))
