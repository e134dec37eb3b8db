"""Service layer for Chatgate"""

from .provider_admin import ProviderAdminService, get_admin_service

__all__ = ["ProviderAdminService", "get_admin_service"]
