"""Bootstrap routes - first superadmin registration"""

from fastapi import APIRouter, Depends, status

from app.api.deps import get_admin_service, get_request_context
from app.core.principal import RequestContext
from app.schemas.admin import AdminResponse
from app.schemas.auth import BootstrapStatus, RegisterRequest
from app.services.admin_service import AdminService

router = APIRouter()


@router.get("", response_model=BootstrapStatus)
def bootstrap_status(admin_service: AdminService = Depends(get_admin_service)):
    """Whether any admin account exists yet"""
    return BootstrapStatus(initialized=admin_service.is_bootstrapped())


@router.post("", response_model=AdminResponse, status_code=status.HTTP_201_CREATED)
def register_superadmin(
    payload: RegisterRequest,
    context: RequestContext = Depends(get_request_context),
    admin_service: AdminService = Depends(get_admin_service),
):
    """
    Register the first superadmin

    Only succeeds while no admin accounts exist.
    """
    admin = admin_service.bootstrap_superadmin(payload, context)
    return AdminResponse.model_validate(admin)
