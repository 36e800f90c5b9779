from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from typing import Optional

from productsaas.routers.auth import get_optional_session
from productsaas.schemas.user import AuthContext
from productsaas.models.user import Role
from productsaas.core.config import settings

router = APIRouter()

DASHBOARD_PATHS = {
    Role.SELLER: "/seller-dashboard",
    Role.ADMIN: "/admin-dashboard",
    Role.UNKNOWN: "/signin",
}

def dashboard_path(auth: Optional[AuthContext]) -> str:
    if auth is None:
        return "/signin"
    return DASHBOARD_PATHS[auth.role]

@router.get("/dashboard")
def dashboard_redirect(auth: Optional[AuthContext] = Depends(get_optional_session)):
    """Send the user to the dashboard of their role, or to sign-in."""
    return RedirectResponse(url=f"{settings.FRONTEND_BASE_URL}{dashboard_path(auth)}", status_code=307)
