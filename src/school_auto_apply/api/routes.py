"""API routes for the School Auto-Apply engine."""

from typing import Any, Dict, Optional
from datetime import datetime, timezone
from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from school_auto_apply import __version__
from school_auto_apply.api.models import AutoApplyRequest, HealthCheck, ScriptInfo, ScriptListResponse
from school_auto_apply.config import settings
from school_auto_apply.engine.errors import TemplateNotFoundError
from school_auto_apply.engine.models import UserLoginInput
from school_auto_apply.registry import ScriptRegistry
from school_auto_apply.repository import AutoApplyRepository, assemble_run_payload
from school_auto_apply.service import AutoApplyService
from school_auto_apply.utils.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)

# Global instances (initialized in main.py)
service: Optional[AutoApplyService] = None
repository: Optional[AutoApplyRepository] = None
registry: Optional[ScriptRegistry] = None

# Create routers
auto_apply_router = APIRouter(prefix="/auto-apply", tags=["auto-apply"])
health_router = APIRouter(prefix="/health", tags=["health"])


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Optional[str]:
    """Resolve the bearer token to a user id."""
    if not credentials:
        return None
    return settings.api_tokens.get(credentials.credentials)


@auto_apply_router.post("")
async def run_auto_apply(
    body: Any = Body(None),
    user_id: Optional[str] = Depends(get_current_user)
):
    """Run the automation script of a school with the user's stored answers."""
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        request = AutoApplyRequest.model_validate(body)
    except ValidationError as e:
        # Same 400 body as FastAPI's own request validation
        raise RequestValidationError(e.errors(include_url=False, include_input=False))

    if service is None or repository is None:
        raise HTTPException(status_code=503, detail="Auto-apply service not initialized")

    logger.info(
        "Auto-apply requested",
        school_id=request.school_id,
        template_id=request.template_id,
        user_id=user_id,
        login_override=request.user_login is not None
    )

    login_override = (
        UserLoginInput(**request.user_login.model_dump()) if request.user_login else None
    )

    try:
        payload = await assemble_run_payload(
            repository,
            school_id=request.school_id,
            template_id=request.template_id,
            user_id=user_id,
            login_override=login_override,
        )
    except TemplateNotFoundError:
        raise HTTPException(status_code=404, detail="Template not found")

    result = await service.run(payload)
    return JSONResponse(status_code=200 if result.success else 500, content=result.to_response())


@auto_apply_router.get("/scripts", response_model=ScriptListResponse)
async def list_scripts(user_id: Optional[str] = Depends(get_current_user)):
    """List registered automation scripts."""
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if registry is None:
        raise HTTPException(status_code=503, detail="Script registry not initialized")

    scripts = [ScriptInfo(**entry) for entry in registry.describe()]
    return ScriptListResponse(scripts=scripts, total_count=len(scripts))


@health_router.get("/", response_model=HealthCheck)
async def health_check():
    """Health check endpoint."""
    components = {
        "service": "healthy" if service is not None else "unavailable",
        "repository": "healthy" if repository is not None else "unavailable",
        "registry": "healthy" if registry is not None else "unavailable",
    }

    overall_status = "healthy" if all(status == "healthy" for status in components.values()) else "degraded"

    return HealthCheck(
        status=overall_status,
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        components=components
    )


def configure_routes(
    new_service: Optional[AutoApplyService],
    new_repository: Optional[AutoApplyRepository],
    new_registry: Optional[ScriptRegistry]
) -> Dict[str, Any]:
    """Install the collaborators used by the route handlers."""
    global service, repository, registry
    service, repository, registry = new_service, new_repository, new_registry
    return {"service": service, "repository": repository, "registry": registry}


# Export all routers
all_routers = [
    auto_apply_router,
    health_router
]
