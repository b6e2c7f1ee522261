"""V1 API router: aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from audit_query.presentation.api.v1.endpoints.health import router as health_router
from audit_query.presentation.api.v1.query_controller import router as query_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(query_router)
