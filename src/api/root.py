"""
Root API endpoints for health checks and documentation
"""

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

from api import solar

router = APIRouter()


@router.get("/", include_in_schema=False)
async def root():
    """Redirect root to API documentation"""
    return RedirectResponse(url="/docs")


@router.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint

    Reports whether the synchronization engine is running and the outcome of
    its latest resolution. An engine in the error state is still healthy: it
    retries on the next trigger.
    """
    engine = solar.engine
    if engine is None:
        return {"status": "starting", "service": "Solar Sync Service"}

    return {
        "status": "healthy",
        "service": "Solar Sync Service",
        "loading_state": engine.loading_state.status.value,
        "city": engine.context.city,
    }
