from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from story_auth.utils.dates import utcnow

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Basic health check endpoint for production monitoring
    """
    health_status = {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "checks": {}
    }

    # Database connectivity check
    try:
        await request.app.state.db.command("ping")
        health_status["checks"]["database"] = {"status": "healthy"}
    except Exception as e:
        health_status["checks"]["database"] = {"status": "unhealthy", "error": type(e).__name__}
        health_status["status"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
