from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint for monitoring API status and component readiness.

    Returns status of the API and the database connection.
    """
    settings = request.app.state.settings

    health_status = {
        "status": "ok",
        "app_name": settings.app_name,
        "components": {
            "api": "ready",
            "database": "initializing"
        },
        "ready": False
    }

    adapter = getattr(request.app.state, "adapter", None)
    if adapter is None:
        health_status["components"]["database"] = "not configured"
    elif adapter.ping():
        health_status["components"]["database"] = "ready"
    else:
        health_status["components"]["database"] = "unreachable"
        health_status["status"] = "degraded"

    health_status["ready"] = all(
        state == "ready" for state in health_status["components"].values()
    )
    return health_status
