"""Root endpoint — tells a human how to use the relay."""

from fastapi import APIRouter, Request

from hookrelay.config import settings

router = APIRouter()


@router.get("/")
async def service_info(request: Request):
    host = request.headers.get("host", request.url.netloc)
    http_scheme = request.url.scheme
    ws_scheme = "wss" if http_scheme == "https" else "ws"
    return {
        "service": settings.service_name,
        "usage": {
            "webhook": f"{http_scheme}://{host}/webhook/:id",
            "websocket": f"{ws_scheme}://{host}/ws?id=:id",
            "description": (
                "Connect your app's WebSocket to /ws?id=YOUR_UUID and use "
                "/webhook/YOUR_UUID as the AnyQuest webhook URL"
            ),
        },
    }
