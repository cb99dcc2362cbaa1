# smartpark/routers/dashboard_ws.py
"""WebSocket feed of parking events for live dashboards."""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from smartpark.dependencies import get_broadcaster
from smartpark.services.notification_sink import DashboardBroadcaster

router = APIRouter()


@router.websocket("/ws/dashboard")
async def dashboard_feed(websocket: WebSocket, broadcaster: DashboardBroadcaster = Depends(get_broadcaster)):
    await broadcaster.connect(websocket)
    try:
        while True:
            # Dashboards only listen; incoming text is ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)
