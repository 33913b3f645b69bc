from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from medilink.api.deps import verify_api_key_dependency
from .background import render_service_worker
from .dispatcher import PushTransport, get_push_transport
from .probe import run_manual_probe
from .store import AppointmentStore, get_appointment_store


router = APIRouter(dependencies=[Depends(verify_api_key_dependency)])

# Served from the site root: a service worker only controls pages under its own path
service_worker_router = APIRouter()

_PROBE_STATUS = {"sent": 200, "not_found": 404, "failed": 500}


@router.api_route("/test", methods=["GET", "POST"])
def test_appointment_reminder_endpoint(
    store: AppointmentStore = Depends(get_appointment_store),
    transport: PushTransport = Depends(get_push_transport),
):
    """Send a test notification to the most recent appointment with an FCM token."""
    result = run_manual_probe(store, transport)
    return JSONResponse(status_code=_PROBE_STATUS[result.outcome], content=result.to_response_body())


@router.get("/health")
def health_check():
    return {"status": "healthy", "service": "reminders"}


@service_worker_router.get("/firebase-messaging-sw.js", include_in_schema=False)
def firebase_messaging_service_worker():
    return Response(content=render_service_worker(), media_type="application/javascript")
