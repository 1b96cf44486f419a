from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from app.api.audit import router as audit_router
from app.api.inventory import router as inventory_router
from app.api.material_requests import router as material_requests_router
from app.api.notifications import router as notifications_router
from app.container import configure_container
from app.db import SessionLocal
from app.errors import register_error_handlers
from app.logging import configure_logging
from app.telemetry import setup_otel

app = FastAPI(title="Warehouse Back Office API")

configure_logging()
setup_otel(app)
register_error_handlers(app)
configure_container(SessionLocal)


def _include_api_router(router, dependencies=None):
    app.include_router(router, prefix="/api", dependencies=dependencies)
    app.include_router(router, prefix="/api/v1", dependencies=dependencies)


_include_api_router(material_requests_router)
_include_api_router(inventory_router)
_include_api_router(audit_router)
_include_api_router(notifications_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.head("/health")
def head_health():
    return Response(status_code=200)


@app.get("/metrics")
def metrics():
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
