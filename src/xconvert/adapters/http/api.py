# src/xconvert/adapters/http/api.py
"""
HTTP API - FastAPI Application Factory

This module exposes the services over HTTP and a WebSocket. Routes are plain
(sync) functions, so FastAPI runs the blocking service calls in its
threadpool. Domain errors are mapped to status codes by one exception
handler; request parsing failures are reported as 400 like any other
validation error.

Files that USE this module:
- xconvert.app (builds the application and serves it with uvicorn)
- tests.test_api (TestClient)

Files that this module USES:
- xconvert.application.* (services behind every route)
- xconvert.adapters.realtime (LiveHub subscription per WebSocket client)
- xconvert.domain.errors (status code mapping)
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, File, Request, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from xconvert import __version__
from xconvert.adapters.realtime.hub import CONVERSIONS_TOPIC
from xconvert.application.csv_import_service import check_upload
from xconvert.domain.errors import DomainError, ValidationError

log = logging.getLogger(__name__)

LIVE_QUEUE_SIZE = 100


@dataclass
class Services:
    """Everything the HTTP layer talks to."""
    rates: Any
    convert: Any
    reports: Any
    queue: Any
    csv_import: Any
    scheduler: Any
    hub: Any
    health: Any
    db: Any = None
    queue_client: Any = None


def _params(request: Request, *names: str) -> Dict[str, str]:
    """Known query parameters only; blank values count as absent."""
    return {name: request.query_params[name] for name in names
            if request.query_params.get(name) not in (None, "")}


def _error_body(exc: DomainError) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": exc.message}
    if isinstance(exc, ValidationError):
        body["errors"] = exc.errors
    return body


def _attachment(filename: str) -> Dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


def create_app(services: Services, lifespan=None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Wired service instances
        lifespan: Optional lifespan context manager (store/queue connect and close)

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(title="xConvert Currency Conversion Service", version=__version__, lifespan=lifespan)
    app.state.services = services

    # ------------------- Error Handling -------------------

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"error": "Validation error", "errors": errors})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # ------------------- Health Check ---------------------

    @app.get("/health")
    def health():
        return services.health.get_overall_health()

    # ------------------- Rates ----------------------------

    @app.get("/rates")
    def list_rates(request: Request):
        query = _params(request, "fromCurrency", "toCurrency", "source", "limit", "skip")
        return services.rates.find(query).to_json()

    @app.post("/rates", status_code=201)
    def create_rate(payload: Optional[Dict[str, Any]] = Body(default=None)):
        return services.rates.create(payload).to_json()

    @app.get("/rates/{rate_id}")
    def get_rate(rate_id: int):
        return services.rates.get(rate_id).to_json()

    @app.patch("/rates/{rate_id}")
    def patch_rate(rate_id: int, payload: Optional[Dict[str, Any]] = Body(default=None)):
        return services.rates.patch(rate_id, payload).to_json()

    @app.delete("/rates/{rate_id}")
    def remove_rate(rate_id: int):
        return services.rates.remove(rate_id)

    # ------------------- Conversions ----------------------

    @app.get("/convert")
    def list_conversions(request: Request):
        query = _params(request, "fromCurrency", "toCurrency", "startDate", "endDate", "limit", "skip")
        return services.convert.find(query).to_json()

    @app.post("/convert", status_code=201)
    def convert(request: Request, payload: Optional[Dict[str, Any]] = Body(default=None)):
        return services.convert.convert(payload, request.headers).to_json()

    @app.get("/convert/stats")
    def conversion_stats(request: Request):
        query = _params(request, "fromCurrency", "toCurrency", "startDate", "endDate")
        return services.convert.stats(query).to_json()

    @app.get("/convert/popular")
    def popular_pairs(request: Request):
        pairs = services.convert.popular_pairs(_params(request, "limit"))
        return [p.to_json() for p in pairs]

    @app.get("/convert/{conversion_id}")
    def get_conversion(conversion_id: int):
        return services.convert.get(conversion_id).to_json()

    @app.patch("/convert/{conversion_id}")
    def patch_conversion(conversion_id: int):
        return services.convert.patch(conversion_id)

    @app.delete("/convert/{conversion_id}")
    def remove_conversion(conversion_id: int):
        return services.convert.remove(conversion_id)

    # ------------------- Reports --------------------------

    @app.get("/report")
    def daily_report(request: Request):
        return services.reports.daily_report(request.query_params.get("date") or None).to_json()

    @app.post("/report")
    def create_report(request: Request, payload: Optional[Dict[str, Any]] = Body(default=None)):
        data = dict(_params(request, "date", "format"))
        data.update(payload or {})
        document = services.reports.create_document(data)
        log.info("Report %s generated", document["filename"])
        return Response(
            content=document["content"],
            media_type=document["mediaType"],
            headers=_attachment(document["filename"]),
        )

    @app.get("/report/monthly")
    def monthly_report(request: Request):
        return services.reports.monthly_report(_params(request, "year", "month")).to_json()

    # ------------------- Queue ----------------------------

    @app.get("/queue")
    def queue_status():
        return services.queue.status()

    @app.post("/queue", status_code=201)
    def queue_send(payload: Optional[Dict[str, Any]] = Body(default=None)):
        return services.queue.send(payload)

    @app.delete("/queue")
    def queue_purge():
        return services.queue.purge()

    @app.post("/queue/test-connection")
    def queue_test_connection():
        return services.queue.test_connection()

    # ------------------- Scheduled Jobs -------------------

    @app.get("/cron/status")
    def cron_status():
        return services.scheduler.status()

    @app.post("/cron/update-rates")
    def cron_update_rates():
        return services.scheduler.manual_rate_update()

    @app.post("/cron/start")
    def cron_start_all():
        services.scheduler.start_all()
        return {"message": "All jobs started", "jobs": services.scheduler.status()}

    @app.post("/cron/stop")
    def cron_stop_all():
        services.scheduler.stop_all()
        return {"message": "All jobs stopped", "jobs": services.scheduler.status()}

    @app.post("/cron/{name}/start")
    def cron_start(name: str):
        return services.scheduler.start_job(name)

    @app.post("/cron/{name}/stop")
    def cron_stop(name: str):
        return services.scheduler.stop_job(name)

    # ------------------- CSV Import -----------------------

    def _read_upload(upload: UploadFile) -> bytes:
        content = upload.file.read()
        check_upload(upload.filename, upload.content_type, len(content))
        return content

    @app.get("/csv/template")
    def csv_template():
        return PlainTextResponse(
            services.csv_import.template(),
            media_type="text/csv",
            headers=_attachment("rates_template.csv"),
        )

    @app.post("/csv/import")
    def csv_import(csvFile: UploadFile = File(...)):
        return services.csv_import.import_csv(_read_upload(csvFile))

    @app.post("/csv/validate")
    def csv_validate(csvFile: UploadFile = File(...)):
        return services.csv_import.validate_csv(_read_upload(csvFile))

    # ------------------- Live Updates ---------------------

    @app.websocket("/ws")
    async def live_updates(websocket: WebSocket):
        await websocket.accept()
        loop = asyncio.get_running_loop()
        events: asyncio.Queue = asyncio.Queue(maxsize=LIVE_QUEUE_SIZE)

        def offer(event: Dict[str, Any]) -> None:
            try:
                events.put_nowait(event)
            except asyncio.QueueFull:
                log.warning("Live client too slow, dropping %s event", event.get("type"))

        # Hub callbacks run in worker threads; hand events over to this loop
        unsubscribe = services.hub.subscribe(
            CONVERSIONS_TOPIC, lambda event: loop.call_soon_threadsafe(offer, event)
        )

        async def pump() -> None:
            try:
                while True:
                    await websocket.send_json(await events.get())
            except RuntimeError as e:
                # Sending after the socket closed
                log.debug("Live send stopped: %s", e)

        sender = asyncio.create_task(pump())
        try:
            await websocket.send_json({"type": "connected", "room": CONVERSIONS_TOPIC})
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            log.debug("Live client disconnected")
        finally:
            unsubscribe()
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect):
                await sender

    return app
