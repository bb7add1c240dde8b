import json
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException

from models import ClearResponse, DataResponse, ErrorResponse, HealthResponse, IngestResponse
from repo_records import RecordRepo, StoreWriteError
from service_records import RecordService
from settings import settings

logger = logging.getLogger(__name__)

ENDPOINTS = [
    ("GET", "/api/health", "server status"),
    ("POST", "/automation", "receive automation"),
    ("POST", "/account", "receive account"),
    ("POST", "/api/mdb/receive", "receive data"),
    ("GET", "/api/mdb/data", "all data"),
    ("GET", "/api/mdb/data/latest", f"{settings.latest_limit} latest entries"),
    ("GET", "/api/mdb/export", "export as JSON"),
    ("DELETE", "/api/mdb/data", "delete all data"),
]


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Instantiate the repo + service once; routes reach the service through
# `get_service` so tests can swap it with `app.dependency_overrides`.
repo = RecordRepo(settings.data_file)
svc = RecordService(repo)


def get_service() -> RecordService:
    return svc


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Failing to create the data directory aborts startup.
    repo.ensure_storage()
    logger.info("MDB receiver listening on http://%s:%s", settings.host, settings.port)
    for method, path, label in ENDPOINTS:
        logger.info("  %-6s %-22s %s", method, path, label)
    logger.info("Data saved in %s", repo.path)
    yield


class BodySizeLimitMiddleware:
    """Reject request bodies larger than `settings.max_body_bytes` with 413.

    A declared `Content-Length` is checked up front. Chunked bodies are
    counted as they are received, so the cap holds without that header.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = settings.max_body_bytes
        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > limit:
            response = JSONResponse(status_code=413, content=_too_large().model_dump())
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    raise HTTPException(status_code=413, detail=_too_large().error)
            return message

        await self.app(scope, limited_receive, send)


def _too_large() -> ErrorResponse:
    return ErrorResponse(error="Request body too large")


app = FastAPI(title="MDB Receiver", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS", "DELETE"],
    allow_headers=["*"],
    allow_credentials=True,
)
app.add_middleware(BodySizeLimitMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    error = ErrorResponse(error=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=error.model_dump())


async def read_payload(request: Request) -> Dict[str, Any]:
    """Decode an ingest body into a dict.

    URL-encoded forms become a dict of strings (a list for repeated keys).
    Anything else is parsed as JSON; an empty body is an empty object.
    """

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/x-www-form-urlencoded"):
        form = await request.form()
        payload: Dict[str, Any] = {}
        for key, value in form.multi_items():
            if key not in payload:
                payload[key] = value
            elif isinstance(payload[key], list):
                payload[key].append(value)
            else:
                payload[key] = [payload[key], value]
        return payload

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid request body: malformed JSON")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid request body: expected a JSON object")
    return payload


def _ingest(receive, *args) -> IngestResponse:
    try:
        return receive(*args)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreWriteError:
        raise HTTPException(status_code=500, detail="Failed to save data")
    except Exception as e:
        logger.exception("Ingestion failed")
        raise HTTPException(status_code=500, detail=f"Server error: {e}")


@app.get("/api/health", response_model=HealthResponse)
def health(service: RecordService = Depends(get_service)):
    return service.health()


@app.post("/automation", response_model=IngestResponse)
def automation(
    body: Dict[str, Any] = Depends(read_payload),
    service: RecordService = Depends(get_service),
):
    return _ingest(service.receive_automation, body)


@app.post("/account", response_model=IngestResponse)
def account(
    body: Dict[str, Any] = Depends(read_payload),
    service: RecordService = Depends(get_service),
):
    return _ingest(service.receive_account, body)


@app.post("/api/mdb/receive", response_model=IngestResponse)
def receive(
    request: Request,
    body: Dict[str, Any] = Depends(read_payload),
    service: RecordService = Depends(get_service),
):
    client_ip = request.client.host if request.client else None
    return _ingest(service.receive_legacy, body, client_ip)


@app.get("/api/mdb/data", response_model=DataResponse)
def data(service: RecordService = Depends(get_service)):
    try:
        return service.all_records()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/mdb/data/latest", response_model=DataResponse)
def latest(service: RecordService = Depends(get_service)):
    try:
        return service.latest_records()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/mdb/export")
def export(service: RecordService = Depends(get_service)):
    try:
        content = service.export_records()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="mdb_export.json"'},
    )


@app.delete("/api/mdb/data", response_model=ClearResponse)
def clear(service: RecordService = Depends(get_service)):
    try:
        return service.clear_records()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


# Mounted last so the API routes above take precedence over "/".
if os.path.isdir(settings.static_dir):
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
