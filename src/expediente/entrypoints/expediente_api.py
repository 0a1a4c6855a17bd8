"""
Expediente API Entrypoint - Thin API with Command Dispatch

JSON endpoints used by the form page, plus the server rendered form itself.
Reads go through views, writes are dispatched as commands on the message bus.
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from expediente import form, views
from expediente.adapters import orm
from expediente.domain.commands import SubmitPendingFields
from expediente.domain.model import ExpedienteNotFound, InvalidToken, LinkAlreadyUsed, LinkExpired
from expediente.service_layer import messagebus
from expediente.service_layer.unit_of_work import AbstractUnitOfWork, SqlAlchemyUnitOfWork

# Configure logging
logging.basicConfig(level=config.get_log_level())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Expediente Form API",
    description="Single use links to complete the pending fields of an expediente",
    version="1.0.0"
)

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "templates")
templates = Jinja2Templates(directory=TEMPLATES_DIR)

ERROR_STATUS = {
    InvalidToken: 404,
    ExpedienteNotFound: 404,
    LinkAlreadyUsed: 410,
    LinkExpired: 410,
}


@app.on_event("startup")
async def startup_event():
    engine = create_engine(config.get_postgres_uri())
    orm.metadata.create_all(engine)
    orm.start_mappers()
    logger.info("✓ Expediente database initialized")


def get_uow() -> AbstractUnitOfWork:
    return SqlAlchemyUnitOfWork()


def to_http_exception(error: Exception) -> HTTPException:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    if isinstance(error, SQLAlchemyError):
        return HTTPException(status_code=500, detail=str(error))
    return HTTPException(status_code=500, detail="Internal server error")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Malformed request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Malformed request body"})


# ---------- Request/Response models ----------

class FieldResponse(BaseModel):
    name: str
    label: str
    type: str


class PendingFieldsResponse(BaseModel):
    expediente_id: str
    fields: List[FieldResponse]


class SubmitRequest(BaseModel):
    token: Optional[Union[str, int]] = None
    data: Optional[Any] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "token": "3q2-7wQ9...",
                "data": {"ayuda_rehab": "Plan X", "cuantia_ayuda": "1.000,50"}
            }
        }
    }


class SubmitResponse(BaseModel):
    ok: bool
    updated: List[str]


# ---------- Endpoints ----------

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "expediente-form-api",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/api/expediente", response_model=PendingFieldsResponse, summary="Get pending fields for a link")
def get_pending_fields(token: str = "", uow: AbstractUnitOfWork = Depends(get_uow)):
    """
    List the fields of the expediente behind `token` that are still empty.

    The link is validated but not consumed.
    """
    if not token:
        raise HTTPException(status_code=400, detail="Missing token")

    try:
        return views.get_pending_fields(token, uow)
    except Exception as e:
        logger.error(f"Error fetching pending fields: {e}")
        raise to_http_exception(e)


@app.post("/api/expediente_submit", response_model=SubmitResponse, summary="Submit values for pending fields")
def submit_pending_fields(
    submit_request: Optional[SubmitRequest] = None,
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Fill the still empty fields of the expediente and invalidate the link.

    Returns the names of the fields actually written.
    """
    submit_request = submit_request or SubmitRequest()
    if not submit_request.token:
        raise HTTPException(status_code=400, detail="Missing token")
    if not isinstance(submit_request.data, dict):
        raise HTTPException(status_code=400, detail="Missing data")

    try:
        cmd = SubmitPendingFields(
            token=str(submit_request.token),
            data=submit_request.data,
            submitted_at=datetime.now(timezone.utc),
        )
        results = messagebus.handle(cmd, uow)
        return SubmitResponse(ok=True, updated=results.pop(0))
    except Exception as e:
        logger.error(f"Error submitting pending fields: {e}")
        raise to_http_exception(e)


# ---------- Form page ----------

def render_page(
    request: Request,
    token: str,
    pending: Optional[List[Dict[str, Any]]] = None,
    state: form.ToggleState = form.ToggleState(),
    values: Optional[Dict[str, Any]] = None,
    message: Optional[Dict[str, str]] = None,
    status_code: int = 200,
):
    pending = pending or []
    context = {
        "token": token,
        "state": state,
        "pending": pending,
        "visible": [
            dict(f, help=form.help_text(f["type"])) for f in form.visible_fields(state, pending)
        ],
        "values": values or {},
        "message": message,
    }
    return templates.TemplateResponse(request, "expediente.html", context, status_code=status_code)


@app.get("/expediente", summary="Pending fields form")
async def expediente_page(request: Request, token: str = "", uow: AbstractUnitOfWork = Depends(get_uow)):
    if not token:
        return render_page(request, token, message={"type": "error", "text": "Token no válido."}, status_code=400)

    try:
        result = await run_in_threadpool(views.get_pending_fields, token, uow)
    except Exception as e:
        error = to_http_exception(e)
        return render_page(request, token, message={"type": "error", "text": error.detail}, status_code=error.status_code)

    if not result["fields"]:
        message = {"type": "success", "text": "Este expediente ya tiene toda la información necesaria."}
        return render_page(request, token, message=message)

    return render_page(request, token, pending=result["fields"])


@app.post("/expediente", summary="Toggle switches or submit the form")
async def expediente_form_post(request: Request, uow: AbstractUnitOfWork = Depends(get_uow)):
    submitted = await request.form()
    token = str(submitted.get("token", ""))
    if not token:
        return render_page(request, token, message={"type": "error", "text": "Token no válido."}, status_code=400)

    state = form.ToggleState(
        has_ayuda=submitted.get("has_ayuda") == "1",
        has_bis=submitted.get("has_bis") == "1",
    )
    action = submitted.get("accion", "enviar")

    try:
        result = await run_in_threadpool(views.get_pending_fields, token, uow)
    except Exception as e:
        error = to_http_exception(e)
        return render_page(request, token, message={"type": "error", "text": error.detail}, status_code=error.status_code)

    pending = result["fields"]
    values = {f["name"]: submitted.get(f["name"], "") for f in pending}

    if action == "toggle_ayuda":
        return render_page(request, token, pending, state.toggle_ayuda(), values)
    if action == "toggle_bis":
        return render_page(request, token, pending, state.toggle_bis(), values)

    data = form.build_submission(state, pending, values)
    try:
        cmd = SubmitPendingFields(token=token, data=data, submitted_at=datetime.now(timezone.utc))
        await run_in_threadpool(messagebus.handle, cmd, uow)
    except Exception as e:
        logger.error(f"Error submitting form: {e}")
        error = to_http_exception(e)
        message = {"type": "error", "text": error.detail or "Error al guardar."}
        return render_page(request, token, pending, state, values, message, status_code=error.status_code)

    message = {"type": "success", "text": "Datos enviados correctamente. Ya puedes cerrar esta página."}
    return render_page(request, token, message=message)
