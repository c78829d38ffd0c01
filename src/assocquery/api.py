"""HTTP surface of the association service (FastAPI).

Routes:
    /            any method -> 405, there is no resource at the root
    POST /getStats  body = AssociationRequest JSON
                    200 with AssociationResult on success,
                    400 with the error AssociationResult otherwise
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from loguru import logger

import assocquery
from assocquery.models import AssociationResult
from assocquery.service import AssociationService

ROOT_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def create_app(service: AssociationService) -> FastAPI:
    """Build the FastAPI application around ``service``.

    Requests run in the threadpool: the regression is CPU-bound numpy work
    and the stores are shared read-only, so requests need no locking.
    """
    app = FastAPI(
        title="assocquery",
        version=assocquery.__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.service = service

    @app.api_route("/", methods=ROOT_METHODS)
    async def root() -> JSONResponse:
        return JSONResponse(status_code=405, content={"detail": "Method Not Allowed"})

    @app.post("/getStats")
    async def get_stats(request: Request) -> JSONResponse:
        body = (await request.body()).decode("utf-8", errors="replace")
        try:
            result = await run_in_threadpool(service.get_stats, body)
        except Exception:
            logger.exception("getStats failed")
            result = AssociationResult.error("Internal server error")
            return JSONResponse(status_code=500, content=result.to_wire())
        status = 400 if result.is_error else 200
        return JSONResponse(status_code=status, content=result.to_wire())

    return app
