from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import logging
import uvicorn
from datetime import datetime

from fbr_invoicing import __version__
from fbr_invoicing.api.endpoints import fbr
from fbr_invoicing.config.settings import settings
from fbr_invoicing.core.exceptions import FbrError, FbrPreconditionError
from fbr_invoicing.middleware.request_context import RequestContextMiddleware
from fbr_invoicing.utils.observability import setup_logging

setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="FBR Invoicing API",
    description="Maps orders to Pakistan FBR Digital Invoicing payloads and submits them (validate + post)",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)


@app.exception_handler(FbrError)
async def fbr_error_handler(request: Request, exc: FbrError):
    status_code = 400 if isinstance(exc, FbrPreconditionError) else 500
    logger.error(f"❌ {exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


app.include_router(fbr.router, prefix="/api/fbr", tags=["fbr"])


@app.get("/health")
async def health_check():
    """
    Health check endpoint for container health checks.

    Returns:
        dict: Simple health status.
    """
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


def run():
    uvicorn.run("fbr_invoicing.api.api:app", host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    run()
