"""
Main API application module for dicomgate.

This module creates and configures the FastAPI application with the DICOMweb
routers, middleware, and the long-lived protocol engine and transcode cache.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from dicomgate.api.exception_handlers import setup_exception_handlers
from dicomgate.api.headers import ISOLATION_HEADERS
from dicomgate.api.routers import dicomweb, wadouri
from dicomgate.services.dicom import DicomNode, PynetdicomEngine, StoreScp, verify_peer
from dicomgate.services.dicomweb import TranscodeCache
from dicomgate.settings import Settings, settings
from dicomgate.utils.logger import logger

# Same routes are served at the root and under the viewer prefix
ROUTE_PREFIXES = ("", "/viewer")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Starts the store SCP when enabled and checks archive connectivity.
    A failed echo is logged and never blocks startup.
    """
    config: Settings = app.state.settings

    scp: StoreScp | None = None
    if config.scp_enabled:
        scp = StoreScp(
            ae_title=config.dicom_aet,
            host=config.dicom_ip,
            port=config.dicom_port,
            storage_root=config.storage_root,
            max_pdu=config.dicom_max_pdu,
        )
        scp.start()

    if config.echo_on_startup:
        await verify_peer(app.state.engine)

    logger.info("Application startup complete")

    try:
        yield
    finally:
        if scp is not None:
            scp.stop()
        await app.state.transcode_cache.shutdown()
        logger.info("Application shutdown")


def create_app(config: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings to use; the global settings when omitted

    Returns:
        Configured FastAPI application
    """
    config = config or settings

    app = FastAPI(
        title="dicomgate",
        description="DICOMweb gateway in front of a DIMSE archive",
        version="0.1.0",
        debug=config.debug,
        lifespan=lifespan,
        root_path=config.root_url.rstrip("/"),
    )

    engine = PynetdicomEngine(
        calling_aet=config.dicom_aet,
        peer=DicomNode(aet=config.pacs_aet, host=config.pacs_host, port=config.pacs_port),
        max_pdu=config.dicom_max_pdu,
        timeout=config.find_timeout,
    )
    app.state.settings = config
    app.state.engine = engine
    app.state.transcode_cache = TranscodeCache(engine, timeout=config.transcode_timeout)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_isolation_headers(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers.update(ISOLATION_HEADERS)
        return response

    setup_exception_handlers(app)

    for prefix in ROUTE_PREFIXES:
        app.include_router(dicomweb.router, prefix=prefix, tags=["DICOMweb"])
        app.include_router(wadouri.router, prefix=prefix, tags=["WADO-URI"])

    return app


# Create default application instance
app = create_app()
