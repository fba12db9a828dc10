"""
Common dependencies for dicomgate API endpoints.

Long-lived collaborators (protocol engine, transcode cache) live on
``app.state``; request handlers receive a gateway service assembled from them.
"""

from pathlib import Path
from typing import Annotated

from fastapi import Depends, Request

from dicomgate.services.dicom.engine import DimseEngine
from dicomgate.services.dicomweb.cache import TranscodeCache
from dicomgate.services.dicomweb.query import FindOrchestrator
from dicomgate.services.dicomweb.service import DicomWebGatewayService
from dicomgate.settings import Settings, get_settings

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_engine(request: Request) -> DimseEngine:
    """Protocol engine shared by all requests."""
    engine: DimseEngine = request.app.state.engine
    return engine


EngineDep = Annotated[DimseEngine, Depends(get_engine)]


def get_transcode_cache(request: Request) -> TranscodeCache:
    """Transcode cache shared by all requests, so same-key transcodes coalesce."""
    cache: TranscodeCache = request.app.state.transcode_cache
    return cache


TranscodeCacheDep = Annotated[TranscodeCache, Depends(get_transcode_cache)]


def get_find_orchestrator(engine: EngineDep, config: SettingsDep) -> FindOrchestrator:
    """Find orchestrator bound to the shared engine."""
    return FindOrchestrator(engine, timeout=config.find_timeout)


FindOrchestratorDep = Annotated[FindOrchestrator, Depends(get_find_orchestrator)]


def get_dicomweb_service(
    finder: FindOrchestratorDep,
    cache: TranscodeCacheDep,
    config: SettingsDep,
) -> DicomWebGatewayService:
    """Gateway service for one request."""
    return DicomWebGatewayService(
        finder=finder,
        cache=cache,
        storage_root=Path(config.storage_path),
        transfer_syntax=config.transfer_syntax,
    )


DicomWebServiceDep = Annotated[DicomWebGatewayService, Depends(get_dicomweb_service)]
