"""FastAPI application for the design-to-code service."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse

from ui.backend.models import (
    AnalysisResponse,
    AnalyzeRequest,
    CacheStatsResponse,
    FilesResponse,
    GeneratedFilePayload,
    GenerateRequest,
    ModelSelection,
    ProjectResponse,
    ProjectSummaryResponse,
    ProviderResponse,
    ReviseRequest,
    StreamChunkPayload,
)
from ui_vispro.ai.cache import ResultCache
from ui_vispro.ai.credentials import has_provider_credentials
from ui_vispro.ai.errors import (
    InvalidInputError,
    MissingCredentialError,
    ProviderRequestError,
    UnsupportedCapabilityError,
    UnsupportedProviderError,
    VisproError,
)
from ui_vispro.ai.models import Credentials, DesignInput, GeneratedFile, ModelConfig, StreamChunk
from ui_vispro.ai.registry import available_models
from ui_vispro.ai.service import DesignToCodeService
from ui_vispro.config import Settings
from ui_vispro.storage.projects import ProjectStore, StoredProject

logger = logging.getLogger(__name__)


class BackendState:
    """Holds shared state for the API."""

    def __init__(self, service: DesignToCodeService | None, settings: Settings | None) -> None:
        self.settings = settings or Settings.from_env()
        if service is None:
            service = DesignToCodeService(
                ResultCache(),
                settings=self.settings,
                project_store=ProjectStore(self.settings.projects_path),
            )
        self.service = service
        self.store = service.project_store or ProjectStore(self.settings.projects_path)


def create_app(
    service: DesignToCodeService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create the FastAPI application around one service instance."""
    state = BackendState(service, settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        state.service.cache.dispose()

    app = FastAPI(title="Vispro Design-to-Code API", lifespan=lifespan)

    @app.get("/api/providers", response_model=list[ProviderResponse])
    def list_providers() -> list[ProviderResponse]:
        return [
            ProviderResponse(
                provider_id=adapter.provider_id,
                display_name=adapter.display_name,
                capabilities=sorted(capability.value for capability in adapter.capabilities),
                models=list(available_models(adapter.provider_id)),
                configured=has_provider_credentials(adapter.provider_id, state.settings),
            )
            for adapter in state.service.registry.adapters()
        ]

    @app.post("/api/analyze", response_model=AnalysisResponse)
    def analyze(payload: AnalyzeRequest) -> AnalysisResponse:
        try:
            result = state.service.analyze(_design_input(payload), _model_config(payload.config))
        except VisproError as exc:
            raise _http_error(exc) from exc
        return AnalysisResponse.model_validate(result.to_dict())

    @app.post("/api/analyze/stream")
    def analyze_stream(payload: AnalyzeRequest) -> StreamingResponse:
        try:
            chunks = state.service.stream_analyze(
                _design_input(payload), _model_config(payload.config)
            )
        except VisproError as exc:
            raise _http_error(exc) from exc
        return StreamingResponse(_sse(chunks), media_type="text/event-stream")

    @app.post("/api/generate", response_model=FilesResponse)
    def generate(payload: GenerateRequest) -> FilesResponse:
        try:
            files = state.service.generate_files(
                payload.analysis_text,
                _model_config(payload.config),
                project_name=payload.project_name,
                description=payload.description,
            )
        except VisproError as exc:
            raise _http_error(exc) from exc
        return _files_response(files)

    @app.post("/api/revise", response_model=FilesResponse)
    def revise(payload: ReviseRequest) -> FilesResponse:
        try:
            originals = [GeneratedFile.from_dict(item.model_dump()) for item in payload.files]
            files = state.service.revise_files(
                originals, payload.feedback, _model_config(payload.config)
            )
        except VisproError as exc:
            raise _http_error(exc) from exc
        return _files_response(files)

    @app.get("/api/cache/stats", response_model=CacheStatsResponse)
    def cache_stats() -> CacheStatsResponse:
        return CacheStatsResponse(**state.service.cache.stats().to_dict())

    @app.delete("/api/cache", response_model=CacheStatsResponse)
    def clear_cache() -> CacheStatsResponse:
        state.service.cache.clear()
        return CacheStatsResponse(**state.service.cache.stats().to_dict())

    @app.get("/api/projects", response_model=list[ProjectSummaryResponse])
    def list_projects() -> list[ProjectSummaryResponse]:
        return [_project_summary(project) for project in state.store.list_projects()]

    @app.get("/api/projects/{project_id}", response_model=ProjectResponse)
    def get_project(project_id: str) -> ProjectResponse:
        try:
            project = state.store.get_project(project_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Project not found") from exc
        return ProjectResponse.model_validate(project.to_dict())

    @app.delete("/api/projects/{project_id}")
    def delete_project(project_id: str) -> dict[str, bool]:
        if not state.store.delete_project(project_id):
            raise HTTPException(status_code=404, detail="Project not found")
        return {"deleted": True}

    return app


def _model_config(selection: ModelSelection) -> ModelConfig:
    credentials = None
    if selection.api_key or selection.base_url:
        credentials = Credentials(api_key=selection.api_key, base_url=selection.base_url)
    try:
        return ModelConfig(
            provider_id=selection.provider,
            model_id=selection.model,
            temperature=selection.temperature,
            max_tokens=selection.max_tokens,
            credentials=credentials,
        )
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _design_input(payload: AnalyzeRequest) -> DesignInput:
    image = None
    if payload.image_base64:
        raw = payload.image_base64
        if raw.startswith("data:"):
            raw = raw.partition(",")[2]
        try:
            image = base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise HTTPException(status_code=400, detail="image_base64 is not valid base64") from exc
    return DesignInput(image=image, text_description=payload.text_description)


def _http_error(exc: VisproError) -> HTTPException:
    """Map orchestration errors onto HTTP status codes."""
    if isinstance(exc, MissingCredentialError):
        status = 401
    elif isinstance(exc, ProviderRequestError):
        status = 502
    elif isinstance(
        exc, (InvalidInputError, UnsupportedProviderError, UnsupportedCapabilityError)
    ):
        status = 400
    else:
        status = 500
    if status >= 500:
        logger.warning("Request failed: %s", exc)
    return HTTPException(status_code=status, detail=str(exc))


def _sse(chunks: Iterator[StreamChunk]) -> Iterator[str]:
    for chunk in chunks:
        payload = StreamChunkPayload(kind=chunk.kind, text=chunk.text)
        yield f"data: {json.dumps(payload.model_dump(mode='json'))}\n\n"


def _files_response(files: list[GeneratedFile]) -> FilesResponse:
    return FilesResponse(
        files=[GeneratedFilePayload.model_validate(file.to_dict()) for file in files]
    )


def _project_summary(project: StoredProject) -> ProjectSummaryResponse:
    return ProjectSummaryResponse(
        id=project.id,
        name=project.name,
        description=project.description,
        timestamp=project.timestamp,
        file_count=len(project.files),
        metadata=dict(project.metadata),
    )


app = create_app()
