"""Pydantic models for the design-to-code API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ModelSelection(BaseModel):
    """Provider, model and optional overrides for one call."""

    provider: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    api_key: str | None = None
    base_url: str | None = None


class AnalyzeRequest(BaseModel):
    """Request payload for analyzing a design."""

    config: ModelSelection
    image_base64: str | None = None
    text_description: str | None = None


class AnalysisMetadataResponse(BaseModel):
    """Provenance of an analysis."""

    provider_id: str
    model_id: str
    timestamp: str
    result_id: str


class AnalysisResponse(BaseModel):
    """Serialized analysis result."""

    analysis_text: str
    metadata: AnalysisMetadataResponse


class StreamChunkPayload(BaseModel):
    """One server-sent event of a streamed analysis."""

    kind: Literal["data", "error"]
    text: str


class GeneratedFilePayload(BaseModel):
    """A generated file as exchanged with clients."""

    id: str | None = None
    name: str = Field(..., min_length=1)
    content: str = ""
    path: str | None = None
    kind: str | None = None


class GenerateRequest(BaseModel):
    """Request payload for generating files from an analysis."""

    config: ModelSelection
    analysis_text: str = Field(..., min_length=1)
    project_name: str | None = None
    description: str | None = None


class ReviseRequest(BaseModel):
    """Request payload for revising files from feedback."""

    config: ModelSelection
    files: list[GeneratedFilePayload] = Field(..., min_length=1)
    feedback: str = Field(..., min_length=1)


class FilesResponse(BaseModel):
    """Files produced by generation or revision."""

    files: list[GeneratedFilePayload]


class ProviderResponse(BaseModel):
    """Provider summary for the model picker."""

    provider_id: str
    display_name: str
    capabilities: list[str]
    models: list[str]
    configured: bool


class CacheStatsResponse(BaseModel):
    """Entry counts of the result cache."""

    analysis_entries: int
    generation_entries: int
    total: int


class ProjectSummaryResponse(BaseModel):
    """Saved project without file contents."""

    id: str
    name: str
    description: str | None
    timestamp: int
    file_count: int
    metadata: dict[str, str]


class ProjectResponse(BaseModel):
    """Saved project with its files."""

    id: str
    name: str
    description: str | None
    timestamp: int
    files: list[GeneratedFilePayload]
    metadata: dict[str, str]
