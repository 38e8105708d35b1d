"""Orchestration of analysis, generation and revision calls."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator, Iterator
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any, TypeVar
from uuid import uuid4

from ui_vispro.ai import prompts
from ui_vispro.ai.cache import ResultCache
from ui_vispro.ai.errors import InvalidInputError, ProviderRequestError, VisproError
from ui_vispro.ai.file_parser import parse_generated_files, serialize_files
from ui_vispro.ai.models import (
    AnalysisMetadata,
    AnalysisResult,
    DesignInput,
    GeneratedFile,
    ModelConfig,
    StreamChunk,
)
from ui_vispro.ai.providers.base import Capability, CompletionRequest, Message, ProviderAdapter
from ui_vispro.ai.providers.factory import ProviderRegistry, default_registry
from ui_vispro.ai.providers.rate_limit import extract_rate_limit_hint
from ui_vispro.config import Settings
from ui_vispro.security import redact_sensitive_text
from ui_vispro.storage.projects import ProjectStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DesignToCodeService:
    """Composition root for the design-to-code flow.

    The cache is injected so each service (and each test) owns its own
    instance. The cache guards its own state, but concurrent identical
    requests may both miss it and both write it; the last write wins.
    """

    def __init__(
        self,
        cache: ResultCache,
        *,
        registry: ProviderRegistry | None = None,
        settings: Settings | None = None,
        project_store: ProjectStore | None = None,
    ) -> None:
        self.cache = cache
        self.registry = registry or default_registry(settings)
        self.project_store = project_store

    def analyze(self, design_input: DesignInput, config: ModelConfig) -> AnalysisResult:
        """Analyze a design, answering from the cache when possible."""
        _validate_design_input(design_input)
        adapter = self.registry.get(config.provider_id)
        cache_inputs = _analysis_cache_inputs(design_input)
        cached = self.cache.get_analysis(cache_inputs, config.provider, config.model_id)
        if cached is not None:
            logger.info("Using cached analysis result %s", cached.metadata.result_id)
            return cached

        request = self._analysis_request(adapter, design_input, config)
        text = self._dispatch(
            lambda: adapter.create_client(config).complete(request), adapter, "analyze design"
        )
        result = _analysis_result(text, config)
        self.cache.put_analysis(cache_inputs, config.provider, config.model_id, result)
        return result

    def stream_analyze(
        self, design_input: DesignInput, config: ModelConfig
    ) -> Generator[StreamChunk, None, None]:
        """Stream an analysis as tagged chunks.

        Input validation raises immediately. Everything after that is
        reported in-band as ``error`` chunks, and a failed stream falls back
        to a single non-streaming call whose text arrives as the last chunk.
        Closing the generator early closes the vendor stream.
        """
        _validate_design_input(design_input)
        return self._stream_analysis(design_input, config)

    def generate_files(
        self,
        analysis_text: str,
        config: ModelConfig,
        project_name: str | None = None,
        description: str | None = None,
    ) -> list[GeneratedFile]:
        """Turn an analysis into files and optionally save them as a project."""
        if not analysis_text.strip():
            raise InvalidInputError("analysis_text must be non-empty.")
        adapter = self.registry.get(config.provider_id)
        files = self.cache.get_generation(analysis_text, config.provider, config.model_id)
        if files is not None:
            logger.info("Using cached generated files (%s files)", len(files))
        else:
            provider_id = adapter.provider_id
            messages: list[Message] = [
                {"role": "system", "content": prompts.system_prompt_for_generation(provider_id)},
                {
                    "role": "user",
                    "content": prompts.user_prompt_for_generation(provider_id, analysis_text),
                },
            ]
            request = adapter.build_request(config, messages, _parameters(config))
            text = self._dispatch(
                lambda: adapter.create_client(config).complete(request), adapter, "generate files"
            )
            files = parse_generated_files(text)
            self.cache.put_generation(analysis_text, config.provider, config.model_id, files)

        if project_name:
            self._save_project(files, project_name, description, config)
        return files

    def revise_files(
        self,
        original_files: list[GeneratedFile],
        feedback_text: str,
        config: ModelConfig,
    ) -> list[GeneratedFile]:
        """Ask the model to revise files, keeping ids and paths of files it kept."""
        if not original_files:
            raise InvalidInputError("original_files must be non-empty.")
        if not feedback_text.strip():
            raise InvalidInputError("feedback_text must be non-empty.")
        adapter = self.registry.get(config.provider_id)
        messages: list[Message] = [
            {"role": "system", "content": prompts.system_prompt_for_revision()},
            {
                "role": "user",
                "content": prompts.user_prompt_for_revision(
                    serialize_files(original_files), feedback_text
                ),
            },
        ]
        parameters = _parameters(config, defaults=prompts.REVISION_DEFAULTS)
        request = adapter.build_request(config, messages, parameters)
        text = self._dispatch(
            lambda: adapter.create_client(config).complete(request), adapter, "revise files"
        )
        return _reattach_identity(parse_generated_files(text), original_files)

    def _stream_analysis(
        self, design_input: DesignInput, config: ModelConfig
    ) -> Generator[StreamChunk, None, None]:
        cache_inputs = _analysis_cache_inputs(design_input)
        try:
            adapter = self.registry.get(config.provider_id)
            cached = self.cache.get_analysis(cache_inputs, config.provider, config.model_id)
            if cached is not None:
                yield StreamChunk.data(cached.analysis_text)
                return
            request = self._analysis_request(adapter, design_input, config)
            if not adapter.supports(Capability.streaming):
                logger.info("%s does not stream; using a single request.", adapter.display_name)
                yield from self._fallback_chunks(design_input, config)
                return
            client = self._dispatch(
                lambda: adapter.create_client(config), adapter, "stream analysis"
            )
        except VisproError as exc:
            logger.warning("Streaming analysis could not start: %s", exc)
            yield StreamChunk.failure(exc)
            return

        pieces: list[str] = []
        chunks: Iterator[str] | None = None
        try:
            chunks = client.stream_complete(request)
            for piece in chunks:
                pieces.append(piece)
                yield StreamChunk.data(piece)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Streaming from %s failed; falling back: %s", adapter.display_name, exc)
            error = _wrap(exc, adapter, "stream analysis")
            yield StreamChunk.failure(error, prefix="Streaming error")
            yield from self._fallback_chunks(design_input, config)
            return
        finally:
            close = getattr(chunks, "close", None)
            if close is not None:
                close()

        result = _analysis_result("".join(pieces), config)
        self.cache.put_analysis(cache_inputs, config.provider, config.model_id, result)

    def _fallback_chunks(
        self, design_input: DesignInput, config: ModelConfig
    ) -> Iterator[StreamChunk]:
        try:
            result = self.analyze(design_input, config)
        except VisproError as exc:
            yield StreamChunk.failure(exc)
            return
        yield StreamChunk.data(result.analysis_text)

    def _analysis_request(
        self,
        adapter: ProviderAdapter,
        design_input: DesignInput,
        config: ModelConfig,
    ) -> CompletionRequest:
        image_base64 = design_input.image_base64()
        if image_base64 is not None:
            adapter.require(Capability.image_input)
        prompt = prompts.user_prompt_for_analysis(adapter.provider_id, design_input.text)
        messages: list[Message] = [
            {"role": "system", "content": prompts.system_prompt_for_analysis(adapter.provider_id)},
            adapter.build_user_message(prompt, image_base64),
        ]
        return adapter.build_request(config, messages, _parameters(config))

    def _dispatch(
        self,
        call: Callable[[], T],
        adapter: ProviderAdapter,
        operation: str,
    ) -> T:
        try:
            return call()
        except VisproError:
            raise
        except Exception as exc:
            logger.exception("%s request failed during %s", adapter.display_name, operation)
            raise _wrap(exc, adapter, operation) from exc

    def _save_project(
        self,
        files: list[GeneratedFile],
        project_name: str,
        description: str | None,
        config: ModelConfig,
    ) -> None:
        if self.project_store is None:
            logger.warning("No project store configured; project %r not saved.", project_name)
            return
        self.project_store.save_project(
            files,
            project_name,
            description=description,
            metadata={"provider": config.provider, "model": config.model_id},
        )


def _validate_design_input(design_input: DesignInput) -> None:
    if not design_input.has_image and design_input.text is None:
        raise InvalidInputError("No input provided. Please provide an image or text description.")


def _analysis_cache_inputs(design_input: DesignInput) -> dict[str, Any]:
    return {"image": design_input.image_base64(), "text": design_input.text}


def _parameters(config: ModelConfig, defaults: dict[str, Any] | None = None) -> dict[str, Any]:
    return prompts.resolve_parameters(
        config.provider,
        config.model_id,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        defaults=defaults,
    )


def _analysis_result(text: str, config: ModelConfig) -> AnalysisResult:
    return AnalysisResult(
        analysis_text=text,
        metadata=AnalysisMetadata(
            provider_id=config.provider,
            model_id=config.model_id,
            timestamp=datetime.now(UTC).isoformat(),
            result_id=str(uuid4()),
        ),
    )


def _wrap(exc: Exception, adapter: ProviderAdapter, operation: str) -> ProviderRequestError:
    hint = extract_rate_limit_hint(exc)
    detail = redact_sensitive_text(str(exc)) or type(exc).__name__
    error = ProviderRequestError(
        f"Failed to {operation}: {detail}",
        provider=adapter.provider_id,
        operation=operation,
        retry_after_seconds=hint.retry_after_seconds if hint else None,
    )
    error.__cause__ = exc
    return error


def _reattach_identity(
    revised: list[GeneratedFile], original_files: list[GeneratedFile]
) -> list[GeneratedFile]:
    by_name: dict[str, GeneratedFile] = {}
    for file in original_files:
        by_name.setdefault(file.name, file)
    result: list[GeneratedFile] = []
    for file in revised:
        original = by_name.get(file.name)
        result.append(replace(file, id=original.id, path=original.path) if original else file)
    return result
