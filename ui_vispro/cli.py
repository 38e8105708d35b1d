"""Command-line interface for the design-to-code service."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from ui_vispro import __version__
from ui_vispro.ai.cache import ResultCache
from ui_vispro.ai.credentials import has_provider_credentials
from ui_vispro.ai.errors import VisproError
from ui_vispro.ai.models import Credentials, DesignInput, GeneratedFile, ModelConfig
from ui_vispro.ai.prompts import max_context_tokens
from ui_vispro.ai.providers.factory import ProviderRegistry, default_registry
from ui_vispro.ai.providers.mock_provider import MOCK, MockAdapter
from ui_vispro.ai.registry import available_models
from ui_vispro.ai.service import DesignToCodeService
from ui_vispro.config import ModelKind, Settings
from ui_vispro.logging_utils import configure_logging
from ui_vispro.security import SecurityError, ensure_safe_relative_path
from ui_vispro.storage.projects import ProjectStore

app = typer.Typer(add_completion=False, no_args_is_help=True)
projects_app = typer.Typer(no_args_is_help=True)
console = Console()

app.add_typer(projects_app, name="projects")

ProviderOption = Annotated[
    str | None,
    typer.Option(help="Provider id (openai, togetherai, ollama, lmstudio or mock)."),
]
ModelOption = Annotated[
    str | None,
    typer.Option(help="Model id; defaults to the configured model for the provider."),
]
TemperatureOption = Annotated[
    float | None,
    typer.Option(help="Sampling temperature between 0 and 2."),
]
MaxTokensOption = Annotated[
    int | None,
    typer.Option(help="Maximum tokens to generate."),
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option(help="API key overriding the environment for this call."),
]
BaseUrlOption = Annotated[
    str | None,
    typer.Option(help="Base URL overriding the environment for this call."),
]
MockResponsesOption = Annotated[
    Path | None,
    typer.Option(help="JSON list of canned responses, required when --provider mock."),
]


def _version_callback(value: bool) -> None:
    """Print package version and exit when requested."""
    if value:
        console.print(__version__)
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show Vispro version and exit.",
            is_eager=True,
            callback=_version_callback,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug logging."),
    ] = False,
    log_file: Annotated[
        Path,
        typer.Option("--log-file", help="Write logs to vispro.log (default: ./vispro.log)."),
    ] = Path("vispro.log"),
) -> None:
    """Turn UI designs into code with a choice of model providers."""
    configure_logging(log_file=log_file, verbose=verbose)


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except VisproError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_mock_responses(mock_responses_file: Path) -> list[str]:
    """Load and validate canned mock provider responses."""
    raw = json.loads(mock_responses_file.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise typer.BadParameter("--mock-responses-file must contain a JSON list.")
    for index, item in enumerate(raw):
        if not isinstance(item, str):
            raise typer.BadParameter(f"Mock response index {index} is not a string.")
    return raw


def _create_registry(
    settings: Settings, provider: str | None, mock_responses_file: Path | None
) -> ProviderRegistry:
    registry = default_registry(settings)
    if provider is not None and provider.strip().lower() == MOCK:
        if mock_responses_file is None:
            raise typer.BadParameter("--mock-responses-file is required when provider=mock.")
        registry.register(MockAdapter(_load_mock_responses(mock_responses_file), settings))
    return registry


def _model_config(
    settings: Settings,
    kind: ModelKind,
    *,
    provider: str | None,
    model: str | None,
    temperature: float | None,
    max_tokens: int | None,
    api_key: str | None,
    base_url: str | None,
) -> ModelConfig:
    """Combine CLI options with the configured default model."""
    try:
        default = settings.default_model_config(kind)
        provider_id = provider or default.provider_id
        if model is None:
            if provider is None:
                model = default.model_id
            else:
                known = available_models(provider_id)
                model = known[0] if known else "default"
        credentials = Credentials(api_key=api_key, base_url=base_url)
        return ModelConfig(
            provider_id=provider_id,
            model_id=model,
            temperature=temperature,
            max_tokens=max_tokens,
            credentials=credentials if api_key or base_url else None,
        )
    except VisproError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _design_input(image: Path | None, text: str | None) -> DesignInput:
    if image is None:
        return DesignInput(text_description=text)
    try:
        return DesignInput.from_path(image, text)
    except VisproError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_analysis(analysis_file: Path | None, analysis_text: str | None) -> str:
    """Load analysis text from file or inline input with mutual exclusivity validation."""
    if analysis_file is None and analysis_text is None:
        raise typer.BadParameter("Provide --analysis-file or --analysis-text.")
    if analysis_file is not None and analysis_text is not None:
        raise typer.BadParameter("Use either --analysis-file or --analysis-text, not both.")
    if analysis_file is not None:
        return analysis_file.read_text(encoding="utf-8")
    return analysis_text or ""


def _fail(exc: VisproError) -> typer.Exit:
    console.print(f"Error: {exc}", markup=False)
    return typer.Exit(code=1)


def _files_table(title: str, files: list[GeneratedFile]) -> Table:
    table = Table(title=title)
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Path")
    table.add_column("Chars", justify="right")
    for file in files:
        table.add_row(file.name, file.kind, file.path, str(len(file.content)))
    return table


def _write_files(output_dir: Path, files: list[GeneratedFile]) -> None:
    """Write generated files below output_dir, refusing paths that escape it."""
    for file in files:
        try:
            target = ensure_safe_relative_path(output_dir, file.name)
        except SecurityError as exc:
            raise typer.BadParameter(str(exc)) from exc
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(file.content, encoding="utf-8")
    console.print(f"Wrote {len(files)} files to {output_dir}")


@app.command()
def analyze(
    image: Annotated[Path | None, typer.Option(help="Design image (png, jpg, webp, gif).")] = None,
    text: Annotated[str | None, typer.Option(help="Text description of the design.")] = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    temperature: TemperatureOption = None,
    max_tokens: MaxTokensOption = None,
    api_key: ApiKeyOption = None,
    base_url: BaseUrlOption = None,
    mock_responses_file: MockResponsesOption = None,
    output_file: Annotated[
        Path | None,
        typer.Option(help="Also write the analysis text to this file."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the result with its metadata as JSON."),
    ] = False,
) -> None:
    """Analyze a design image and/or description."""
    settings = _load_settings()
    config = _model_config(
        settings,
        "vision",
        provider=provider,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        api_key=api_key,
        base_url=base_url,
    )
    registry = _create_registry(settings, provider, mock_responses_file)
    with ResultCache() as cache:
        service = DesignToCodeService(cache, registry=registry, settings=settings)
        try:
            result = service.analyze(_design_input(image, text), config)
        except VisproError as exc:
            raise _fail(exc) from exc
    if output_file is not None:
        output_file.write_text(result.analysis_text, encoding="utf-8")
    if as_json:
        console.print_json(json.dumps(result.to_dict(), indent=2))
    else:
        console.print(result.analysis_text, markup=False)


@app.command()
def stream(
    image: Annotated[Path | None, typer.Option(help="Design image (png, jpg, webp, gif).")] = None,
    text: Annotated[str | None, typer.Option(help="Text description of the design.")] = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    temperature: TemperatureOption = None,
    max_tokens: MaxTokensOption = None,
    api_key: ApiKeyOption = None,
    base_url: BaseUrlOption = None,
    mock_responses_file: MockResponsesOption = None,
) -> None:
    """Stream an analysis to the terminal as it is produced."""
    settings = _load_settings()
    config = _model_config(
        settings,
        "vision",
        provider=provider,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        api_key=api_key,
        base_url=base_url,
    )
    registry = _create_registry(settings, provider, mock_responses_file)
    failed = False
    with ResultCache() as cache:
        service = DesignToCodeService(cache, registry=registry, settings=settings)
        try:
            chunks = service.stream_analyze(_design_input(image, text), config)
        except VisproError as exc:
            raise _fail(exc) from exc
        for chunk in chunks:
            if chunk.is_error:
                console.print(f"\n{chunk.text}", style="red", markup=False)
            else:
                console.print(chunk.text, end="", markup=False)
            failed = chunk.is_error
    console.print()
    if failed:
        raise typer.Exit(code=1)


@app.command()
def generate(
    analysis_file: Annotated[
        Path | None,
        typer.Option(help="File holding a previous analysis."),
    ] = None,
    analysis_text: Annotated[str | None, typer.Option(help="Inline analysis text.")] = None,
    project_name: Annotated[
        str | None,
        typer.Option(help="Save the generated files as a project with this name."),
    ] = None,
    description: Annotated[str | None, typer.Option(help="Project description.")] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option(help="Write the generated files into this directory."),
    ] = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    temperature: TemperatureOption = None,
    max_tokens: MaxTokensOption = None,
    api_key: ApiKeyOption = None,
    base_url: BaseUrlOption = None,
    mock_responses_file: MockResponsesOption = None,
) -> None:
    """Generate implementation files from an analysis."""
    analysis = _load_analysis(analysis_file, analysis_text)
    settings = _load_settings()
    config = _model_config(
        settings,
        "generation",
        provider=provider,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        api_key=api_key,
        base_url=base_url,
    )
    registry = _create_registry(settings, provider, mock_responses_file)
    with ResultCache() as cache:
        service = DesignToCodeService(
            cache,
            registry=registry,
            settings=settings,
            project_store=ProjectStore(settings.projects_path),
        )
        try:
            files = service.generate_files(analysis, config, project_name, description)
        except VisproError as exc:
            raise _fail(exc) from exc
    console.print(_files_table("Generated Files", files))
    if project_name:
        console.print(f"Saved project: {project_name}", markup=False)
    if output_dir is not None:
        _write_files(output_dir, files)


@app.command()
def revise(
    project_id: Annotated[str, typer.Option(help="Stored project whose files to revise.")],
    feedback: Annotated[str, typer.Option(help="What to change.")],
    provider: ProviderOption = None,
    model: ModelOption = None,
    temperature: TemperatureOption = None,
    max_tokens: MaxTokensOption = None,
    api_key: ApiKeyOption = None,
    base_url: BaseUrlOption = None,
    mock_responses_file: MockResponsesOption = None,
) -> None:
    """Revise a stored project's files from feedback and save the result."""
    settings = _load_settings()
    store = ProjectStore(settings.projects_path)
    try:
        project = store.get_project(project_id)
    except KeyError as exc:
        raise typer.BadParameter(f"Project '{project_id}' not found.") from exc
    config = _model_config(
        settings,
        "generation",
        provider=provider,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        api_key=api_key,
        base_url=base_url,
    )
    registry = _create_registry(settings, provider, mock_responses_file)
    with ResultCache() as cache:
        service = DesignToCodeService(cache, registry=registry, settings=settings)
        try:
            files = service.revise_files(list(project.files), feedback, config)
        except VisproError as exc:
            raise _fail(exc) from exc
    store.update_project(project.id, files=files)
    console.print(_files_table("Revised Files", files))


@app.command()
def providers() -> None:
    """List providers and whether their credentials are configured."""
    settings = _load_settings()
    table = Table(title="Providers")
    table.add_column("Provider")
    table.add_column("Name")
    table.add_column("Capabilities")
    table.add_column("Configured")
    for adapter in default_registry(settings).adapters():
        capabilities = sorted(capability.value for capability in adapter.capabilities)
        configured = has_provider_credentials(adapter.provider_id, settings)
        table.add_row(
            adapter.provider_id,
            adapter.display_name,
            ", ".join(capabilities),
            "yes" if configured else "no",
        )
    console.print(table)


@app.command()
def models(
    provider: Annotated[str, typer.Argument(help="Provider id.")],
) -> None:
    """List the known models for a provider."""
    known = available_models(provider)
    if not known:
        raise typer.BadParameter(f"No known models for provider '{provider}'.")
    table = Table(title=f"Models for {provider}")
    table.add_column("Model")
    table.add_column("Context tokens", justify="right")
    for model_id in known:
        table.add_row(model_id, str(max_context_tokens(model_id)))
    console.print(table)


def _project_store() -> ProjectStore:
    return ProjectStore(_load_settings().projects_path)


@projects_app.command("list")
def projects_list() -> None:
    """List saved projects, most recent first."""
    projects = _project_store().list_projects()
    if not projects:
        console.print("No projects saved.")
        return
    table = Table(title="Projects")
    table.add_column("Project ID")
    table.add_column("Name")
    table.add_column("Files", justify="right")
    table.add_column("Saved")
    for project in projects:
        saved = datetime.fromtimestamp(project.timestamp / 1000, tz=UTC)
        table.add_row(
            project.id,
            project.name,
            str(len(project.files)),
            saved.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@projects_app.command("show")
def projects_show(
    project_id: Annotated[str, typer.Argument(help="Project ID.")],
) -> None:
    """Show one project with its files."""
    try:
        project = _project_store().get_project(project_id)
    except KeyError as exc:
        raise typer.BadParameter(f"Project '{project_id}' not found.") from exc
    console.print_json(json.dumps(project.to_dict(), indent=2))


@projects_app.command("delete")
def projects_delete(
    project_id: Annotated[str, typer.Argument(help="Project ID.")],
    force: Annotated[bool, typer.Option("--force", help="Skip confirmation.")] = False,
) -> None:
    """Delete a saved project."""
    if not force and not typer.confirm(f"Delete project {project_id}?", default=False):
        raise typer.Exit(code=1)
    if not _project_store().delete_project(project_id):
        raise typer.BadParameter(f"Project '{project_id}' not found.")
    console.print(f"Deleted project: {project_id}")


@projects_app.command("export")
def projects_export(
    project_id: Annotated[str, typer.Argument(help="Project ID.")],
    output: Annotated[Path, typer.Option(help="Destination ZIP file.")],
) -> None:
    """Export a project's files as a ZIP archive."""
    try:
        path = _project_store().export_zip(project_id, output)
    except KeyError as exc:
        raise typer.BadParameter(f"Project '{project_id}' not found.") from exc
    console.print(f"Exported: {path}")


if __name__ == "__main__":
    app()
