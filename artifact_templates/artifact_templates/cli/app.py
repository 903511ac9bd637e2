"""Main CLI application."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from typing_extensions import Annotated

from ..core.errors import TemplateProcessingError
from ..core.models import ArtifactTemplateRequest, request_from_mapping
from ..core.settings import Settings
from ..processor import ArtifactTemplateProcessor
from ..resolution.resolver import LocalRepositoryResolver, TemplateResolver
from .parsers import load_plugins, parse_file_mode, parse_properties

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_ALREADY_EXISTS = 2

app = typer.Typer(
    name="artifact-templates",
    help="Project versioned artifact templates into an installation directory.",
)

RepositoryOption = Annotated[
    Optional[Path],
    typer.Option(
        "--repository",
        "-r",
        help="Local artifact repository (default: ARTIFACT_TEMPLATES_REPOSITORY_PATH).",
        metavar="DIR",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable verbose logging."),
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def _settings(**overrides: Any) -> Settings:
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


@app.command()
def project(
    template: Annotated[
        Optional[str],
        typer.Option(
            "--template",
            "-t",
            help="Template identifier (groupId:artifactId#versionRange). Defaults to the request kind's template.",
            metavar="ID",
        ),
    ] = None,
    installation_path: Annotated[
        str,
        typer.Option(
            "--installation-path",
            "--ip",
            help="Installation path of the projection (default: cwd).",
            metavar="DIR",
        ),
    ] = ".",
    directory_name: Annotated[
        Optional[str],
        typer.Option(
            "--directory-name",
            "--dn",
            help="Directory the projection is nested in.",
            metavar="NAME",
        ),
    ] = None,
    overwrite: Annotated[
        bool,
        typer.Option("--overwrite", "-o", help="Overwrite existing files."),
    ] = False,
    properties: Annotated[
        list[str],
        typer.Option(
            "--set",
            "-s",
            help="Request property (format: NAME=VALUE). Repeatable.",
            metavar="NAME=VALUE",
        ),
    ] = [],
    kind: Annotated[
        str,
        typer.Option("--kind", "-k", help="Request kind to build.", metavar="KIND"),
    ] = ArtifactTemplateRequest.kind(),
    plugins: Annotated[
        list[str],
        typer.Option(
            "--plugin",
            help="Module declaring request kinds, imported before the request is built. Repeatable.",
            metavar="MODULE",
        ),
    ] = [],
    repository: RepositoryOption = None,
    config: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            help="YAML configuration exposed to templates through support.config().",
            metavar="FILE",
        ),
    ] = None,
    file_mode: Annotated[
        Optional[str],
        typer.Option(
            "--mode",
            help="File permissions of rendered files in octal (default: ARTIFACT_TEMPLATES_FILE_MODE or 0644).",
            metavar="OCTAL",
        ),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Project an artifact template and its dependencies."""
    _configure_logging(verbose)

    load_plugins(plugins)
    payload: dict[str, Any] = {
        **parse_properties(properties),
        "type": kind,
        "installation_path": installation_path,
        "directory_name": directory_name,
        "overwrite": overwrite,
        "template": template,
    }
    try:
        request = request_from_mapping(payload)
    except (ValueError, ValidationError) as e:
        raise typer.BadParameter(str(e)) from e

    settings = _settings(
        repository_path=repository,
        config_path=config,
        file_mode=parse_file_mode(file_mode) if file_mode else None,
        verbose=verbose or None,
    )
    logger.debug(f"Repository: {settings.repository_path}")

    processor = ArtifactTemplateProcessor.from_settings(settings)
    try:
        result = processor.process(request)
    except TemplateProcessingError as e:
        logger.error(str(e))
        raise typer.Exit(EXIT_FAILURE) from e

    if not result.succeeded:
        typer.echo(result.message, err=True)
        for path in result.conflicting_paths:
            typer.echo(f"  {path}", err=True)
        raise typer.Exit(EXIT_ALREADY_EXISTS)

    typer.echo(result.message)


@app.command()
def resolve(
    template: Annotated[
        str,
        typer.Argument(help="Template identifier (groupId:artifactId#versionRange)."),
    ],
    repository: RepositoryOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Print the concrete artifact a template identifier resolves to."""
    _configure_logging(verbose)

    settings = _settings(repository_path=repository)
    resolver = TemplateResolver(LocalRepositoryResolver(settings.repository_path))
    try:
        archive = resolver.resolve(template, "command line")
    except TemplateProcessingError as e:
        logger.error(str(e))
        raise typer.Exit(EXIT_FAILURE) from e

    typer.echo(f"{archive.coordinate} ({archive.archive_path})")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
