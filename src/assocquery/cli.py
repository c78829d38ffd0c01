"""assocquery command-line interface.

Typer-based CLI to serve the HTTP API or answer a single request offline.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

import assocquery
from assocquery.core.config import ServiceConfig
from assocquery.io import read_covariate_table
from assocquery.service import AssociationService
from assocquery.store.genotype import DEFAULT_BLOCK_WIDTHS, GenotypeStoreSet
from assocquery.utils import log_rss_memory, setup_logging

app = typer.Typer(
    name="assocquery",
    help="assocquery: association statistics over pre-aggregated genotype stores.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"assocquery version {assocquery.__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Verbose output"),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write JSON DEBUG logs to this file"),
    ] = None,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """assocquery: phenotype association queries over genotype stores."""
    setup_logging(verbose=verbose, log_file=log_file)


def _load_service(
    bfile: Path,
    covariates: Path,
    default_min_mac: int | None,
    show_progress: bool = False,
) -> AssociationService:
    bed_path = Path(f"{bfile}.bed")
    if not bed_path.exists():
        typer.echo(f"Error: PLINK file not found: {bed_path}", err=True)
        raise typer.Exit(code=1)
    if not covariates.exists():
        typer.echo(f"Error: covariate file not found: {covariates}", err=True)
        raise typer.Exit(code=1)

    try:
        stores = GenotypeStoreSet.from_plink(
            bfile, block_widths=DEFAULT_BLOCK_WIDTHS, show_progress=show_progress
        )
        table = read_covariate_table(covariates, sample_ids=stores.sample_ids)
    except ValueError as e:
        typer.echo(f"Error loading data: {e}", err=True)
        raise typer.Exit(code=1) from None
    log_rss_memory("data_loaded")

    overrides = {}
    if default_min_mac is not None:
        overrides["default_min_mac"] = default_min_mac
    config = ServiceConfig.from_env(**overrides)
    return AssociationService(stores, table, config=config)


@app.command("serve")
def serve_command(
    bfile: Annotated[
        Path,
        typer.Option("--bfile", help="PLINK binary file prefix"),
    ],
    covariates: Annotated[
        Path,
        typer.Option("--covariates", help="Phenotype/covariate table (with header)"),
    ],
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", help="Bind port")] = 6062,
    default_min_mac: Annotated[
        int | None,
        typer.Option(
            "--default-min-mac",
            min=0,
            help="Minimum MAC when a request has no mac filter",
        ),
    ] = None,
) -> None:
    """Load the genotype stores and serve POST /getStats."""
    import uvicorn

    from assocquery.api import create_app

    service = _load_service(bfile, covariates, default_min_mac, show_progress=True)
    uvicorn.run(create_app(service), host=host, port=port, log_level="warning")


@app.command("query")
def query_command(
    bfile: Annotated[
        Path,
        typer.Option("--bfile", help="PLINK binary file prefix"),
    ],
    covariates: Annotated[
        Path,
        typer.Option("--covariates", help="Phenotype/covariate table (with header)"),
    ],
    request: Annotated[
        Path,
        typer.Option("--request", help="JSON request file"),
    ],
    default_min_mac: Annotated[
        int | None,
        typer.Option(
            "--default-min-mac",
            min=0,
            help="Minimum MAC when a request has no mac filter",
        ),
    ] = None,
) -> None:
    """Answer one request from a JSON file and print the JSON result."""
    if not request.exists():
        typer.echo(f"Error: request file not found: {request}", err=True)
        raise typer.Exit(code=1)

    service = _load_service(bfile, covariates, default_min_mac)
    result = service.get_stats(request.read_text())
    typer.echo(json.dumps(result.to_wire()))
    if result.is_error:
        raise typer.Exit(code=1)
