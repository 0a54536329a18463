"""
mlpack bindings - CLI Entry Point.

Provides:
- mlpack-bindings version:   package, backend and native library version
- mlpack-bindings list:      programs by family
- mlpack-bindings describe:  parameters and outputs of one program
- mlpack-bindings run:       run a program on CSV inputs
- mlpack-bindings download:  fetch (and gunzip) a dataset
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

# Configure logging early
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("mlpack_bindings.cli")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    from mlpack_bindings.config import get_config

    level = logging.DEBUG if verbose else get_config().log_level.upper()
    logging.getLogger("mlpack_bindings").setLevel(level)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the mlpack-bindings CLI."""
    parser = argparse.ArgumentParser(
        prog="mlpack-bindings",
        description="Run mlpack programs on CSV data through the Python bindings",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Version command
    subparsers.add_parser("version", help="Show package and native library versions")

    # List command
    list_parser = subparsers.add_parser("list", help="List available programs")
    list_parser.add_argument(
        "--family",
        help="Only list programs of this family (e.g. clustering)",
    )

    # Describe command
    describe_parser = subparsers.add_parser("describe", help="Show the parameters of a program")
    describe_parser.add_argument("program", help="Program name, e.g. kmeans")

    # Run command
    run_parser = subparsers.add_parser("run", help="Run a program")
    run_parser.add_argument("program", help="Program name, e.g. kmeans")
    run_parser.add_argument(
        "params",
        nargs="*",
        metavar="NAME=VALUE",
        help="Parameter values; matrix parameters take CSV file paths",
    )
    run_parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory to write matrix outputs to (as <name>.csv)",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Use the in-memory registry instead of the native libraries",
    )

    # Download command
    download_parser = subparsers.add_parser("download", help="Download a dataset")
    download_parser.add_argument("url", help="URL to download")
    download_parser.add_argument(
        "--dest",
        type=Path,
        help="Destination file (default: data_dir/<file name>)",
    )
    download_parser.add_argument(
        "--unzip",
        action="store_true",
        help="Gunzip the downloaded file",
    )

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.version:
        from mlpack_bindings import __version__
        print(f"mlpack-bindings v{__version__}")
        return 0

    if args.command is None:
        parser.print_help()
        return 0

    # Dispatch to handlers
    if args.command == "version":
        return _show_version(args)
    elif args.command == "list":
        return _list_programs(args)
    elif args.command == "describe":
        return _describe_program(args)
    elif args.command == "run":
        return _run_program(args)
    elif args.command == "download":
        return _download(args)

    return 0


def _show_version(args: argparse.Namespace) -> int:
    """Show package, backend and native versions."""
    from mlpack_bindings import __version__
    from mlpack_bindings.bindings import get_bridge
    from rich.console import Console
    from rich.table import Table

    console = Console()
    bridge = get_bridge()

    table = Table(title="mlpack bindings")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("mlpack-bindings", __version__)
    table.add_row("backend", bridge.backend)
    table.add_row("mlpack", bridge.version() or "unknown")

    console.print(table)
    return 0


def _list_programs(args: argparse.Namespace) -> int:
    """List programs in a table."""
    from mlpack_bindings.bindings import list_programs
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    console = Console()
    programs = list_programs(args.family)

    if not programs:
        console.print(f"[yellow]No programs in family {escape(str(args.family))}[/yellow]")
        return 1

    table = Table(title="mlpack programs")
    table.add_column("Program", style="cyan", no_wrap=True)
    table.add_column("Family", style="magenta", no_wrap=True)
    table.add_column("Summary")

    for program in programs:
        table.add_row(program.name, program.family, escape(program.summary))

    console.print(table)
    return 0


def _format_default(spec) -> str:
    if spec.required:
        return "(required)"
    if spec.default is None:
        return "-"
    return repr(spec.default)


def _describe_program(args: argparse.Namespace) -> int:
    """Show parameter and output tables for one program."""
    from mlpack_bindings.bindings import get_program
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    console = Console()
    try:
        program = get_program(args.program)
    except KeyError as e:
        console.print(f"[red]{escape(e.args[0])}[/red]")
        return 1

    console.print(f"[bold]{program.name}[/bold]: {escape(program.title)}")
    if program.summary:
        console.print(escape(program.summary))

    params = Table(title="Parameters")
    params.add_column("Name", style="cyan", no_wrap=True)
    params.add_column("Type", style="magenta", no_wrap=True)
    params.add_column("Default", no_wrap=True)
    params.add_column("Description")
    for spec in program.params:
        kind = spec.kind.value
        if spec.model_type:
            kind = f"{kind}<{spec.model_type}>"
        params.add_row(spec.identifier, kind, escape(_format_default(spec)), escape(spec.doc))
    console.print(params)

    if program.outputs:
        outputs = Table(title="Outputs")
        outputs.add_column("Name", style="cyan", no_wrap=True)
        outputs.add_column("Type", style="magenta", no_wrap=True)
        outputs.add_column("Description")
        for spec in program.outputs:
            outputs.add_row(spec.identifier, spec.kind.value, escape(spec.doc))
        console.print(outputs)

    return 0


# =============================================================================
# RUN
# =============================================================================


_TRUE_STRINGS = ("true", "1", "yes", "on")
_FALSE_STRINGS = ("false", "0", "no", "off")


def parse_value(spec, raw: str) -> Any:
    """
    Convert a command-line string to the value a parameter expects.

    Matrix parameters read the named CSV file; model parameters cannot be
    given on the command line.

    Raises:
        ValueError: if the string does not parse.
    """
    from mlpack_bindings.bindings.params import DataWithInfo, ParamKind
    from mlpack_bindings.data import load

    kind = spec.kind
    if kind is ParamKind.BOOL:
        lowered = raw.lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError(f"expected a boolean for {spec.identifier}, got {raw!r}")
    if kind is ParamKind.INT:
        return int(raw)
    if kind is ParamKind.DOUBLE:
        return float(raw)
    if kind is ParamKind.STRING:
        return raw
    if kind is ParamKind.VEC_INT:
        return [int(v) for v in raw.split(",") if v.strip()]
    if kind is ParamKind.VEC_STRING:
        return [v for v in raw.split(",") if v]
    if kind is ParamKind.MODEL:
        raise ValueError(f"model parameter {spec.identifier} cannot be passed on the command line")

    data = load(raw)
    if kind is ParamKind.MATRIX_WITH_INFO:
        return DataWithInfo(data)
    if not kind.is_two_dimensional:
        return data.reshape(-1)
    return data


def parse_params(program, pairs: List[str]) -> Dict[str, Any]:
    """Parse NAME=VALUE pairs into keyword overrides for ``program``."""
    specs = {spec.identifier: spec for spec in program.params}
    specs.update({spec.name: spec for spec in program.params})

    values: Dict[str, Any] = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        if not sep:
            raise ValueError(f"expected NAME=VALUE, got {pair!r}")
        spec = specs.get(name)
        if spec is None:
            raise ValueError(f"unknown parameter {name!r} for {program.name}")
        values[spec.name] = parse_value(spec, raw)
    return values


def _run_program(args: argparse.Namespace) -> int:
    """Run one program and report (or save) its outputs."""
    from mlpack_bindings.bindings import InMemoryRegistry, MLPackBridge, ModelHandle, get_bridge, get_program
    from mlpack_bindings.core.error_handling import MLPackBindingError
    from mlpack_bindings.data import save
    from mlpack_bindings.methods.testing import install_dry_run_handler
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    console = Console()

    try:
        program = get_program(args.program)
    except KeyError as e:
        console.print(f"[red]{escape(e.args[0])}[/red]")
        return 1

    try:
        overrides = parse_params(program, args.params)
    except (ValueError, OSError) as e:
        console.print(f"[bold red]Invalid parameters:[/bold red] {escape(str(e))}")
        return 1

    if args.dry_run:
        registry = InMemoryRegistry()
        install_dry_run_handler(registry)
        bridge = MLPackBridge(registry=registry)
    else:
        bridge = get_bridge()

    try:
        result = program.run(bridge=bridge, **overrides)
    except MLPackBindingError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        logger.debug("Program error", exc_info=True)
        return 1

    table = Table(title=f"{program.name} outputs")
    table.add_column("Output", style="cyan", no_wrap=True)
    table.add_column("Value")

    for name, value in result.as_dict().items():
        if value is None:
            continue
        if isinstance(value, np.ndarray):
            if args.output_dir is not None:
                path = save(args.output_dir / f"{name}.csv", value)
                table.add_row(name, escape(str(path)))
            else:
                table.add_row(name, f"array{value.shape}")
        elif isinstance(value, ModelHandle):
            table.add_row(name, escape(repr(value)))
        else:
            table.add_row(name, escape(str(value)))

    console.print(table)
    return 0


# =============================================================================
# DOWNLOAD
# =============================================================================


def _download(args: argparse.Namespace) -> int:
    """Download a dataset, optionally gunzipping it."""
    from mlpack_bindings.core.error_handling import DownloadError
    from mlpack_bindings.data import download_file, unzip
    from rich.console import Console
    from rich.markup import escape

    console = Console()

    try:
        path = download_file(args.url, args.dest)
    except DownloadError as e:
        console.print(f"[bold red]Download failed:[/bold red] {escape(str(e))}")
        return 1

    console.print(f"Downloaded to: [green]{escape(str(path))}[/green]")

    if args.unzip:
        try:
            extracted = unzip(path)
        except (OSError, ValueError) as e:
            console.print(f"[bold red]Extraction failed:[/bold red] {escape(str(e))}")
            return 1
        console.print(f"Extracted to: [green]{escape(str(extracted))}[/green]")

    return 0


if __name__ == "__main__":
    sys.exit(main())
