"""
Command-line interface for schemagen.

Provides the ``schemagen generate`` and ``schemagen fingerprint`` commands.
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .codegen.compiler import CompilationError
from .codegen.core.config import ConfigError, GeneratorConfig, load_config
from .codegen.core.generator import GeneratorError
from .codegen.core.schema import SchemaError, schema_fingerprint
from .codegen.core.templates import TemplateError
from .codegen.orchestrator import GenerationReport, Orchestrator
from .logging_config import configure_logging, get_logger
from .utils import SchemaLoaderError, load_generation_inputs

logger = get_logger(__name__)


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


# Initialize rich console
console = Console()


def _add_input_args(parser: argparse.ArgumentParser):
    parser.add_argument("schema", help="Schema snapshot: JSON file or http(s) URL")
    parser.add_argument(
        "--endpoints",
        "-e",
        metavar="SOURCE",
        help="Endpoint descriptors: JSON file or URL (default: taken from the schema document)",
    )
    parser.add_argument("--token", help="Bearer token for protected schema URLs")
    parser.add_argument(
        "--timeout", type=int, default=30, help="Request timeout in seconds (default: 30)"
    )


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="schemagen",
        description="Compile content-model schemas into typed Python API clients",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  schemagen generate schema.json -o src/cms_client
  schemagen generate http://localhost:1337/api/schemagen/schema --token TOKEN
  schemagen generate schema.json --endpoints endpoints.json --config schemagen.json
  schemagen fingerprint schema.json
        """.strip(),
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command")

    generate = subparsers.add_parser(
        "generate", help="Generate a client package from a schema snapshot"
    )
    _add_input_args(generate)
    generate.add_argument("--output", "-o", metavar="DIR", help="Output directory")
    generate.add_argument("--config", metavar="FILE", help="JSON configuration file")
    generate.add_argument("--client-name", metavar="NAME", help="Generated client class name")
    generate.add_argument("--api-prefix", metavar="PREFIX", help="API path prefix (default: /api)")
    generate.add_argument(
        "--no-declarations",
        action="store_true",
        help="Don't write .pyi stubs and the py.typed marker",
    )
    generate.add_argument(
        "--declaration-only",
        action="store_true",
        help="Write only the .pyi stubs and the py.typed marker",
    )
    generate.add_argument(
        "--no-format", action="store_true", help="Skip cosmetic formatting"
    )
    generate.add_argument(
        "--no-comments", action="store_true", help="Don't add docstrings and comments"
    )
    generate.add_argument(
        "--no-auth",
        action="store_true",
        help="Don't generate the authentication namespace",
    )
    generate.add_argument(
        "--verbose", action="store_true", help="Show warnings and file details"
    )
    generate.set_defaults(func=_handle_generate)

    fingerprint = subparsers.add_parser(
        "fingerprint", help="Print the stable hash of a schema snapshot"
    )
    _add_input_args(fingerprint)
    fingerprint.set_defaults(func=_handle_fingerprint)

    return parser


def _build_config(args: argparse.Namespace) -> GeneratorConfig:
    """Merge defaults, the configuration file and command-line overrides."""
    overrides = {
        "output_dir": args.output,
        "client_class_name": args.client_name,
        "api_prefix": args.api_prefix,
    }
    if args.no_declarations:
        overrides["emit_declarations"] = False
    if args.declaration_only:
        overrides["declaration_only"] = True
    if args.no_format:
        overrides["format_output"] = False
    if args.no_comments:
        overrides["add_comments"] = False
    if args.no_auth:
        overrides["auth_api"] = False

    if args.no_declarations and args.declaration_only:
        raise CLIError("--no-declarations and --declaration-only cannot be combined")

    return load_config(overrides, args.config)


def _handle_generate(args: argparse.Namespace) -> int:
    config = _build_config(args)
    schema, operations, extra_types = load_generation_inputs(
        args.schema, args.endpoints, timeout=args.timeout, token=args.token
    )

    console.print(
        f"📄 Loaded {len(schema.records)} record types, "
        f"{len(schema.embeddables)} embeddable types, {len(operations)} operations"
    )
    report = Orchestrator(config).generate(schema, operations, extra_types)
    _print_report(report, verbose=args.verbose)
    return 0 if report.success else 1


def _handle_fingerprint(args: argparse.Namespace) -> int:
    schema, operations, extra_types = load_generation_inputs(
        args.schema, args.endpoints, timeout=args.timeout, token=args.token
    )
    console.print(schema_fingerprint(schema, operations, extra_types), highlight=False)
    return 0


def _print_report(report: GenerationReport, verbose: bool = False):
    table = Table(title="📦 Generated files", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("File", style="bold")
    table.add_column("Status")
    if verbose:
        table.add_column("Size", justify="right", style="dim")

    for outcome in report.outcomes:
        status = "[green]✓ written[/green]" if outcome.ok else f"[red]✗ {outcome.error}[/red]"
        row = [str(outcome.path), status]
        if verbose:
            row.append(str(len(report.files.get(outcome.path.name, ""))))
        table.add_row(*row)

    console.print()
    console.print(table)

    if report.warnings:
        if verbose:
            console.print(
                Panel(
                    "\n".join(f"• {w}" for w in report.warnings),
                    title="⚠️  Warnings",
                    border_style="yellow",
                )
            )
        else:
            console.print(
                f"[yellow]⚠️  {len(report.warnings)} warning(s), "
                "use --verbose to show them[/yellow]"
            )

    if report.success:
        console.print(f"[green]✓ Client written to {report.output_dir}[/green]")
    else:
        console.print(f"[red]✗ {len(report.failed)} file(s) could not be written[/red]")


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``schemagen`` console script."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(getattr(logging, args.log_level))

    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except CompilationError as e:
        console.print("[red]✗ Generated code failed to compile:[/red]")
        for diagnostic in e.diagnostics:
            console.print(f"  {diagnostic}", markup=False, highlight=False)
        return 1
    except (
        CLIError,
        ConfigError,
        SchemaLoaderError,
        SchemaError,
        GeneratorError,
        TemplateError,
    ) as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
