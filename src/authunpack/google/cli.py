# src/authunpack/google/cli.py

import sys
import logging
import argparse
import traceback
from pathlib import Path
from datetime import datetime
from typing import List, Optional, Sequence

import pyfiglet
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from authunpack.common.models import ExportedAccount
from .extractor import collect_accounts
from .report import REPORT_FORMATS, save_report
from .transport import MIGRATION_SCHEME

# Everything goes to stderr so stdout stays clean for pipes
console = Console(stderr=True)
logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_STEM = "otp_accounts"
ERROR_LOG = "authunpack_error.log"


def _display_banner() -> None:
    plain_banner = pyfiglet.figlet_format("authunpack", font="slant")
    console.print(
        Panel(
            plain_banner,
            title="[bold white]authunpack[/bold white]",
            subtitle="[cyan]Google Authenticator export decoder[/cyan]",
            border_style="cyan",
            expand=False,
        )
    )


def _setup_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authunpack",
        description="Decode Google Authenticator 'otpauth-migration://' exports into otpauth:// URIs and a report.",
    )
    parser.add_argument(
        "inputs",
        nargs="*",
        metavar="INPUT",
        help="otpauth-migration:// URI, or an image file / directory of QR code screenshots",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=REPORT_FORMATS,
        default="html",
        help="report format (default: html)",
    )
    parser.add_argument(
        "-o", "--output", type=Path, help=f"report path (default: {DEFAULT_OUTPUT_STEM}.<format>)"
    )
    parser.add_argument("--preview", action="store_true", help="only print the summary table, write no file")
    parser.add_argument("-v", "--verbose", action="store_true", help="show debug logging")
    return parser


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _gather_uris(inputs: Sequence[str]) -> List[str]:
    uris = []
    for item in inputs:
        if item.startswith(f"{MIGRATION_SCHEME}://") or not Path(item).exists():
            # Anything that is not a file goes through as-is and fails loudly later
            uris.append(item)
            continue

        try:
            from .scanner import extract_uris_from_path
        except ImportError as e:
            logger.error("Cannot scan %s for QR codes: %s", item, e)
            continue

        found = extract_uris_from_path(item)
        if found:
            console.print(f"[dim]Found {len(found)} migration QR code(s) in {item}[/dim]")
        else:
            logger.warning("No migration QR codes found in %s", item)
        uris.extend(found)
    return uris


def _show_table(accounts: List[ExportedAccount]) -> None:
    table = Table(
        title=f"\nExtracted {len(accounts)} account(s)",
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("#", justify="right")
    table.add_column("Issuer", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Type", justify="center")
    table.add_column("Algorithm", justify="center")
    table.add_column("Digits", justify="center")

    for i, acc in enumerate(accounts, 1):
        table.add_row(str(i), acc.issuer or "-", acc.name or "-", acc.type, acc.algorithm, str(acc.digits))

    console.print(table)


def _write_report(accounts: List[ExportedAccount], output: Path, fmt: str) -> None:
    try:
        with console.status("[bold green]Rendering report...[/bold green]"):
            path = save_report(accounts, output, fmt)
        console.print(f"\n[bold green]✓[/] Report written to [bold magenta]{path}[/]")
        console.print(f"Total accounts: {len(accounts)}")
        console.print("[red][!] The report contains your 2FA secrets. Delete it once you are done.[/red]")
    except OSError as e:
        console.print(f"[bold red]✗ Could not write the report:[/bold red] {e}")
        sys.exit(1)
    except Exception:
        console.print(
            f"[bold red]✗ Unexpected internal error.[/bold red] Details were appended to `{ERROR_LOG}`."
        )
        with open(ERROR_LOG, "a", encoding="utf-8") as f:
            f.write(f"--- {datetime.now().strftime('%Y-%m-%d %H:%M:%S')} ---\n")
            traceback.print_exc(file=f)
            f.write("\n")
        sys.exit(1)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = _setup_arg_parser()
    args = parser.parse_args(argv)

    if not args.inputs:
        parser.print_usage()
        sys.exit(1)

    _setup_logging(args.verbose)
    _display_banner()

    uris = _gather_uris(args.inputs)
    with console.status("[bold green]Decoding migration data...[/bold green]"):
        result = collect_accounts(uris)

    if result.failures:
        console.print(f"[yellow]{len(result.failures)} of {len(uris)} input(s) could not be decoded.[/yellow]")

    if not result.accounts:
        console.print("[bold red]no accounts found[/bold red]")
        return

    _show_table(result.accounts)

    if args.preview:
        console.print("[dim]> Preview mode, no file written. Drop --preview to export.[/dim]")
        return

    output = args.output or Path(f"{DEFAULT_OUTPUT_STEM}.{args.format}")
    _write_report(result.accounts, output, args.format)


if __name__ == "__main__":
    main()
