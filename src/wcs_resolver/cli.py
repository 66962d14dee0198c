"""`wcs-resolve` command line interface."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from wcs_resolver import __version__
from wcs_resolver.config import load_config
from wcs_resolver.errors import WcsResolverError
from wcs_resolver.io import read_header_text
from wcs_resolver.projection import PROJECTION_PARSERS, UNSUPPORTED_FAMILIES
from wcs_resolver.wcs import resolve_header_text

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_RUNTIME_ERROR = 2


class WcsCliError(click.ClickException):
    """Click exception with explicit exit-code control."""

    def __init__(self, message: str, *, exit_code: int = EXIT_INPUT_ERROR) -> None:
        super().__init__(message)
        self.exit_code = int(exit_code)


def dump_json_output(payload: dict[str, Any], out_path: Path | None) -> None:
    """Write JSON payload to file or stdout."""
    text = json.dumps(payload, sort_keys=True, indent=2)
    if out_path is None:
        click.echo(text)
        return
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text + "\n", encoding="utf-8")


def resolve_optional_output_path(output_arg: str | None) -> Path | None:
    """Map '-', empty, or None to stdout; otherwise return filesystem path."""
    if output_arg is None:
        return None
    value = str(output_arg).strip()
    if value in {"", "-"}:
        return None
    return Path(value)


@click.group()
@click.version_option(version=__version__, package_name="wcs-header-resolver")
@click.option(
    "--log-level",
    default=None,
    help="Logging level (overrides WCS_RESOLVER_LOG_LEVEL).",
)
def cli(log_level: str | None) -> None:
    """Resolve FITS WCS headers into frame, projection and distortion."""
    try:
        config = load_config(log_level=log_level)
    except ValidationError as e:
        raise WcsCliError(f"Invalid configuration: {e}") from e
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")


@cli.command("resolve")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--hdu", type=int, default=0, show_default=True, help="HDU index for FITS input.")
@click.option(
    "--out",
    "-o",
    "output_arg",
    default=None,
    help="Output JSON path ('-' or omitted for stdout).",
)
def resolve_command(path: Path, hdu: int, output_arg: str | None) -> None:
    """Resolve the WCS of PATH and print it as JSON."""
    try:
        text = read_header_text(path, hdu=hdu)
    except IndexError as e:
        raise WcsCliError(f"{path} has no HDU {hdu}") from e
    except OSError as e:
        raise WcsCliError(f"Cannot read {path}: {e}") from e

    try:
        description = resolve_header_text(text)
    except WcsResolverError as e:
        envelope = e.to_envelope()
        raise WcsCliError(f"{envelope.type.value}: {envelope.message}") from e

    payload = {"source": str(path), "hdu": hdu, "wcs": description.to_dict()}
    dump_json_output(payload, resolve_optional_output_path(output_arg))


@cli.command("projections")
def projections_command() -> None:
    """List supported (and known unsupported) projection codes."""
    for code in PROJECTION_PARSERS:
        click.echo(f"{code}  supported")
    for code, reason in UNSUPPORTED_FAMILIES.items():
        click.echo(f"{code}  unsupported: {reason}")


def main() -> int:
    """Main entry point for the CLI."""
    try:
        cli(standalone_mode=False)
        return EXIT_OK
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.exceptions.Abort:
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
