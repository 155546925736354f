"""CLI entry point for jobwatch."""

from __future__ import annotations

import argparse
import sys

from rich.console import Console
from rich.text import Text

from . import __version__
from .admin import AdminClient
from .config import StatusConfig, Theme, env_bool, resolve_target
from .errors import ConfigError, MonitorError
from .monitor import run_status

INIT_FAILED = "Unable to initialize admin client."


def _status_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="jobwatch", add_help=False)
    p.add_argument("target")
    p.add_argument("job_id")
    p.add_argument("--json", action="store_true", default=env_bool("JOBWATCH_JSON"))
    p.add_argument("--no-color", action="store_true", default=env_bool("NO_COLOR"))
    p.add_argument("--insecure", action="store_true")
    p.add_argument("--quiet", action="store_true")
    return p


def _print_help(console: Console) -> None:
    console.print(
        f"[bold]jobwatch[/bold] {__version__} - "
        "summarize batch job events on a server in real-time\n"
    )
    console.print("Usage:")
    console.print("  jobwatch TARGET JOBID \\[options]\n")
    console.print("Options:")
    console.print("  --json        One JSON record per metrics tick")
    console.print("  --no-color    Disable colors")
    console.print("  --insecure    Skip TLS certificate verification")
    console.print("  --quiet       Suppress informational notices")
    console.print("  --version     Show version\n")
    console.print("Examples:")
    console.print("  jobwatch myminio/ KwSysDpxcBU9FNhGkn2dCf")


def cmd_status(
    args: argparse.Namespace,
    console: Console,
    err_console: Console,
) -> int:
    cfg = StatusConfig(
        target=args.target,
        job_id=args.job_id,
        json_output=bool(args.json),
        quiet=bool(args.quiet),
        insecure=bool(args.insecure),
        theme=Theme(color=not args.no_color),
    )

    try:
        base_url = resolve_target(cfg.target)
    except ConfigError as exc:
        err_console.print(Text(f"{INIT_FAILED} {exc}", style="red"))
        return 1

    with AdminClient(base_url, verify=not cfg.insecure) as client:
        try:
            return run_status(cfg, client, console=console, err_console=err_console)
        except MonitorError as exc:
            err_console.print(Text(str(exc), style="red"))
            return 1


def main(argv: list[str] | None = None) -> None:
    raw = argv if argv is not None else sys.argv[1:]
    no_color = "--no-color" in raw or env_bool("NO_COLOR")
    console = Console(no_color=no_color)
    err_console = Console(stderr=True, no_color=no_color)

    head = raw[0] if raw else None
    if head == "--version":
        print(f"jobwatch {__version__}")
        sys.exit(0)
    if head is None or head in ("--help", "-h"):
        _print_help(console)
        sys.exit(0)

    args = _status_parser().parse_args(raw)
    sys.exit(cmd_status(args, console, err_console))


if __name__ == "__main__":
    main()
