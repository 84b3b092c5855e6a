"""
Entry point enabling both CLI rendering and FastAPI service startup.

Running behaviours:
    python -m furiganarender render "青と赤" -o out.png
    python -m furiganarender cli render "青と赤" -o out.png
    python -m furiganarender serve --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from furiganarender.cli import commands

_CLI_COMMANDS = {"render", "--verbose"}


def main(argv: Sequence[str] | None = None) -> None:
    args = list(argv if argv is not None else sys.argv[1:])
    if not args:
        _build_parser().print_help()
        return

    if args[0] in _CLI_COMMANDS:
        commands.main(args)
        return

    parser = _build_parser()
    parsed = parser.parse_args(args)

    if parsed.entrypoint == "cli":
        if not parsed.cli_args:
            parser.error("No CLI command provided. Try 'furiganarender cli render <text> -o out.png'.")
        commands.main(list(parsed.cli_args))
        return

    if parsed.entrypoint == "serve":
        _run_api(host=parsed.host, port=parsed.port, reload=parsed.reload)
        return

    parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="furiganarender",
        description="Furigana image rendering entry point.",
    )
    subparsers = parser.add_subparsers(dest="entrypoint")

    serve = subparsers.add_parser(
        "serve", help="Start the FastAPI service via uvicorn."
    )
    serve.add_argument("--host", default="127.0.0.1", help="Host interface to bind.")
    serve.add_argument("--port", type=int, default=8000, help="Port to listen on.")
    serve.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload (development only).",
    )

    cli = subparsers.add_parser(
        "cli",
        help="Forward to the rendering CLI commands.",
    )
    cli.add_argument(
        "cli_args",
        nargs=argparse.REMAINDER,
        help="Arguments passed through to the CLI (e.g. render).",
    )

    return parser


def _run_api(*, host: str, port: int, reload: bool) -> None:
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - runtime dependency guard
        raise SystemExit(
            "uvicorn is required to run the API server. Install it via "
            "`pip install uvicorn` or include it in your environment."
        ) from exc

    if reload:
        uvicorn.run("furiganarender.api.router:app", host=host, port=port, reload=True)
        return

    from furiganarender.api.router import create_app

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":  # pragma: no cover - module execution guard
    main()
