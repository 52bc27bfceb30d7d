r"""
Goal: Friendly CLI over the WebHelper session.

- Export `app` (tests import this).
- Show "Spotify WebHelper CLI" in --help output (tests assert this).
- Every command connects first, runs one operation and prints JSON.
- Failures print {"ok": false, "error": ...} and exit with code 1.
"""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Dict, Optional

import anyio
import typer
from pydantic import BaseModel

from webhelper.adapters.helper_process import helper_location
from webhelper.errors import WebHelperError
from webhelper.services.logs import configure_logging
from webhelper.services.web_helper import WebHelper
from webhelper.settings import WebHelperConfig

app = typer.Typer(
    help="Spotify WebHelper CLI",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    return value


def _echo(data: Any) -> None:
    typer.echo(json.dumps(_jsonable(data), indent=2))


def _run(ctx: typer.Context, op: Callable[[WebHelper], Awaitable[Any]]) -> None:
    opts: Dict[str, Any] = ctx.obj or {}

    async def _main() -> Any:
        async with WebHelper(opts.get("config")) as helper:
            await helper.connect(auto_start=opts.get("start", True))
            return await op(helper)

    try:
        result = anyio.run(_main)
    except WebHelperError as e:
        _echo({"ok": False, "error": e.__class__.__name__, "message": str(e)})
        raise typer.Exit(1)
    _echo(result)


@app.callback(help="Spotify WebHelper CLI")
def _root_callback(
    ctx: typer.Context,
    port: Optional[int] = typer.Option(None, help="Skip the port scan and use this helper port"),
    start: bool = typer.Option(True, "--start/--no-start", help="Launch the helper if it isn't running"),
    warnings: Optional[bool] = typer.Option(None, "--warnings/--no-warnings", help="Log warnings about unreliable calls"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    configure_logging("DEBUG" if verbose else "WARNING")
    ctx.obj = {
        "config": WebHelperConfig.from_env(helper_port=port, warnings=warnings),
        "start": start,
    }


# -----------------------
# Status
# -----------------------
@app.command("status")
def status(ctx: typer.Context) -> None:
    _run(ctx, lambda h: h.status())


@app.command("raw")
def raw(ctx: typer.Context) -> None:
    _run(ctx, lambda h: h.raw_status())


@app.command("info")
def info(ctx: typer.Context) -> None:
    _run(ctx, lambda h: h.information())


@app.command("enabled")
def enabled(ctx: typer.Context) -> None:
    _run(ctx, lambda h: h.is_enabled())


# -----------------------
# Playback
# -----------------------
@app.command("play")
def play(
    ctx: typer.Context,
    uri: Optional[str] = typer.Argument(None, help="spotify:track:... ; omit to resume"),
    context: Optional[str] = typer.Option(None, help="Playlist/album URI to play the track in"),
) -> None:
    _run(ctx, lambda h: h.play(uri, context))


@app.command("pause")
def pause(ctx: typer.Context) -> None:
    _run(ctx, lambda h: h.pause())


@app.command("unpause")
def unpause(ctx: typer.Context) -> None:
    _run(ctx, lambda h: h.unpause())


@app.command("seek")
def seek(ctx: typer.Context, seconds: float) -> None:
    """Jump within the current track. Rarely honoured by the helper."""

    async def _seek(h: WebHelper) -> Dict[str, Any]:
        await h.seek(seconds)
        return {"ok": True, "seconds": seconds}

    _run(ctx, _seek)


@app.command("doctor")
def doctor(ctx: typer.Context) -> None:
    exe = helper_location()

    async def _doctor(h: WebHelper) -> Dict[str, Any]:
        return {
            "ok": True,
            "connection_url": h.connection_url,
            "port": h.helper_port,
            "helper_location": str(exe) if exe else None,
        }

    _run(ctx, _doctor)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
