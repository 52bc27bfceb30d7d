"""
WebHelper CLI entrypoint

Goals
- `python -m webhelper.cli.entry` or the `webhelper` console script both land here.
"""

from __future__ import annotations

from webhelper.cli.cli import app


def run() -> None:
    app(prog_name="webhelper")


if __name__ == "__main__":
    run()
