"""CLI commands for HouseHub.

Usage:
    househub --help
    househub serve --port 8080
"""

import typer

from househub.cli.serve import app as serve_app

app = typer.Typer(
    name="househub",
    help="HouseHub: household management backend",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")


@app.callback()
def callback() -> None:
    """HouseHub: household management backend."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
