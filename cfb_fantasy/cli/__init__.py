"""CLI interface for the college football fantasy league."""

import typer

from .league_admin import app as league_app

main = typer.Typer(help="College football fantasy league CLI")

# Add sub-applications
main.add_typer(league_app, name="league", help="Season, scoring and maintenance commands")
