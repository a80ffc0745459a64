#!/usr/bin/env python3
"""Command line interface: run the API, seed sample data, query a running server."""

import asyncio
import os

import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.settings import AppSettings
from observability.logging import setup_logging

from .api_client import DEFAULT_API_URL, RCAClient

console = Console()
app = typer.Typer(help="RCA Knowledge Base CLI")

API_BASE = os.environ.get("RCA_API", DEFAULT_API_URL)


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (default from HOST)"),
    port: int = typer.Option(None, "--port", help="Bind port (default from PORT)")
):
    """Run the API server"""
    from server.app import create_app

    settings = AppSettings.from_env()
    setup_logging(settings.log_level, settings.log_file, settings.log_json, settings.environment)
    console.print(f"🚀 Starting RCA API on {host or settings.host}:{port or settings.port}", style="bold green")
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower()
    )


@app.command()
def seed(keep: bool = typer.Option(False, "--keep", help="Keep existing records")):
    """Load the sample RCAs into the configured database"""
    from scripts.seed_data import main as seed_main

    settings = AppSettings.from_env()
    setup_logging(settings.log_level)
    try:
        count = asyncio.run(seed_main(settings.database, replace=not keep))
    except Exception as e:
        console.print(f"❌ Seeding failed: {e}", style="bold red")
        raise typer.Exit(1)
    console.print(f"✅ Database seeded with {count} RCAs", style="bold green")


@app.command()
def search(
    q: str = typer.Argument(..., help="Search keywords"),
    category: str = typer.Option("", "--category", help="Restrict to a category"),
    api: str = typer.Option(API_BASE, "--api", help="API base URL")
):
    """Keyword search over past RCAs"""
    with console.status(f"[bold blue]Searching for: {q}"):
        try:
            body = RCAClient(api).search_rcas(q, category)
        except Exception as e:
            console.print(f"❌ Search failed: {e}", style="bold red")
            raise typer.Exit(1)

    console.print(f"\n🔍 Query: [bold]{q}[/bold] ({body['count']} results)\n")
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Date", style="dim", width=12)
    table.add_column("Category", width=10)
    table.add_column("Severity", width=9)
    table.add_column("Title", style="bold")
    table.add_column("ID", style="dim")
    for record in body["data"]:
        table.add_row(
            record.get("formattedDate") or "",
            record["category"],
            record["severity"],
            record["title"],
            record["id"]
        )
    console.print(table)


@app.command()
def solve(
    problem: str = typer.Argument(..., help="Describe the problem"),
    category: str = typer.Option("", "--category", help="Category hint"),
    api: str = typer.Option(API_BASE, "--api", help="API base URL")
):
    """Ask the problem solver for matching incidents and guidance"""
    with console.status("[bold blue]Analyzing problem..."):
        try:
            data = RCAClient(api).search_solutions(problem, category)["data"]
        except Exception as e:
            console.print(f"❌ Solver failed: {e}", style="bold red")
            raise typer.Exit(1)

    console.print(Panel.fit(
        f"🧭 {data['totalMatches']} match(es), confidence: {data['confidence']}",
        style="bold blue"
    ))
    for record in data["matchedRCAs"]:
        console.print(f"  • {record['title']} [dim]({record['id']})[/dim]")
    console.print(f"\n{data['aiAnalysis']}")


@app.command()
def stats(api: str = typer.Option(API_BASE, "--api", help="API base URL")):
    """Show record counts by category, severity and status"""
    try:
        data = RCAClient(api).get_stats()["data"]
    except Exception as e:
        console.print(f"❌ Failed to get stats: {e}", style="bold red")
        raise typer.Exit(1)

    table = Table(title=f"📊 {data['total']} RCAs")
    table.add_column("Group", style="bold")
    table.add_column("Value")
    table.add_column("Count", justify="right")
    for group in ("byCategory", "bySeverity", "byStatus"):
        for row in data[group]:
            table.add_row(group[2:], str(row["_id"]), str(row["count"]))
    console.print(table)


if __name__ == "__main__":
    app()
