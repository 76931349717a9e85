#!/usr/bin/env python3
"""Farm command line interface."""

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.table import Table
from sqlmodel import Session

from .application.allocator import FarmAllocator
from .config import settings
from .domain.entities import Animal, Color
from .domain.exceptions import DomainError
from .infrastructure.database.database import get_main_engine, init_db

console = Console()

app = typer.Typer(
    name="farm",
    help="""Farm - animals in barns by favorite color

    Examples:
      farm add Daisy RED         - place an animal
      farm remove 3 7            - remove animals by id
      farm list                  - list animals
      farm barns                 - list barns and occupancy
      farm reset                 - remove every animal and barn
      farm serve                 - run the HTTP API
    """,
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def main():
    """Main entry point for the farm CLI."""
    app()


@contextmanager
def _allocator() -> Iterator[FarmAllocator]:
    engine = get_main_engine()
    init_db(engine)
    with Session(engine) as session:
        try:
            yield FarmAllocator(session)
        except DomainError as e:
            console.print(f"❌ {e}", style="red")
            raise typer.Exit(code=1) from e


@app.command()
def add(
    name: str = typer.Argument(..., help="Animal name"),
    color: Color = typer.Argument(..., help="Favorite color", case_sensitive=False),
):
    """Place a new animal into a barn of its color."""
    with _allocator() as allocator:
        animal = allocator.add_animal(Animal(id=None, name=name, favorite_color=color))
    console.print(
        f"✅ {animal.name} (#{animal.id}) lives in barn {animal.barn_id}",
        style="green",
    )


@app.command()
def remove(ids: list[int] = typer.Argument(..., help="Animal ids, in order")):
    """Remove animals by id and rebalance their barns."""
    with _allocator() as allocator:
        removed = allocator.remove_animals(ids)
    console.print(f"✅ Removed {len(removed)} animals", style="green")


@app.command("list")
def list_animals():
    """List every animal."""
    with _allocator() as allocator:
        animals = allocator.find_all()

    table = Table(title="Animals")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Color")
    table.add_column("Barn", justify="right")
    for animal in animals:
        table.add_row(
            str(animal.id),
            animal.name,
            animal.favorite_color.value,
            "-" if animal.barn_id is None else str(animal.barn_id),
        )
    console.print(table)


@app.command()
def barns():
    """List barns with their occupancy."""
    with _allocator() as allocator:
        summaries = allocator.find_barns()
        capacity = allocator.capacity

    table = Table(title="Barns")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Color")
    table.add_column("Animals", justify="right")
    for summary in summaries:
        table.add_row(
            str(summary.barn.id),
            summary.barn.name,
            summary.barn.color.value,
            f"{summary.size}/{capacity}",
        )
    console.print(table)


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Remove every animal and every barn."""
    if not yes:
        typer.confirm("Remove every animal and barn?", abort=True)
    with _allocator() as allocator:
        removed = allocator.delete_all()
    console.print(f"✅ Farm cleared ({removed} animals removed)", style="green")


@app.command()
def serve(
    host: str = typer.Option(settings.host, help="Bind address"),
    port: int = typer.Option(settings.port, help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("farm.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
