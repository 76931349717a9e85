import pytest
from sqlalchemy.future import Engine
from sqlmodel import Session, select
from typer.testing import CliRunner

from farm import cli
from farm.infrastructure.database.models import Animal, Barn

runner = CliRunner()


@pytest.fixture(autouse=True)
def _use_test_engine(engine: Engine, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(cli, "get_main_engine", lambda: engine)


def _count(engine: Engine, model) -> int:
    with Session(engine) as session:
        return len(session.exec(select(model)).all())


def test_add_places_animal(engine: Engine):
    result = runner.invoke(cli.app, ["add", "Daisy", "red"])

    assert result.exit_code == 0
    assert "Daisy" in result.output
    with Session(engine) as session:
        animal = session.exec(select(Animal)).one()
        barn = session.exec(select(Barn)).one()
    assert animal.favorite_color == "RED"
    assert animal.barn_id == barn.id
    assert barn.name == "RED0"


def test_add_rejects_unknown_color(engine: Engine):
    result = runner.invoke(cli.app, ["add", "Daisy", "plaid"])

    assert result.exit_code != 0
    assert _count(engine, Animal) == 0


def test_add_rejects_blank_name(engine: Engine):
    result = runner.invoke(cli.app, ["add", "  ", "RED"])

    assert result.exit_code == 1
    assert "empty" in result.output
    assert _count(engine, Animal) == 0


def test_remove_by_id(engine: Engine):
    for name in ("Daisy", "Rosie"):
        runner.invoke(cli.app, ["add", name, "BLUE"])
    with Session(engine) as session:
        ids = [a.id for a in session.exec(select(Animal)).all()]

    result = runner.invoke(cli.app, ["remove", str(ids[0])])

    assert result.exit_code == 0
    assert "Removed 1 animals" in result.output
    assert _count(engine, Animal) == 1


def test_remove_unknown_id_fails(engine: Engine):
    runner.invoke(cli.app, ["add", "Daisy", "BLUE"])

    result = runner.invoke(cli.app, ["remove", "4242"])

    assert result.exit_code == 1
    assert "4242" in result.output
    assert _count(engine, Animal) == 1


def test_list_and_barns_show_tables():
    runner.invoke(cli.app, ["add", "Daisy", "GREEN"])

    animals = runner.invoke(cli.app, ["list"])
    barns = runner.invoke(cli.app, ["barns"])

    assert animals.exit_code == 0
    assert "Daisy" in animals.output
    assert barns.exit_code == 0
    assert "GREEN0" in barns.output
    assert "1/20" in barns.output


def test_reset_with_confirmation_flag(engine: Engine):
    runner.invoke(cli.app, ["add", "Daisy", "GREEN"])

    result = runner.invoke(cli.app, ["reset", "--yes"])

    assert result.exit_code == 0
    assert _count(engine, Animal) == 0
    assert _count(engine, Barn) == 0


def test_reset_aborts_without_confirmation(engine: Engine):
    runner.invoke(cli.app, ["add", "Daisy", "GREEN"])

    result = runner.invoke(cli.app, ["reset"], input="n\n")

    assert result.exit_code != 0
    assert _count(engine, Animal) == 1
