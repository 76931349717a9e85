"""Tests for domain entities, validation and the color lock registry."""

import threading

import pytest

from farm.application.locks import ColorLocks
from farm.domain.entities import (
    UNASSIGNED,
    Animal,
    Assigned,
    Barn,
    Color,
    barn_name,
    validate_entity_name,
)
from farm.domain.exceptions import ValidationError


def test_new_animal_is_unassigned():
    animal = Animal(id=None, name="Daisy", favorite_color=Color.RED)

    assert animal.assignment is UNASSIGNED
    assert animal.barn_id is None
    assert not animal.is_assigned()


def test_animal_assignment_round_trip():
    animal = Animal(id=1, name="Daisy", favorite_color=Color.RED)

    animal.assign_to(4)
    assert animal.assignment == Assigned(4)
    assert animal.barn_id == 4
    assert animal.is_assigned()

    animal.unassign()
    assert animal.barn_id is None


@pytest.mark.parametrize(
    "name",
    ["", "   ", "x" * 101, "Dai\nsy", "Dai\tsy", "Dai\x7fsy"],
)
def test_invalid_animal_names_are_rejected(name: str):
    with pytest.raises(ValidationError):
        Animal(id=None, name=name, favorite_color=Color.RED)


@pytest.mark.parametrize("name", ["Daisy", "x" * 100, "Ünal", "Rosie 2"])
def test_valid_names_pass(name: str):
    validate_entity_name(name, "animal")


def test_unknown_color_is_rejected():
    with pytest.raises(ValidationError, match="favorite color"):
        Animal(id=None, name="Daisy", favorite_color="PLAID")  # type: ignore[arg-type]


def test_barn_accepts_only_its_color():
    barn = Barn(id=1, name="RED0", color=Color.RED)

    assert barn.accepts(Animal(id=None, name="a", favorite_color=Color.RED))
    assert not barn.accepts(Animal(id=None, name="b", favorite_color=Color.BLUE))


def test_barn_capacity_must_be_positive():
    with pytest.raises(ValidationError):
        Barn(id=None, name="RED0", color=Color.RED, capacity=0)


def test_barn_name():
    assert barn_name(Color.RED, 0) == "RED0"
    assert barn_name(Color.PURPLE, 12) == "PURPLE12"


def test_color_locks_hold_every_given_color(locks: ColorLocks):
    with locks.hold([Color.RED, Color.BLUE, Color.RED]):
        assert locks.is_locked(Color.RED)
        assert locks.is_locked(Color.BLUE)
        assert not locks.is_locked(Color.GREEN)

    assert not locks.is_locked(Color.RED)
    assert not locks.is_locked(Color.BLUE)


def test_color_locks_release_on_error(locks: ColorLocks):
    with pytest.raises(RuntimeError), locks.hold([Color.RED]):
        raise RuntimeError("boom")

    assert not locks.is_locked(Color.RED)


def test_same_color_is_serialized_across_threads(locks: ColorLocks):
    acquired = threading.Event()
    attempted: list[bool] = []

    def other_thread():
        attempted.append(locks._lock_for(Color.RED).acquire(blocking=False))
        attempted.append(locks._lock_for(Color.BLUE).acquire(blocking=False))
        acquired.set()

    with locks.hold([Color.RED]):
        thread = threading.Thread(target=other_thread)
        thread.start()
        acquired.wait(timeout=5)
        thread.join(timeout=5)

    assert attempted == [False, True]
