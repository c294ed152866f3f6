import pytest

from rover_control.exceptions import OutOfBoundsError
from rover_control.model import (
    MOVE,
    TURN_LEFT,
    TURN_RIGHT,
    Heading,
    Position,
    RoverState,
    is_command,
)


def test_turn_right_is_clockwise():
    assert Heading.UP.turned_right() is Heading.RIGHT
    assert Heading.RIGHT.turned_right() is Heading.DOWN
    assert Heading.DOWN.turned_right() is Heading.LEFT
    assert Heading.LEFT.turned_right() is Heading.UP


def test_turn_left_is_counter_clockwise():
    assert Heading.UP.turned_left() is Heading.LEFT
    assert Heading.LEFT.turned_left() is Heading.DOWN
    assert Heading.DOWN.turned_left() is Heading.RIGHT
    assert Heading.RIGHT.turned_left() is Heading.UP


@pytest.mark.parametrize("heading", list(Heading))
def test_four_turns_return_to_start(heading):
    right = left = heading
    for _ in range(4):
        right = right.turned_right()
        left = left.turned_left()
    assert right is heading
    assert left is heading


@pytest.mark.parametrize("heading", list(Heading))
def test_left_undoes_right(heading):
    assert heading.turned_right().turned_left() is heading


@pytest.mark.parametrize(
    "heading, expected",
    [
        (Heading.UP, Position(4, 6)),
        (Heading.DOWN, Position(4, 4)),
        (Heading.RIGHT, Position(5, 5)),
        (Heading.LEFT, Position(3, 5)),
    ],
)
def test_advance_returns_next_cell_without_moving(heading, expected):
    rover = RoverState(Position(4, 5), heading)
    assert rover.advance() == expected
    assert rover.position == Position(4, 5)


def test_new_rover_starts_at_origin_facing_up():
    rover = RoverState()
    assert rover.position == Position(0, 0)
    assert rover.heading is Heading.UP


def test_reset_restores_start_and_is_idempotent():
    rover = RoverState(Position(7, 3), Heading.LEFT)
    rover.reset()
    once = rover.to_dict()
    rover.reset()
    assert rover.to_dict() == once
    assert rover.position == Position(0, 0)
    assert rover.heading is Heading.UP


def test_set_start_keeps_heading():
    rover = RoverState(heading=Heading.DOWN)
    rover.set_start(Position(2, 9))
    assert rover.position == Position(2, 9)
    assert rover.heading is Heading.DOWN


@pytest.mark.parametrize(
    "start", [Position(-3, 40), Position(-1, 0), Position(10, 0), Position(0, 20)]
)
def test_set_start_rejects_cells_off_the_grid(start):
    rover = RoverState()
    with pytest.raises(OutOfBoundsError) as excinfo:
        rover.set_start(start)

    assert excinfo.value.position == start
    assert rover.position == Position(0, 0)


def test_set_start_uses_given_grid_size():
    rover = RoverState()
    rover.set_start(Position(4, 2), width=5, height=3)
    assert rover.position == Position(4, 2)

    with pytest.raises(OutOfBoundsError):
        rover.set_start(Position(5, 2), width=5, height=3)


def test_command_alphabet_is_case_sensitive():
    assert all(is_command(c) for c in (MOVE, TURN_LEFT, TURN_RIGHT))
    assert not is_command("m")
    assert not is_command("X")
    assert not is_command(" ")


def test_position_is_a_hashable_value():
    assert Position(1, 2) == Position(1, 2)
    assert len({Position(1, 2), Position(1, 2), Position(2, 1)}) == 2
    assert Position(1, 2).to_dict() == {"x": 1, "y": 2}
