import argparse
import asyncio
import json

import pytest

from rover_control.client import (
    RoverController,
    build_parser,
    cli,
    layout_from_args,
    main,
    parse_xy,
)
from rover_control.executor import RunOutcome
from rover_control.layout import Layout
from rover_control.model import Position


def test_parse_xy():
    assert parse_xy("3,4") == Position(3, 4)
    assert parse_xy("-1,0") == Position(-1, 0)


@pytest.mark.parametrize("text", ["3", "3,4,5", "a,b", ""])
def test_parse_xy_rejects_bad_values(text):
    with pytest.raises(argparse.ArgumentTypeError):
        parse_xy(text)


def test_parser_defaults():
    args = build_parser().parse_args(["MMR"])
    assert args.commands == "MMR"
    assert args.layout is None
    assert args.start is None
    assert args.obstacle == []
    assert args.interval == 0.5
    assert args.ws_uri is None
    assert not args.verbose


def test_layout_from_args_merges_file_and_overrides(tmp_path):
    path = tmp_path / "layout.json"
    path.write_text(json.dumps({"start": {"x": 1, "y": 1}, "obstacles": [{"x": 4, "y": 4}]}))
    args = build_parser().parse_args(
        ["--layout", str(path), "--start", "2,2", "--obstacle", "5,5", "--obstacle", "6,6", "M"]
    )

    layout = layout_from_args(args)
    assert layout.start == Position(2, 2)
    assert layout.obstacles == [Position(4, 4), Position(5, 5), Position(6, 6)]


def test_main_runs_commands():
    layout = Layout(start=Position(2, 2), obstacles=[Position(2, 5)])
    result = asyncio.run(main("MMM", layout=layout, interval=0.0))

    assert result.outcome is RunOutcome.BLOCKED
    assert result.position == Position(2, 4)
    assert result.partial_command == "M"


def test_controller_stop_resets():
    async def scenario():
        controller = RoverController(interval=10.0)
        task = asyncio.ensure_future(controller.run("MMMM"))
        while controller.executor.current_run is None or controller.executor.current_run.applied == 0:
            await asyncio.sleep(0)
        controller.stop()
        result = await task
        await controller.close()
        return controller, result

    controller, result = asyncio.run(scenario())
    assert result.outcome is RunOutcome.STOPPED
    assert result.position == Position(0, 1)
    assert controller.executor.rover.position == Position(0, 0)


def test_cli_exit_codes(tmp_path):
    assert cli(["--interval", "0", "RM"]) == 0
    assert cli(["--interval", "0", "--obstacle", "0,1", "MM"]) == 1
    assert cli(["--interval", "0", "--start", "10,0", "M"]) == 2

    bad = tmp_path / "bad.json"
    bad.write_text("{")
    assert cli(["--interval", "0", "--layout", str(bad), "M"]) == 2
