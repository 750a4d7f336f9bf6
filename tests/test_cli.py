"""Tests for the command line interface."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from wallplanner.cli import app
from wallplanner.io.parser import load_scene, save_scene

runner = CliRunner()


@pytest.fixture
def plan(tmp_path, two_rooms):
    path = tmp_path / "plan.json"
    save_scene(two_rooms, path)
    return path


def test_rooms_command_lists_rooms(plan):
    result = runner.invoke(app, ["rooms", "--scene", str(plan)])

    assert result.exit_code == 0
    assert "2 rooms, 1 connected wall groups" in result.output


def test_rooms_command_reports_open_plan(tmp_path, crossing_pair):
    path = tmp_path / "open.json"
    save_scene(crossing_pair, path)

    result = runner.invoke(app, ["rooms", "-s", str(path)])

    assert result.exit_code == 0
    assert "No rooms detected" in result.output


def test_missing_scene_file_fails(tmp_path):
    result = runner.invoke(app, ["rooms", "--scene", str(tmp_path / "nope.json")])

    assert result.exit_code == 1
    assert "File not found" in result.output


def test_invalid_json_fails(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    result = runner.invoke(app, ["walls", "--scene", str(path)])

    assert result.exit_code == 1
    assert "Invalid JSON" in result.output


def test_walls_command_prints_outlines(plan):
    result = runner.invoke(app, ["walls", "--scene", str(plan)])

    assert result.exit_code == 0
    assert "w7" in result.output


def test_snap_command_reports_kind(plan):
    result = runner.invoke(app, ["snap", "--scene", str(plan), "4030", "20"])

    assert result.exit_code == 0
    assert "by node on n2" in result.output


def test_snap_command_without_target(plan):
    result = runner.invoke(app, ["snap", "--scene", str(plan), "2500", "1500"])

    assert result.exit_code == 0
    assert "Not snapped" in result.output


def test_apply_command_writes_result(tmp_path, plan):
    op_path = tmp_path / "op.json"
    op_path.write_text(json.dumps({"op": "move_node", "node": "n3", "to": [9000, 0]}))
    out = tmp_path / "out" / "plan.json"

    result = runner.invoke(app, ["apply", "--scene", str(plan), "--op", str(op_path), "--out", str(out)])

    assert result.exit_code == 0
    saved = load_scene(out)
    assert saved.nodes["n3"].x == 9000.0
    assert len(saved.rooms) == 2


def test_apply_command_reports_invalid_operation(tmp_path, plan):
    op_path = tmp_path / "op.json"
    op_path.write_text(json.dumps([{"op": "delete_walls", "walls": ["missing"]}]))

    result = runner.invoke(
        app, ["apply", "--scene", str(plan), "--op", str(op_path), "--out", str(tmp_path / "out.json")]
    )

    assert result.exit_code == 1
    assert "missing" in result.output
