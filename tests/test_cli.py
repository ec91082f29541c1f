"""Tests for the command-line interface."""

import json

import pytest
import trimesh
from click.testing import CliRunner

from roomviewer.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "crate.stl"
    path.write_bytes(trimesh.creation.box(extents=[2.0, 2.0, 2.0]).export(file_type="stl"))
    return path


def saved_ids(data_dir) -> list[str]:
    store = json.loads((data_dir / "store.json").read_text())
    return [e["id"] for e in json.loads(store["roomviewer.scene"])["entries"]]


def saved_entry(data_dir, object_id) -> dict:
    store = json.loads((data_dir / "store.json").read_text())
    entries = json.loads(store["roomviewer.scene"])["entries"]
    return next(e for e in entries if e["id"] == object_id)


class TestCli:
    """Test CLI commands end to end."""

    def test_room_info(self, runner, tmp_path):
        result = runner.invoke(main, ["--data-dir", str(tmp_path), "room", "info"])

        assert result.exit_code == 0
        assert "20 x 10 x 20" in result.output

    def test_add_clamps_and_persists(self, runner, tmp_path, model_file):
        data_dir = tmp_path / "data"
        result = runner.invoke(main, [
            "--data-dir", str(data_dir),
            "scene", "add", str(model_file),
            "--position", "15", "1", "0",
        ])

        assert result.exit_code == 0, result.output
        [object_id] = saved_ids(data_dir)
        assert saved_entry(data_dir, object_id)["position"] == pytest.approx([9.0, 1.0, 0.0])

    def test_move_lock_remove(self, runner, tmp_path, model_file):
        data_dir = tmp_path / "data"
        base = ["--data-dir", str(data_dir)]
        runner.invoke(main, base + ["scene", "add", str(model_file)])
        [object_id] = saved_ids(data_dir)

        result = runner.invoke(main, base + ["scene", "move", object_id, "2", "0", "0"])
        assert result.exit_code == 0, result.output
        assert saved_entry(data_dir, object_id)["position"][0] == pytest.approx(2.0)

        runner.invoke(main, base + ["scene", "lock", object_id])
        result = runner.invoke(main, base + ["scene", "move", object_id, "2", "0", "0"])
        assert result.exit_code != 0
        assert saved_entry(data_dir, object_id)["position"][0] == pytest.approx(2.0)

        result = runner.invoke(main, base + ["scene", "remove", object_id])
        assert result.exit_code == 0
        assert saved_ids(data_dir) == []

    def test_move_non_finite_rejected(self, runner, tmp_path, model_file):
        data_dir = tmp_path / "data"
        base = ["--data-dir", str(data_dir)]
        runner.invoke(main, base + ["scene", "add", str(model_file)])
        [object_id] = saved_ids(data_dir)

        result = runner.invoke(main, base + ["scene", "move", object_id, "inf", "0", "0"])

        assert result.exit_code != 0
        assert "finite" in result.output
        assert saved_entry(data_dir, object_id)["position"] == pytest.approx([0.0, 0.0, 0.0])

    def test_place_on_floor(self, runner, tmp_path, model_file):
        data_dir = tmp_path / "data"
        base = ["--data-dir", str(data_dir)]
        runner.invoke(main, base + ["scene", "add", str(model_file)])
        [object_id] = saved_ids(data_dir)

        result = runner.invoke(main, base + [
            "scene", "place", object_id,
            "--origin", "4", "8", "-3",
            "--direction", "0", "-1", "0",
        ])

        assert result.exit_code == 0, result.output
        assert saved_entry(data_dir, object_id)["position"] == pytest.approx([4.0, 0.0, -3.0])

    def test_place_locked_refused(self, runner, tmp_path, model_file):
        data_dir = tmp_path / "data"
        base = ["--data-dir", str(data_dir)]
        runner.invoke(main, base + ["scene", "add", str(model_file)])
        [object_id] = saved_ids(data_dir)
        runner.invoke(main, base + ["scene", "lock", object_id])

        result = runner.invoke(main, base + ["scene", "place", object_id, "--screen", "0", "0"])

        assert result.exit_code != 0
        assert saved_entry(data_dir, object_id)["position"] == pytest.approx([0.0, 0.0, 0.0])

    def test_place_requires_ray(self, runner, tmp_path, model_file):
        result = runner.invoke(main, ["--data-dir", str(tmp_path), "scene", "place", "obj_1"])
        assert result.exit_code != 0

    def test_unknown_object(self, runner, tmp_path):
        result = runner.invoke(main, ["--data-dir", str(tmp_path), "scene", "move", "obj_1", "1", "0", "0"])
        assert result.exit_code != 0

    def test_pick_requires_ray(self, runner, tmp_path):
        result = runner.invoke(main, ["--data-dir", str(tmp_path), "scene", "pick"])
        assert result.exit_code != 0

    def test_config_init(self, runner, tmp_path):
        output = tmp_path / "config.json"
        result = runner.invoke(main, ["config", "init", str(output)])

        assert result.exit_code == 0
        data = json.loads(output.read_text())
        assert data["room"]["width"] == 20.0
