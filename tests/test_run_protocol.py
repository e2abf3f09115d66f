"""Tests for run_protocol module."""
from datetime import datetime, timezone
from pathlib import Path

from run_protocol import RunFolder, design_slug, mark_latest, new_run_id, read_json, write_json


class TestNaming:

    def test_design_slug(self):
        assert design_slug("FSU / Store 12 (Spring)") == "fsu-store-12-spring"
        assert design_slug("***") == "design"

    def test_run_id_carries_stamp_and_slug(self):
        now = datetime(2026, 3, 1, 9, 30, 5, 123456, tzinfo=timezone.utc)
        assert new_run_id("Counter Promo", now) == "20260301_093005_123456_counter-promo"


class TestRunFolder:

    def test_create_lays_out_folders(self, tmp_path: Path):
        folder = RunFolder.create(str(tmp_path), "Counter Promo")
        assert folder.root.parent == tmp_path
        assert folder.request_path.parent.is_dir()
        assert folder.bundle_path.parent.is_dir()
        assert folder.request_path == folder.root / "input" / "request.json"
        assert set(folder.artifact_index()) == {"request", "bundle", "metrics", "summary"}

    def test_json_round_trip(self, tmp_path: Path):
        path = tmp_path / "nested" / "metrics.json"
        write_json(path, {"score": 100, "grade": "A+"})
        assert read_json(path) == {"score": 100, "grade": "A+"}

    def test_latest_points_at_newest_run(self, tmp_path: Path):
        first = RunFolder.create(str(tmp_path), "first")
        second = RunFolder.create(str(tmp_path), "second")
        mark_latest(str(tmp_path), first)
        mark_latest(str(tmp_path), second)
        latest = tmp_path / "latest"
        if latest.is_symlink():
            assert latest.resolve() == second.root.resolve()
        else:
            assert (latest / "latest_run.txt").read_text(encoding="utf-8") == second.run_id
