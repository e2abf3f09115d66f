"""Run folders for display design runs.

Every run gets ``<runs_root>/<UTC stamp>_<design slug>/`` holding the
request as received, the full design bundle, headline metrics, a markdown
summary and a manifest. ``<runs_root>/latest`` points at the newest run.
"""

from __future__ import annotations

import json
import os
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

REQUEST_FILE = Path("input") / "request.json"
BUNDLE_FILE = Path("artifacts") / "bundle.json"
METRICS_FILE = Path("metrics.json")
SUMMARY_FILE = Path("summary.md")
MANIFEST_FILE = Path("manifest.json")


def design_slug(design_name: str) -> str:
    """Lower-case, dash-separated form of a design name for folder names."""
    words = re.findall(r"[a-z0-9]+", design_name.lower())
    return "-".join(words) or "design"


def new_run_id(design_name: str, now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d_%H%M%S_%f")
    return f"{stamp}_{design_slug(design_name)}"


@dataclass(frozen=True)
class RunFolder:
    run_id: str
    root: Path

    @classmethod
    def create(cls, runs_root: str, design_name: str) -> "RunFolder":
        run_id = new_run_id(design_name)
        folder = cls(run_id=run_id, root=Path(runs_root) / run_id)
        for path in (folder.request_path, folder.bundle_path):
            path.parent.mkdir(parents=True, exist_ok=True)
        return folder

    @property
    def request_path(self) -> Path:
        return self.root / REQUEST_FILE

    @property
    def bundle_path(self) -> Path:
        return self.root / BUNDLE_FILE

    @property
    def metrics_path(self) -> Path:
        return self.root / METRICS_FILE

    @property
    def summary_path(self) -> Path:
        return self.root / SUMMARY_FILE

    @property
    def manifest_path(self) -> Path:
        return self.root / MANIFEST_FILE

    def artifact_index(self) -> Dict[str, str]:
        """Artifact name to path, as recorded in the manifest."""
        return {
            "request": str(self.request_path),
            "bundle": str(self.bundle_path),
            "metrics": str(self.metrics_path),
            "summary": str(self.summary_path),
        }


def write_json(path: Path, payload: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)


def read_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(content)


def mark_latest(runs_root: str, folder: RunFolder) -> None:
    """Point ``<runs_root>/latest`` at ``folder``, replacing any older pointer."""
    latest = Path(runs_root) / "latest"
    if latest.is_symlink() or latest.is_file():
        latest.unlink()
    elif latest.is_dir():
        shutil.rmtree(latest)

    try:
        latest.symlink_to(os.path.relpath(folder.root, latest.parent))
    except OSError:
        # Filesystems without symlinks get a folder naming the run.
        write_text(latest / "latest_run.txt", folder.run_id)
