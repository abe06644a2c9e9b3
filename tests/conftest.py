from __future__ import annotations

import json
import sys

from pathlib import Path
from typing import Dict, List, Sequence

import numpy as np
import pytest

# Ensure repo root is on sys.path so tests can import `reid` and top-level scripts.
repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


def write_feature(path: Path, values: Sequence[float]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    np.asarray(values, dtype="<f4").tofile(str(path))
    return path


def write_manifest(path: Path, entries: List[Dict]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(entries), encoding="utf-8")
    return path


@pytest.fixture
def alice_bob_manifest(tmp_path: Path) -> Path:
    """Alice = [1,0,0,0] (id 0), Bob = [0,1,0,0] (id 1); feature paths relative to the manifest."""
    write_feature(tmp_path / "alice.bin", [1, 0, 0, 0])
    write_feature(tmp_path / "bob.bin", [0, 1, 0, 0])
    return write_manifest(
        tmp_path / "gallery.json",
        [
            {"name": "Alice", "features": ["alice.bin"]},
            {"name": "Bob", "features": ["bob.bin"]},
        ],
    )
