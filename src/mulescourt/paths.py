from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Paths:
    repo_root: Path
    data_dir: Path
    schema_dir: Path
    userdata_dir: Path

    @property
    def sessions_dir(self) -> Path:
        return self.userdata_dir / "sessions"


def get_paths() -> Paths:
    # src/mulescourt/paths.py -> parents: [mulescourt, src, repo_root]
    package_dir = Path(__file__).resolve().parent
    data_dir = package_dir / "data"
    return Paths(
        repo_root=package_dir.parents[1],
        data_dir=data_dir,
        schema_dir=data_dir / "schemas",
        userdata_dir=package_dir.parents[1] / "userdata",
    )
