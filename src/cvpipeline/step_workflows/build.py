# step_workflows/build.py
from __future__ import annotations

from typing import List

from ..model import Step

MANIFEST_URL = "https://github.com/couchbase/manifest"


def repo_sync(manifest: str, groups: str, parallelism: int) -> List[Step]:
    """Check out the projects of `manifest` restricted to `groups`."""
    return [
        Step(name="repo init", run=f"repo init -u {MANIFEST_URL} -m {manifest} -g {groups}"),
        Step(name="repo sync", run=f"repo sync --jobs={parallelism}"),
    ]


def build_targets(parallelism: int, targets: str, *, cwd: str | None = None) -> Step:
    return Step(name=f"make {targets}", run=f"make -j {parallelism} {targets}", cwd=cwd)
