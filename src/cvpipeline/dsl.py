# src/cvpipeline/dsl.py
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Union

from .model import Step, Stage


# ---------------------------------------------------------------------
# Step helper
# ---------------------------------------------------------------------

def sh(name: str, cmd: str, *, cwd: str | None = None) -> Step:
    """Create a shell step."""
    return Step(name=name, run=cmd, cwd=cwd)


# ---------------------------------------------------------------------
# Stage helper
# ---------------------------------------------------------------------

StepLike = Union[Step, Iterable[Step]]


def _flatten(items: Iterable[StepLike]) -> List[Step]:
    out: List[Step] = []
    for item in items:
        if isinstance(item, Step):
            out.append(item)
        else:
            out.extend(item)
    return out


def stage(
    name: str,
    *steps: StepLike,  # allow: stage("x", sh(...), run_go_tests(...))
    env: Optional[Dict[str, str]] = None,
    requires: Optional[List[str]] = None,
    cwd: str | None = None,  # default cwd applied to steps missing cwd
    always: bool = False,
) -> Stage:
    steps_final = _flatten(steps)

    if not steps_final:
        raise ValueError(f"stage({name!r}) must have at least one step")

    if cwd is not None:
        steps_final = [s if s.cwd is not None else replace(s, cwd=cwd) for s in steps_final]

    return Stage(
        name=name,
        steps=steps_final,
        # force values to str so they can go straight into a subprocess env
        env={k: str(v) for k, v in (env or {}).items()},
        requires=list(requires or []),
        always=always,
    )


# ---------------------------------------------------------------------
# Pipeline helper (single-file story)
# ---------------------------------------------------------------------

def pipeline(*stages: Stage) -> List[Stage]:
    """
    Pipeline definition helper.

    Workflow files write:
        from cvpipeline import pipeline, stage, sh

        def workflow(config):
            return pipeline(
                stage("Build", sh("make", "make -j 8 all")),
                stage("Test", sh("test", "make test")),
            )
    """
    seen = set()
    for s in stages:
        if s.name in seen:
            raise ValueError(f"Duplicate stage name: {s.name}")
        seen.add(s.name)
    return list(stages)
