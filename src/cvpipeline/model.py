# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class Step:
    """A single shell command inside a pipeline stage."""
    name: str
    run: str
    cwd: str | None = None


@dataclass
class Stage:
    """
    A pipeline stage: an ordered list of shell steps.

    `env` is merged over the process environment for every step.
    `requires` names executables that must be on PATH before the stage runs.
    `always` stages run after the vote even when an earlier stage failed.
    """
    name: str
    steps: list[Step]
    env: Dict[str, str] = field(default_factory=dict)
    requires: list[str] = field(default_factory=list)
    always: bool = False
