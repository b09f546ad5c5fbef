# runner.py
from __future__ import annotations

import os
import runpy
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from .config import PipelineConfig
from .gerrit import submit_verify_status
from .model import Stage, Step
from .ui.console import get_console

VOTE_SUCCESS = 1
VOTE_FAILURE = -1


@dataclass
class CIError(Exception):
    """
    Structured CI error with enough context for:
      - clean CLI output
      - debugging without full tracebacks
    """
    kind: str
    stage: str
    step: str | None
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}", f"stage={self.stage}"]
        if self.step:
            lines.append(f"step={self.step}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


TOOL_HINTS = {
    "go": "Install Go (see install_go) or fix PATH.",
    "golangci-lint": "Run install_go_deps or fix PATH.",
    "curl": "Install curl or fix PATH.",
    "git": "Install git or fix PATH.",
    "make": "Install make or fix PATH.",
    "node": "Install Node.js (see install_node) or fix PATH.",
    "npm": "Install Node.js (includes npm) or fix PATH.",
    "repo": "Install the repo tool (https://gerrit.googlesource.com/git-repo).",
    "ssh": "Install an OpenSSH client or fix PATH.",
}


# ----------------------------------------------------------------------
# Workflow loading (local file)
# ----------------------------------------------------------------------

def load_workflow(path: str | Path, config: PipelineConfig) -> List[Stage]:
    """
    Load a pipeline from a python file path.

    The file must define either:
      - workflow(config) -> List[Stage]
      - STAGES = [Stage, ...]
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")
    if wf_path.suffix != ".py":
        raise ValueError(f"Workflow must be a .py file, got: {wf_path.name}")

    module_name = f"cvpipeline_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    stages = None
    if "workflow" in globals_dict and callable(globals_dict["workflow"]):
        stages = globals_dict["workflow"](config)
    elif "STAGES" in globals_dict:
        stages = globals_dict["STAGES"]

    if not isinstance(stages, list) or not all(isinstance(s, Stage) for s in stages):
        raise TypeError(
            "Workflow must return/define a List[Stage]. "
            "Define workflow(config) -> List[Stage] or STAGES = [Stage, ...]."
        )

    return stages


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass
class StepFailure(Exception):
    stage: str
    step: str
    cmd: str
    exit_code: int
    output: str = ""

    def __str__(self) -> str:
        return f"[{self.stage}] step '{self.step}' failed (exit={self.exit_code}): {self.cmd}"


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _check_tools(stage: Stage) -> None:
    # tools may live on a PATH the stage sets up itself (workspace go/bin)
    path = stage.env.get("PATH")
    for tool in stage.requires:
        if shutil.which(tool, path=path) is None:
            raise CIError(
                kind="tool_unavailable",
                stage=stage.name,
                step=None,
                message=f"{tool} is not available",
                details={"hint": TOOL_HINTS.get(tool, f"Install {tool} or fix PATH."), "tool": tool},
            )


def _run_step(stage: Stage, step: Step, workspace: Path) -> None:
    cwd = (workspace / (step.cwd or ".")).resolve()
    if not cwd.exists():
        raise FileNotFoundError(f"[{stage.name}] step '{step.name}' cwd not found: {cwd}")

    env = os.environ.copy()
    env.update(stage.env)

    proc = subprocess.run(
        step.run,
        shell=True,
        cwd=str(cwd),
        env=env,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
    )

    if proc.returncode != 0:
        raise StepFailure(
            stage=stage.name,
            step=step.name,
            cmd=step.run,
            exit_code=proc.returncode,
            output=(proc.stdout or "")[-4000:],
        )


def _run_stage(stage: Stage, workspace: Path) -> None:
    console = get_console()
    console.print_stage_start(stage.name)
    _check_tools(stage)
    for step in stage.steps:
        console.print_step(step.name)
        console.print_debug(step.run)
        _run_step(stage, step, workspace)
    console.print_success(stage.name)


def _attempt_stage(stage: Stage, workspace: Path) -> bool:
    """Run one stage, reporting any failure. Returns True on success."""
    console = get_console()
    try:
        _run_stage(stage, workspace)
        return True
    except StepFailure as e:
        console.print_failure(stage.name, str(e), exit_code=e.exit_code, output=e.output)
    except CIError as e:
        console.print_failure(stage.name, str(e), hint=e.details.get("hint"))
    except Exception as e:
        # bad cwd, permissions, ... still count as a failed stage and a -1 vote
        console.print_failure(stage.name, f"{type(e).__name__}: {e}")
    return False


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_pipeline(
    stages: List[Stage],
    config: PipelineConfig,
    *,
    vote: bool = True,
) -> Dict[str, str]:
    """
    Run `stages` in order inside the workspace.

    The first failing stage stops the pipeline; the remaining stages are
    reported as "skipped". Unless the job is silent, the outcome is then
    posted to Gerrit as a verify-status vote. Stages marked `always` (e.g.
    workspace clean-up) run last, after the vote, whatever the outcome.

    Returns a mapping of stage name -> "ok" | "failed" | "skipped".
    """
    console = get_console()
    workspace = Path(config.workspace).resolve()
    results: Dict[str, str] = {}
    failed = False

    for stage in (s for s in stages if not s.always):
        if failed:
            results[stage.name] = "skipped"
            console.print_stage_skipped(stage.name, "previous stage failed")
            continue

        if _attempt_stage(stage, workspace):
            results[stage.name] = "ok"
        else:
            results[stage.name] = "failed"
            failed = True

    if vote:
        if config.silent:
            console.print_debug(f"Silent job type {config.job_type!r}, not voting")
        else:
            submit_verify_status(config, VOTE_FAILURE if failed else VOTE_SUCCESS)

    for stage in (s for s in stages if s.always):
        results[stage.name] = "ok" if _attempt_stage(stage, workspace) else "failed"

    return results
