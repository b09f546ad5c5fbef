# gerrit.py
# Gerrit code-review integration: trigger configuration, patch checkout and
# the verify-status vote.
#
# Nothing here talks to Gerrit directly; votes and fetches go through the
# `ssh` and `git` command line tools the build nodes already have.

from __future__ import annotations

import subprocess
from typing import Any, Callable, Dict, List

from .config import ConfigError, PipelineConfig
from .model import Step
from .ui.console import get_console

GERRIT_SSH_USER = "buildbot"
GERRIT_SSH_PORT = 29418


def _require_gerrit(config: PipelineConfig):
    if config.gerrit is None:
        raise ConfigError("Required environment variable 'GERRIT_HOST' not set.", variable="GERRIT_HOST")
    return config.gerrit


def trigger_config(config: PipelineConfig) -> Dict[str, Any]:
    """
    Return the Gerrit trigger definition for this job.

    Silent (macOS) jobs neither comment on start nor vote on completion.
    Branch triggering stays "disabled" unless explicitly enabled.
    """
    silent = config.silent
    branch_pattern = config.branch if (config.trigger_enabled and config.branch) else "disabled"

    return {
        "serverName": config.review_server,
        "silentMode": silent,
        "silentStartMode": silent,
        "gerritProjects": [
            {
                "compareType": "PLAIN",
                "disableStrictForbiddenFileVerification": False,
                "pattern": config.project,
                "branches": [
                    {
                        "compareType": "PLAIN",
                        "pattern": branch_pattern,
                    }
                ],
            }
        ],
        "triggerOnEvents": [
            {"commentAddedContains": {"commentAddedCommentContains": "reverify"}},
            {"draftPublished": {}},
            {"patchsetCreated": {"excludeNoCodeChange": True}},
        ],
    }


def checkout_patch_steps(config: PipelineConfig) -> List[Step]:
    """Fetch the patchset under review and check it out."""
    gerrit = _require_gerrit(config)
    if not gerrit.refspec:
        raise ConfigError("Required environment variable 'GERRIT_REFSPEC' not set.", variable="GERRIT_REFSPEC")

    remote = f"ssh://{GERRIT_SSH_USER}@{config.review_server}:{GERRIT_SSH_PORT}/{config.project}"
    return [
        Step(name="Fetch patchset", run=f"git fetch {remote} {gerrit.refspec}"),
        Step(name="Checkout patchset", run="git checkout FETCH_HEAD"),
    ]


def verify_status_command(config: PipelineConfig, value: int) -> List[str]:
    """
    Build the ssh command that records a verification in Gerrit's
    verify-status sidebar for the patchset under test.
    """
    gerrit = _require_gerrit(config)
    if not gerrit.patchset_revision:
        raise ConfigError(
            "Required environment variable 'GERRIT_PATCHSET_REVISION' not set.",
            variable="GERRIT_PATCHSET_REVISION",
        )

    # ssh hands the arguments to a remote shell: keep the '|' separated
    # verification inside single quotes
    verification = (
        f"'name={config.verify_name}|value={value}|url={config.result_url}|reporter={GERRIT_SSH_USER}'"
    )
    return [
        "ssh", "-p", str(gerrit.port), f"{GERRIT_SSH_USER}@{gerrit.host}",
        "-o", "UserKnownHostsFile=/dev/null",
        "-o", "StrictHostKeyChecking=no",
        "verify-status", "save", "--verification", verification,
        gerrit.patchset_revision,
    ]


def submit_verify_status(
    config: PipelineConfig,
    value: int,
    run: Callable[..., Any] = subprocess.run,
) -> bool:
    """
    Report `value` for the current patchset.

    Returns False (and does nothing) when the run has no patchset revision,
    i.e. it was not triggered from Gerrit. A failing ssh raises
    subprocess.CalledProcessError.
    """
    console = get_console()
    if config.gerrit is None or not config.gerrit.patchset_revision:
        console.print_debug("No GERRIT_PATCHSET_REVISION, not reporting verify status")
        return False

    cmd = verify_status_command(config, value)
    console.print_debug("Running: " + " ".join(cmd))
    run(cmd, check=True)
    console.print_vote(value, config.gerrit.patchset_revision)
    return True
