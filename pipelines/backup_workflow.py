# backup_workflow.py
# Commit validation for the backup tool (cbbackupmgr): lint, unit test, build.
from __future__ import annotations

import os

from cvpipeline import pipeline, stage
from cvpipeline.gerrit import checkout_patch_steps
from cvpipeline.step_workflows.build import build_targets
from cvpipeline.step_workflows.go import clean_up, install_go_deps, run_go_tests, run_lint
from cvpipeline.step_workflows.toolchain import install_go

GO_VERSION = "1.19.3"
GOLANGCI_LINT_VERSION = "v1.50.1"
PARALLELISM = 8


def workflow(config):
    go_bin = config.workspace_path("bin")
    go_env = {
        "GOROOT": config.workspace_path("go"),
        "PATH": os.pathsep.join([config.workspace_path("go", "bin"), go_bin, os.environ.get("PATH", "")]),
    }

    stages = []
    if config.gerrit is not None:
        stages.append(stage("Checkout patch", checkout_patch_steps(config), requires=["git"]))

    stages += [
        stage("Install Go", install_go(config, GO_VERSION), requires=["curl", "tar"]),
        stage("Install Go tools", install_go_deps(go_bin, GOLANGCI_LINT_VERSION), env=go_env),
        stage("Lint", run_lint(), env=go_env),
        stage("Build", build_targets(PARALLELISM, "all"), env=go_env, requires=["make"]),
        stage("Test", run_go_tests(config, go_bin, "."), env=go_env),
    ]
    if config.gerrit is not None:
        # CI workspaces are wiped once the result is reported
        stages.append(stage("Clean up", clean_up(config), env=go_env, always=True))
    return pipeline(*stages)
