# cbmultimanager_workflow.py
# Multi-manager service: Go backend plus the Angular UI bundled into the binary.
from __future__ import annotations

import os

from cvpipeline import pipeline, sh, stage
from cvpipeline.gerrit import checkout_patch_steps
from cvpipeline.step_workflows.build import build_targets
from cvpipeline.step_workflows.go import clean_up, install_go_deps, run_go_tests, run_lint
from cvpipeline.step_workflows.toolchain import install_go, install_node

GO_VERSION = "1.18.8"
NODE_VERSION = "12.18.2"
GOLANGCI_LINT_VERSION = "v1.46.2"
PARALLELISM = 4


def workflow(config):
    go_bin = config.workspace_path("bin")
    node_bin = config.workspace_path(f"node-v{NODE_VERSION}-linux-x64", "bin")
    env = {
        "GOROOT": config.workspace_path("go"),
        "PATH": os.pathsep.join([
            config.workspace_path("go", "bin"), go_bin, node_bin, os.environ.get("PATH", ""),
        ]),
    }

    stages = []
    if config.gerrit is not None:
        stages.append(stage("Checkout patch", checkout_patch_steps(config), requires=["git"]))

    stages += [
        stage("Install toolchains", install_go(config, GO_VERSION), install_node(NODE_VERSION), requires=["curl", "tar"]),
        stage("Install Go tools", install_go_deps(go_bin, GOLANGCI_LINT_VERSION), env=env),
        stage(
            "Build UI",
            sh("npm ci", "npm ci"),
            sh("Build UI bundle", "npm run build -- --prod"),
            cwd="ui-app",
            env=env,
        ),
        stage("Lint", run_lint(), env=env),
        stage("Build", build_targets(PARALLELISM, "build"), env=env, requires=["make"]),
        stage("Test", run_go_tests(config, go_bin, ".", extra_args="-tags noui"), env=env),
    ]
    if config.gerrit is not None:
        stages.append(stage("Clean up", clean_up(config), env=env, always=True))
    return pipeline(*stages)
