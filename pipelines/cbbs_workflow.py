# cbbs_workflow.py
# cbbs: gRPC service whose protobuf bindings are generated during the build.
from __future__ import annotations

import os

from cvpipeline import pipeline, stage
from cvpipeline.gerrit import checkout_patch_steps
from cvpipeline.step_workflows.build import build_targets, repo_sync
from cvpipeline.step_workflows.go import clean_up, install_go_deps, run_go_tests, run_lint
from cvpipeline.step_workflows.toolchain import install_go, install_node, install_proto

GO_VERSION = "1.19.3"
PROTOC_VERSION = "3.19.4"
GOLANGCI_LINT_VERSION = "v1.50.1"
MANIFEST = "couchbase-server/morpheus.xml"
REPO_GROUPS = "backup"
SOURCE_DIR = "cbbs"
PARALLELISM = 8


def workflow(config):
    go_bin = config.workspace_path("bin")
    env = {
        "GOROOT": config.workspace_path("go"),
        "PATH": os.pathsep.join([
            config.workspace_path("go", "bin"),
            config.workspace_path("protoinstall", "bin"),
            go_bin,
            os.environ.get("PATH", ""),
        ]),
    }

    stages = [
        stage("Sync projects", repo_sync(MANIFEST, REPO_GROUPS, PARALLELISM), requires=["repo"]),
    ]
    if config.gerrit is not None:
        stages.append(stage("Checkout patch", checkout_patch_steps(config), cwd=SOURCE_DIR, requires=["git"]))

    stages += [
        stage("Install toolchains", install_go(config, GO_VERSION), install_node(), requires=["curl", "tar"]),
        stage("Install protoc", install_proto(config, PROTOC_VERSION, SOURCE_DIR), env=env, requires=["unzip"]),
        stage("Install Go tools", install_go_deps(go_bin, GOLANGCI_LINT_VERSION), env=env),
        stage("Lint", run_lint(cwd=SOURCE_DIR), env=env),
        stage("Build", build_targets(PARALLELISM, "proto build", cwd=SOURCE_DIR), env=env, requires=["make"]),
        stage("Test", run_go_tests(config, go_bin, SOURCE_DIR), env=env),
    ]
    if config.gerrit is not None:
        stages.append(stage("Clean up", clean_up(config), env=env, always=True))
    return pipeline(*stages)
