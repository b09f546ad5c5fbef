# step_workflows/toolchain.py
from __future__ import annotations

from typing import List

from ..config import PipelineConfig
from ..model import Step

DEFAULT_NODE_VERSION = "12.18.2"


# ---------------------------------------------------------------------
# Go
# ---------------------------------------------------------------------

def install_go(config: PipelineConfig, version: str) -> Step:
    """Download and unpack the Go toolchain for the job's platform."""
    return Step(
        name=f"Install Go {version}",
        run=f"curl -sSfL {config.go_download_url(version)} | tar xz",
    )


# ---------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------

def install_node(version: str = DEFAULT_NODE_VERSION) -> Step:
    url = f"https://nodejs.org/dist/v{version}/node-v{version}-linux-x64.tar.gz"
    return Step(name=f"Install Node {version}", run=f"curl -sSfL {url} | tar xz")


# ---------------------------------------------------------------------
# protoc + Go plugins
# ---------------------------------------------------------------------

def install_proto(config: PipelineConfig, version: str, source_dir: str) -> List[Step]:
    """
    Fetch the protoc compiler into <workspace>/protoinstall and install the
    Go code generators from `source_dir` (so they follow its go.mod).
    """
    archive = f"protoc-{version}-linux-x86_64.zip"
    url = f"https://github.com/protocolbuffers/protobuf/releases/download/v{version}/{archive}"
    return [
        Step(name="Reset protoinstall", run="rm -rf protoinstall"),
        Step(name="Create protoinstall", run="mkdir protoinstall"),
        Step(name=f"Download protoc {version}", run=f"curl -sSfLOJ {url}"),
        Step(name="Unpack protoc", run=f"unzip {archive} -d {config.workspace_path('protoinstall')}"),
        Step(
            name="Install protoc-gen-go-grpc",
            run="go install google.golang.org/grpc/cmd/protoc-gen-go-grpc@latest",
            cwd=source_dir,
        ),
        Step(
            name="Install protoc-gen-go",
            run="go install google.golang.org/protobuf/cmd/protoc-gen-go@latest",
            cwd=source_dir,
        ),
    ]
