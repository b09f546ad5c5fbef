import pytest

from cvpipeline.config import PipelineConfig
from cvpipeline.dsl import pipeline, sh, stage
from cvpipeline.model import Step
from cvpipeline.step_workflows.build import build_targets, repo_sync
from cvpipeline.step_workflows.go import clean_up, install_go_deps, run_go_tests, run_lint
from cvpipeline.step_workflows.toolchain import install_go, install_node, install_proto


def test_stage_flattens_step_lists():
    s = stage("Build", sh("a", "echo a"), [sh("b", "echo b"), sh("c", "echo c")])
    assert [step.name for step in s.steps] == ["a", "b", "c"]


def test_stage_default_cwd_only_fills_missing():
    s = stage("Build", sh("a", "echo a"), sh("b", "echo b", cwd="sub"), cwd="src")
    assert [step.cwd for step in s.steps] == ["src", "sub"]


def test_stage_env_values_are_strings():
    s = stage("Build", sh("a", "echo a"), env={"JOBS": 8})
    assert s.env == {"JOBS": "8"}


def test_stage_needs_steps():
    with pytest.raises(ValueError):
        stage("Empty")


def test_pipeline_rejects_duplicate_stage_names():
    with pytest.raises(ValueError):
        pipeline(stage("Build", sh("a", "true")), stage("Build", sh("b", "true")))


def test_install_go_uses_platform_url(job_env):
    job_env["JOB_NAME"] = "backup.aarch64-linux-amzn2.cv/master"
    step = install_go(PipelineConfig.from_env(job_env), "1.19.3")
    assert step.run == "curl -sSfL https://golang.org/dl/go1.19.3.linux-arm64.tar.gz | tar xz"


def test_install_node():
    step = install_node()
    assert step.run == (
        "curl -sSfL https://nodejs.org/dist/v12.18.2/node-v12.18.2-linux-x64.tar.gz | tar xz"
    )


def test_install_proto(config, tmp_path):
    steps = install_proto(config, "3.19.4", "cbbs")
    runs = [s.run for s in steps]
    assert runs[0] == "rm -rf protoinstall"
    assert runs[2] == (
        "curl -sSfLOJ https://github.com/protocolbuffers/protobuf/releases/download/"
        "v3.19.4/protoc-3.19.4-linux-x86_64.zip"
    )
    assert runs[3] == f"unzip protoc-3.19.4-linux-x86_64.zip -d {tmp_path / 'protoinstall'}"
    assert [s.cwd for s in steps[4:]] == ["cbbs", "cbbs"]


def test_install_go_deps():
    steps = install_go_deps("/ws/bin", "v1.50.1")
    assert steps[0].run == (
        "curl -sSfL https://raw.githubusercontent.com/golangci/golangci-lint/v1.50.1/install.sh"
        " | sh -s -- -b /ws/bin v1.50.1"
    )
    assert steps[1].run == "golangci-lint --version"
    assert [s.name for s in steps[2:]] == [
        "Install go-junit-report", "Install gocov", "Install gocov-xml",
    ]
    assert all(s.run.startswith("GOBIN=/ws/bin go install ") for s in steps[2:])


def test_run_lint():
    assert run_lint() == Step(name="golangci-lint", run="golangci-lint run --timeout 5m")


def test_run_go_tests(config, tmp_path):
    steps = run_go_tests(config, "/ws/bin", "backup", extra_args="-tags noui")
    reports = tmp_path / "reports"
    assert steps[0].run == "mkdir -p reports"
    assert steps[0].cwd is None
    assert all(s.cwd == "backup" for s in steps[1:5])
    assert steps[2].run == (
        "GOBIN=/ws/bin go test -v -timeout=15m -count=1 -tags noui "
        f"-coverprofile=coverage.out ./... > {reports}/test.raw 2>&1; "
        f"echo $? > {reports}/test.status; cat {reports}/test.raw"
    )
    assert steps[3].run == f"cat {reports}/test.raw | go-junit-report > {reports}/test.xml"
    assert steps[4].run.endswith(f"gocov-xml > {reports}/coverage.xml")
    assert steps[5].run == f'exit "$(cat {reports}/test.status)"'


def test_run_go_tests_without_extra_args(config):
    go_test = run_go_tests(config, "/ws/bin", ".")[2].run
    assert "-count=1 -coverprofile=coverage.out" in go_test


def test_clean_up(config, tmp_path):
    caches, workspace = clean_up(config)
    assert caches.run == "go clean --cache --testcache"
    assert workspace.run == f"find {tmp_path} -mindepth 1 -delete"


def test_repo_sync():
    init, sync = repo_sync("couchbase-server/neo.xml", "backup", 8)
    assert init.run == (
        "repo init -u https://github.com/couchbase/manifest -m couchbase-server/neo.xml -g backup"
    )
    assert sync.run == "repo sync --jobs=8"


def test_build_targets():
    assert build_targets(4, "all test").run == "make -j 4 all test"


def test_stage_always_flag():
    assert stage("Build", sh("a", "echo a")).always is False
    assert stage("Clean up", sh("a", "echo a"), always=True).always is True
