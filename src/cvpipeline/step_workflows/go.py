# step_workflows/go.py
from __future__ import annotations

from typing import List

from ..config import PipelineConfig
from ..model import Step

LINT_INSTALLER = "https://raw.githubusercontent.com/golangci/golangci-lint/{version}/install.sh"

REPORT_TOOLS = [
    # unit test reporting
    "github.com/jstemmer/go-junit-report@latest",
    # coverage reporting
    "github.com/axw/gocov/gocov@latest",
    "github.com/AlekSi/gocov-xml@latest",
]


# ---------------------------------------------------------------------
# Tooling
# ---------------------------------------------------------------------

def install_go_deps(go_bin: str, lint_version: str) -> List[Step]:
    """Install golangci-lint and the junit/cobertura report converters into go_bin."""
    installer = LINT_INSTALLER.format(version=lint_version)
    steps = [
        Step(
            name=f"Install golangci-lint {lint_version}",
            run=f"curl -sSfL {installer} | sh -s -- -b {go_bin} {lint_version}",
        ),
        Step(name="golangci-lint version", run="golangci-lint --version"),
    ]
    for tool in REPORT_TOOLS:
        name = tool.split("@", 1)[0].rsplit("/", 1)[-1]
        steps.append(Step(name=f"Install {name}", run=f"GOBIN={go_bin} go install {tool}"))
    return steps


# ---------------------------------------------------------------------
# Lint / test
# ---------------------------------------------------------------------

def run_lint(timeout: str = "5m", *, cwd: str | None = None) -> Step:
    return Step(name="golangci-lint", run=f"golangci-lint run --timeout {timeout}", cwd=cwd)


def run_go_tests(config: PipelineConfig, go_bin: str, source: str, extra_args: str = "") -> List[Step]:
    """
    Run `go test` over `source` and convert the output into reports/test.xml
    (junit) and reports/coverage.xml (cobertura) under the workspace.

    The reports are written even when tests fail; the exit status of
    `go test` is kept in reports/test.status and the last step fails the
    stage with it.
    """
    reports = config.workspace_path("reports")
    go_test = " ".join(
        part for part in [
            f"GOBIN={go_bin} go test -v -timeout=15m -count=1",
            extra_args.strip(),
            "-coverprofile=coverage.out ./...",
        ] if part
    )
    return [
        Step(name="Create reports dir", run="mkdir -p reports"),
        Step(name="Clean test cache", run=f"GOBIN={go_bin} go clean -testcache", cwd=source),
        Step(
            name="Go test",
            run=(
                f"{go_test} > {reports}/test.raw 2>&1; "
                f"echo $? > {reports}/test.status; cat {reports}/test.raw"
            ),
            cwd=source,
        ),
        Step(
            name="Convert to junit",
            run=f"cat {reports}/test.raw | go-junit-report > {reports}/test.xml",
            cwd=source,
        ),
        Step(
            name="Convert to cobertura",
            run=f"GOBIN={go_bin} gocov convert coverage.out | gocov-xml > {reports}/coverage.xml",
            cwd=source,
        ),
        Step(name="Check test result", run=f'exit "$(cat {reports}/test.status)"'),
    ]


# ---------------------------------------------------------------------
# Cleanup
# ---------------------------------------------------------------------

def clean_up(config: PipelineConfig) -> List[Step]:
    """Drop the Go build cache and empty the workspace for the next build."""
    return [
        Step(name="Clean Go caches", run="go clean --cache --testcache"),
        Step(
            name="Delete workspace",
            run=f"find {config.workspace_path()} -mindepth 1 -delete",
        ),
    ]
