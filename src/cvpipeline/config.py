# config.py
# Immutable pipeline configuration, read once from the environment the CI
# server provides (JOB_NAME, BRANCH_NAME, GERRIT_* ...).

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .identity import (
    DEFAULT_NODE_LABELS,
    JobIdentity,
    NodeLabels,
    parse_job_name,
    resolve_node_label,
    resolve_toolchain_url,
)


REQUIRED_GERRIT_ENV_VARS = [
    "GERRIT_HOST",
    "GERRIT_PORT",
    "GERRIT_PROJECT",
    "GERRIT_PATCHSET_REVISION",
    "GERRIT_REFSPEC",
    "GERRIT_CHANGE_ID",
]

DEFAULT_REVIEW_SERVER = "review.couchbase.org"
DEFAULT_JENKINS_URL = "http://cv.jenkins.couchbase.com"

_FALSE_VALUES = {"0", "false", "no", "off"}

# per-project capability labels set by each Jenkinsfile
NODE_LABEL_ENV_VARS = {
    "windows": "WINDOWS_NODE_LABEL",
    "macos": "MACOS_NODE_LABEL",
    "linux": "LINUX_NODE_LABEL",
}


class ConfigError(Exception):
    """Raised when the environment does not describe a runnable pipeline."""

    def __init__(self, message: str, variable: str | None = None):
        self.variable = variable
        super().__init__(message)


def check_required_env_vars(environ: Mapping[str, str] | None = None) -> None:
    """
    Ensure every Gerrit variable needed for code-review integration is set.

    Raises ConfigError naming the first missing (or empty) variable.
    """
    if environ is None:
        environ = os.environ
    for var in REQUIRED_GERRIT_ENV_VARS:
        if not environ.get(var):
            raise ConfigError(f"Required environment variable '{var}' not set.", variable=var)


def _flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    value = environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() not in _FALSE_VALUES


def node_labels_from_env(environ: Mapping[str, str]) -> NodeLabels:
    """Default labels, with any of the *_NODE_LABEL variables layered on top."""
    labels = {
        family: environ[var].strip()
        for family, var in NODE_LABEL_ENV_VARS.items()
        if environ.get(var, "").strip()
    }
    return NodeLabels(**labels) if labels else DEFAULT_NODE_LABELS


@dataclass(frozen=True)
class GerritSettings:
    host: str
    port: int
    project: str
    patchset_revision: Optional[str] = None
    refspec: Optional[str] = None
    change_id: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> Optional["GerritSettings"]:
        """Return None when the job was not started by a Gerrit event."""
        host = environ.get("GERRIT_HOST")
        if not host:
            return None
        port_raw = environ.get("GERRIT_PORT") or "29418"
        try:
            port = int(port_raw)
        except ValueError:
            raise ConfigError(
                f"GERRIT_PORT must be an integer, got {port_raw!r}", variable="GERRIT_PORT"
            ) from None
        return cls(
            host=host,
            port=port,
            project=environ.get("GERRIT_PROJECT", ""),
            patchset_revision=environ.get("GERRIT_PATCHSET_REVISION") or None,
            refspec=environ.get("GERRIT_REFSPEC") or None,
            change_id=environ.get("GERRIT_CHANGE_ID") or None,
        )


@dataclass(frozen=True)
class PipelineConfig:
    """
    Everything a pipeline run needs to know about itself.

    Built once at process start and passed explicitly to the helpers that
    need it.
    """
    job_name: str
    branch: Optional[str] = None
    build_number: Optional[str] = None
    workspace: str = "."
    gerrit: Optional[GerritSettings] = None
    node_labels: NodeLabels = field(default_factory=lambda: DEFAULT_NODE_LABELS)
    project_override: Optional[str] = None
    # keep producing the historical (suffix-less) Go URL on Windows
    legacy_windows_go_url: bool = True
    trigger_enabled: bool = False
    review_server: str = DEFAULT_REVIEW_SERVER
    jenkins_url: str = DEFAULT_JENKINS_URL
    verify_name: str = "backup-cv-multi-branch-pipeline"

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        require_gerrit: bool = False,
        **overrides,
    ) -> "PipelineConfig":
        if environ is None:
            environ = os.environ

        if require_gerrit:
            check_required_env_vars(environ)

        job_name = environ.get("JOB_NAME")
        if not job_name:
            raise ConfigError("Required environment variable 'JOB_NAME' not set.", variable="JOB_NAME")

        values = dict(
            job_name=job_name,
            branch=environ.get("BRANCH_NAME") or None,
            build_number=environ.get("BUILD_NUMBER") or None,
            workspace=environ.get("WORKSPACE") or os.getcwd(),
            gerrit=GerritSettings.from_env(environ),
            node_labels=node_labels_from_env(environ),
            project_override=environ.get("CV_PROJECT_NAME") or None,
            legacy_windows_go_url=_flag(environ, "CV_LEGACY_WINDOWS_GO_URL", True),
            trigger_enabled=_flag(environ, "CV_TRIGGER_ENABLED", False),
            verify_name=environ.get("CV_VERIFY_NAME") or cls.verify_name,
        )
        values.update(overrides)
        config = cls(**values)

        # fail on malformed job names here rather than halfway through a run
        _ = config.identity
        return config

    @property
    def identity(self) -> JobIdentity:
        return parse_job_name(self.job_name, project=self.project_override)

    @property
    def project(self) -> str:
        return self.identity.project

    @property
    def job_type(self) -> str:
        return self.identity.job_type

    @property
    def silent(self) -> bool:
        return self.identity.silent

    @property
    def node_label(self) -> str:
        if not self.branch:
            raise ConfigError(
                "Required environment variable 'BRANCH_NAME' not set.", variable="BRANCH_NAME"
            )
        return resolve_node_label(self.job_type, self.branch, self.node_labels)

    def go_download_url(self, version: str) -> str:
        return resolve_toolchain_url(version, self.job_type, legacy_windows=self.legacy_windows_go_url)

    @property
    def result_url(self) -> str:
        """Link to this build on the CI server, shown next to the Gerrit vote."""
        return (
            f"{self.jenkins_url.rstrip('/')}/job/{self.identity.base_name}"
            f"/job/{self.branch}/{self.build_number}/"
        )

    def workspace_path(self, *parts: str) -> str:
        return os.path.join(self.workspace, *parts)
