# identity.py
# Derive project, OS family, node label and toolchain URL from a Jenkins job name.
#
# Job names look like:
#   tools.linux.some_testing_change/master
#   ^^^^^ ^^^^^                     ^^^^^^
#   project  job type                branch (multibranch pipeline)

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List


class MalformedJobName(ValueError):
    """Raised when a job name does not have at least `project.type`."""

    def __init__(self, job_name: str):
        self.job_name = job_name
        super().__init__(
            f"Malformed job name {job_name!r}: expected '<project>.<type>[.<suffix>]/<branch>'"
        )


_AARCH64_LINUX = re.compile(r"aarch64-linux.*")


class OsFamily(Enum):
    WINDOWS = "windows"
    MACOS = "macos"
    AARCH64_LINUX = "aarch64-linux"
    LINUX = "linux"

    @classmethod
    def from_job_type(cls, job_type: str) -> "OsFamily":
        """Map a job type onto an OS family. Unknown types are linux."""
        if job_type == "windows":
            return cls.WINDOWS
        if job_type == "macos":
            return cls.MACOS
        if _AARCH64_LINUX.fullmatch(job_type):
            return cls.AARCH64_LINUX
        return cls.LINUX


@dataclass(frozen=True)
class NodeLabels:
    """Capability labels used to pick a build node for each OS family."""
    windows: str = "msvc2017"
    macos: str = "kv-macos"
    aarch64_linux: str = "aarch64 && amzn2"
    linux: str = "ubuntu-18.04 && large"

    def for_family(self, family: OsFamily) -> str:
        return {
            OsFamily.WINDOWS: self.windows,
            OsFamily.MACOS: self.macos,
            OsFamily.AARCH64_LINUX: self.aarch64_linux,
            OsFamily.LINUX: self.linux,
        }[family]


DEFAULT_NODE_LABELS = NodeLabels()

GO_DOWNLOAD_BASE = "https://golang.org/dl/go"

GO_PLATFORMS = {
    OsFamily.WINDOWS: "windows-amd64.zip",
    OsFamily.MACOS: "darwin-amd64.tar.gz",
    OsFamily.AARCH64_LINUX: "linux-arm64.tar.gz",
    OsFamily.LINUX: "linux-amd64.tar.gz",
}


def _tokenize(value: str, sep: str) -> List[str]:
    # empty tokens are dropped: "a..b" -> ["a", "b"]
    return [tok for tok in value.split(sep) if tok]


def job_base_name(job_name: str) -> str:
    """
    Return the job name without its branch part.

    "tools.linux.some_testing_change/master" -> "tools.linux.some_testing_change"
    """
    parts = _tokenize(job_name, "/")
    if not parts:
        raise MalformedJobName(job_name)
    return parts[0]


def _segments(job_name: str) -> List[str]:
    segments = _tokenize(job_base_name(job_name), ".")
    if len(segments) < 2:
        raise MalformedJobName(job_name)
    return segments


def resolve_project_name(job_name: str) -> str:
    """e.g. tools.linux.some_testing_change/master -> tools"""
    return _segments(job_name)[0]


def resolve_job_type(job_name: str) -> str:
    """e.g. tools.linux.some_testing_change/master -> linux"""
    return _segments(job_name)[1]


def resolve_node_label(
    job_type: str,
    branch: str,
    labels: NodeLabels = DEFAULT_NODE_LABELS,
) -> str:
    """
    Build the node selector expression for a job type and branch.

    The branch is AND-ed onto the capability label so that only nodes
    provisioned for that branch are picked, e.g. "kv-macos && master".
    """
    os_label = labels.for_family(OsFamily.from_job_type(job_type))
    return f"{os_label} && {branch}"


def resolve_toolchain_url(version: str, job_type: str, legacy_windows: bool = True) -> str:
    """
    Return the Go download URL for `version` on the job's platform.

    With legacy_windows the Windows platform suffix is left empty, matching
    the URLs the existing pipelines have always produced
    ("https://golang.org/dl/go1.19.").
    """
    family = OsFamily.from_job_type(job_type)
    if family is OsFamily.WINDOWS and legacy_windows:
        platform = ""
    else:
        platform = GO_PLATFORMS[family]
    return f"{GO_DOWNLOAD_BASE}{version}.{platform}"


def should_run_silently(job_type: str) -> bool:
    """macOS jobs do not post comments or votes to Gerrit."""
    return job_type == "macos"


@dataclass(frozen=True)
class JobIdentity:
    job_name: str
    project: str
    job_type: str

    @property
    def base_name(self) -> str:
        return job_base_name(self.job_name)

    @property
    def os_family(self) -> OsFamily:
        return OsFamily.from_job_type(self.job_type)

    @property
    def silent(self) -> bool:
        return should_run_silently(self.job_type)


def parse_job_name(job_name: str, project: str | None = None) -> JobIdentity:
    """
    Resolve the identity of a job from its name.

    Newer jobs supply a plain project name separately; when `project` is
    given it replaces the one embedded in the job name.
    """
    return JobIdentity(
        job_name=job_name,
        project=project or resolve_project_name(job_name),
        job_type=resolve_job_type(job_name),
    )
