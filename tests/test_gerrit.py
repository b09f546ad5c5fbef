import subprocess

import pytest

from cvpipeline.config import ConfigError, PipelineConfig
from cvpipeline.gerrit import (
    checkout_patch_steps,
    submit_verify_status,
    trigger_config,
    verify_status_command,
)

from conftest import GERRIT_ENV


class FakeRun:
    def __init__(self, returncode=0):
        self.calls = []
        self.returncode = returncode

    def __call__(self, cmd, check=False, **kwargs):
        self.calls.append(cmd)
        if check and self.returncode != 0:
            raise subprocess.CalledProcessError(self.returncode, cmd)
        return subprocess.CompletedProcess(cmd, self.returncode)


def test_trigger_config(config):
    trigger = trigger_config(config)
    assert trigger["serverName"] == "review.couchbase.org"
    assert trigger["silentMode"] is False
    assert trigger["silentStartMode"] is False

    (project,) = trigger["gerritProjects"]
    assert project["compareType"] == "PLAIN"
    assert project["pattern"] == "backup"
    assert project["branches"] == [{"compareType": "PLAIN", "pattern": "disabled"}]

    events = trigger["triggerOnEvents"]
    assert {"commentAddedContains": {"commentAddedCommentContains": "reverify"}} in events
    assert {"draftPublished": {}} in events
    assert {"patchsetCreated": {"excludeNoCodeChange": True}} in events


def test_trigger_config_macos_is_silent(job_env):
    job_env["JOB_NAME"] = "backup.macos.cv/master"
    trigger = trigger_config(PipelineConfig.from_env(job_env))
    assert trigger["silentMode"] is True
    assert trigger["silentStartMode"] is True


def test_trigger_config_enabled_branch(job_env):
    job_env["CV_TRIGGER_ENABLED"] = "true"
    trigger = trigger_config(PipelineConfig.from_env(job_env))
    assert trigger["gerritProjects"][0]["branches"][0]["pattern"] == "master"


def test_checkout_patch_steps(config):
    fetch, checkout = checkout_patch_steps(config)
    assert fetch.run == (
        "git fetch ssh://buildbot@review.couchbase.org:29418/backup refs/changes/45/12345/3"
    )
    assert checkout.run == "git checkout FETCH_HEAD"


def test_checkout_patch_steps_requires_gerrit():
    config = PipelineConfig.from_env({"JOB_NAME": "tools.linux.x/master"})
    with pytest.raises(ConfigError):
        checkout_patch_steps(config)


def test_verify_status_command(config):
    cmd = verify_status_command(config, 1)
    assert cmd[:4] == ["ssh", "-p", "29418", "buildbot@review.example.org"]
    assert "StrictHostKeyChecking=no" in cmd
    assert "UserKnownHostsFile=/dev/null" in cmd
    assert cmd[-1] == GERRIT_ENV["GERRIT_PATCHSET_REVISION"]
    assert cmd[-2] == (
        "'name=backup-cv-multi-branch-pipeline|value=1|"
        "url=http://cv.jenkins.couchbase.com/job/backup.linux.some_testing_change/job/master/42/|"
        "reporter=buildbot'"
    )


def test_submit_verify_status(config):
    fake = FakeRun()
    assert submit_verify_status(config, -1, run=fake) is True
    (cmd,) = fake.calls
    assert "value=-1" in cmd[-2]


def test_submit_verify_status_without_revision_is_noop(job_env):
    del job_env["GERRIT_PATCHSET_REVISION"]
    config = PipelineConfig.from_env(job_env)
    fake = FakeRun()
    assert submit_verify_status(config, 1, run=fake) is False
    assert fake.calls == []


def test_submit_verify_status_outside_gerrit_is_noop():
    config = PipelineConfig.from_env({"JOB_NAME": "tools.linux.x/master"})
    fake = FakeRun()
    assert submit_verify_status(config, 1, run=fake) is False
    assert fake.calls == []


def test_submit_verify_status_propagates_ssh_failure(config):
    with pytest.raises(subprocess.CalledProcessError):
        submit_verify_status(config, 1, run=FakeRun(returncode=255))
