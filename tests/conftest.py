import pytest

from cvpipeline.config import PipelineConfig
from cvpipeline.ui.console import Console, set_console


GERRIT_ENV = {
    "GERRIT_HOST": "review.example.org",
    "GERRIT_PORT": "29418",
    "GERRIT_PROJECT": "backup",
    "GERRIT_PATCHSET_REVISION": "0123456789abcdef0123456789abcdef01234567",
    "GERRIT_REFSPEC": "refs/changes/45/12345/3",
    "GERRIT_CHANGE_ID": "I0123456789abcdef0123456789abcdef01234567",
}


@pytest.fixture(autouse=True)
def quiet_console():
    """Start every test from a fresh, non-debug console."""
    set_console(Console())
    yield


@pytest.fixture
def job_env(tmp_path):
    """Environment of a Gerrit-triggered linux job."""
    env = {
        "JOB_NAME": "backup.linux.some_testing_change/master",
        "BRANCH_NAME": "master",
        "BUILD_NUMBER": "42",
        "WORKSPACE": str(tmp_path),
    }
    env.update(GERRIT_ENV)
    return env


@pytest.fixture
def config(job_env):
    return PipelineConfig.from_env(job_env)
