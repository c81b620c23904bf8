from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import pytest

from ec2_runner.aws.clients import EC2ClientFactory
from ec2_runner.config import GitHubRepo, RunnerConfig


class RecordingLog:
    """Stands in for a bound loguru logger and keeps formatted records."""

    def __init__(self, records: list[tuple[str, str]] | None = None) -> None:
        self.records = [] if records is None else records

    def bind(self, **_: object) -> RecordingLog:
        return RecordingLog(self.records)

    def _log(self, level: str, message: str, *args: object, **kwargs: object) -> None:
        self.records.append((level, message.format(*args, **kwargs)))

    def debug(self, message: str, *args: object, **kwargs: object) -> None:
        self._log("DEBUG", message, *args, **kwargs)

    def info(self, message: str, *args: object, **kwargs: object) -> None:
        self._log("INFO", message, *args, **kwargs)

    def warning(self, message: str, *args: object, **kwargs: object) -> None:
        self._log("WARNING", message, *args, **kwargs)

    def error(self, message: str, *args: object, **kwargs: object) -> None:
        self._log("ERROR", message, *args, **kwargs)

    def messages(self, level: str) -> list[str]:
        return [m for lvl, m in self.records if lvl == level]


@dataclass
class FakeWaiter:
    name: str
    calls: list[dict[str, Any]]
    error: Exception | None = None

    async def wait(self, **kwargs: Any) -> None:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error


@dataclass
class FakeEC2:
    """Records every EC2 call; raises ``error`` instead of answering when set."""

    instance_id: str = "i-0123456789abcdef0"
    error: Exception | None = None
    run_calls: list[dict[str, Any]] = field(default_factory=list)
    terminate_calls: list[dict[str, Any]] = field(default_factory=list)
    wait_calls: list[dict[str, Any]] = field(default_factory=list)
    waiter_names: list[str] = field(default_factory=list)

    async def run_instances(self, **kwargs: Any) -> dict[str, Any]:
        self.run_calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"Instances": [{"InstanceId": self.instance_id, "State": {"Name": "pending"}}]}

    async def terminate_instances(self, **kwargs: Any) -> dict[str, Any]:
        self.terminate_calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"TerminatingInstances": [{"InstanceId": i} for i in kwargs["InstanceIds"]]}

    def get_waiter(self, name: str) -> FakeWaiter:
        self.waiter_names.append(name)
        return FakeWaiter(name, self.wait_calls, self.error)


@pytest.fixture
def fake_ec2() -> FakeEC2:
    return FakeEC2()


@pytest.fixture
def ec2_factory(fake_ec2: FakeEC2) -> EC2ClientFactory:
    @asynccontextmanager
    async def factory() -> AsyncIterator[FakeEC2]:
        yield fake_ec2

    return EC2ClientFactory(factory)


@pytest.fixture
def log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture
def repo() -> GitHubRepo:
    return GitHubRepo(owner="octo-org", name="app")


@pytest.fixture
def start_config(repo: GitHubRepo) -> RunnerConfig:
    return RunnerConfig(
        mode="start",
        github_token="ghp_test",
        repo=repo,
        ec2_image_id="ami-0abc",
        ec2_instance_type="t3.medium",
        subnet_id="subnet-0abc",
        security_group_id="sg-1, sg-2",
        iam_role_name="runner-role",
        aws_resource_tags=({"Key": "team", "Value": "ci"},),
    )
