"""Action configuration.

Builds an immutable ``RunnerConfig`` from GitHub Actions inputs
(``INPUT_*`` environment variables), the workflow environment and an optional
``ec2-runner.toml`` file whose ``[inputs]`` table provides defaults for local
runs. Components never read the environment themselves: the config value is
built once and handed to them.
"""

from __future__ import annotations

import json
import os
import secrets
import string
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

from ec2_runner.exceptions import ConfigurationError

type RawConfig = dict[str, Any]
type Mode = Literal["start", "stop"]
type Tag = dict[str, str]

PROJECT_CONFIG_NAME = "ec2-runner.toml"

DEFAULT_SERVER_URL = "https://github.com"
DEFAULT_API_URL = "https://api.github.com"

LABEL_ALPHABET = string.ascii_lowercase + string.digits
LABEL_LENGTH = 5


class RunnerTag(StrEnum):
    """EC2 tag keys set by ec2-runner."""

    LABEL = "ec2-runner:label"


def generate_unique_label() -> str:
    """Random runner label, e.g. ``k3f9a``."""
    return "".join(secrets.choice(LABEL_ALPHABET) for _ in range(LABEL_LENGTH))


def get_input(name: str, env: Mapping[str, str]) -> str:
    """Read an action input the way the Actions runner exposes it.

    ``ec2-image-id`` is read from ``INPUT_EC2-IMAGE-ID``.
    """
    key = f"INPUT_{name.replace(' ', '_').upper()}"
    return env.get(key, "").strip()


@dataclass(frozen=True, slots=True)
class GitHubRepo:
    """Repository the runner is registered against."""

    owner: str
    name: str
    server_url: str = DEFAULT_SERVER_URL
    api_url: str = DEFAULT_API_URL

    @property
    def url(self) -> str:
        return f"{self.server_url.rstrip('/')}/{self.owner}/{self.name}"

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> GitHubRepo:
        repository = env.get("GITHUB_REPOSITORY", "")
        owner, sep, name = repository.partition("/")
        if not sep or not owner or not name:
            raise ConfigurationError(
                f"GITHUB_REPOSITORY must look like 'owner/repo', got '{repository}'"
            )
        return cls(
            owner=owner,
            name=name,
            server_url=env.get("GITHUB_SERVER_URL") or DEFAULT_SERVER_URL,
            api_url=env.get("GITHUB_API_URL") or DEFAULT_API_URL,
        )


@dataclass(frozen=True, slots=True)
class RunnerConfig:
    """Static configuration for one start or stop invocation.

    Args:
        mode: ``start`` provisions a runner, ``stop`` tears it down.
        github_token: Token allowed to manage the repository's runners.
        repo: Repository the runner registers against.
        ec2_image_id: AMI to boot.
        ec2_instance_type: EC2 instance type.
        subnet_id: Subnet to place the instance in.
        security_group_id: Comma-separated security group ids.
        label: Label of the runner to remove (stop mode).
        ec2_instance_id: Instance to terminate (stop mode).
        iam_role_name: Instance profile attached to the instance.
        runner_home_dir: Directory of a runner pre-installed in the AMI.
        pre_runner_script: Shell run on the instance before the runner starts.
        aws_resource_tags: Extra tags for the instance and its volumes.
        ec2_volume_size: Root volume size in GiB. Empty keeps the AMI default.
        ec2_device_name: Device name of the root volume.
        ec2_volume_type: EBS volume type of the root volume.
        aws_region: Region override. None uses the SDK's default chain.
        startup_quiet_period_seconds: Grace period before polling GitHub.
        startup_retry_interval_seconds: Delay between GitHub polls.
        startup_timeout_minutes: Give up waiting for the runner after this.
    """

    mode: Mode
    github_token: str
    repo: GitHubRepo
    ec2_image_id: str = ""
    ec2_instance_type: str = ""
    subnet_id: str = ""
    security_group_id: str = ""
    label: str = ""
    ec2_instance_id: str = ""
    iam_role_name: str = ""
    runner_home_dir: str | None = None
    pre_runner_script: str = ""
    aws_resource_tags: tuple[Tag, ...] = field(default_factory=tuple)
    ec2_volume_size: int | None = None
    ec2_device_name: str = "/dev/sda1"
    ec2_volume_type: str = "gp3"
    aws_region: str | None = None
    startup_quiet_period_seconds: float = 30.0
    startup_retry_interval_seconds: float = 10.0
    startup_timeout_minutes: float = 5.0

    @property
    def security_group_ids(self) -> list[str]:
        return [sg.strip() for sg in self.security_group_id.split(",") if sg.strip()]

    def tag_specifications(self, label: str) -> list[dict[str, Any]]:
        """Tags applied to the instance and its volumes."""
        tags = [*map(dict, self.aws_resource_tags), {"Key": RunnerTag.LABEL.value, "Value": label}]
        return [
            {"ResourceType": "instance", "Tags": tags},
            {"ResourceType": "volume", "Tags": tags},
        ]

    def block_device_mappings(self) -> list[dict[str, Any]]:
        if self.ec2_volume_size is None:
            return []
        return [
            {
                "DeviceName": self.ec2_device_name,
                "Ebs": {
                    "VolumeSize": self.ec2_volume_size,
                    "VolumeType": self.ec2_volume_type,
                    "DeleteOnTermination": True,
                },
            }
        ]

    def validate(self) -> RunnerConfig:
        """Check the inputs required by the selected mode."""
        if self.mode not in ("start", "stop"):
            raise ConfigurationError(f"Wrong mode '{self.mode}'. Allowed values: start, stop.")

        if not self.github_token:
            raise ConfigurationError("The 'github-token' input is not specified")

        match self.mode:
            case "start":
                missing = [
                    name
                    for name, value in (
                        ("ec2-image-id", self.ec2_image_id),
                        ("ec2-instance-type", self.ec2_instance_type),
                        ("subnet-id", self.subnet_id),
                        ("security-group-id", self.security_group_id),
                    )
                    if not value
                ]
            case "stop":
                missing = [
                    name
                    for name, value in (
                        ("label", self.label),
                        ("ec2-instance-id", self.ec2_instance_id),
                    )
                    if not value
                ]

        if missing:
            raise ConfigurationError(
                f"Not all the required inputs are provided for the '{self.mode}' mode: "
                f"{', '.join(missing)}"
            )
        return self


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def _parse_tags(raw: Any) -> tuple[Tag, ...]:
    if isinstance(raw, str):
        if not raw:
            return ()
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"'aws-resource-tags' is not valid JSON: {e}") from e

    if not isinstance(raw, list) or not all(
        isinstance(t, dict) and {"Key", "Value"} <= t.keys() for t in raw
    ):
        raise ConfigurationError(
            "'aws-resource-tags' must be a list of {\"Key\": ..., \"Value\": ...} objects"
        )
    return tuple({"Key": str(t["Key"]), "Value": str(t["Value"])} for t in raw)


def _optional_int(name: str, raw: Any) -> int | None:
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"'{name}' must be an integer, got '{raw}'") from e


def _number(name: str, raw: Any, default: float) -> float:
    if raw in (None, ""):
        return default
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"'{name}' must be a number, got '{raw}'") from e


def load_config(
    env: Mapping[str, str] | None = None,
    *,
    project_dir: Path | None = None,
) -> RunnerConfig:
    """Build and validate the configuration for this invocation.

    Action inputs win over the ``[inputs]`` table of ``ec2-runner.toml``.
    """
    env = os.environ if env is None else env
    file_cfg = _read_toml((project_dir or Path.cwd()) / PROJECT_CONFIG_NAME)
    merged = _deep_merge({"inputs": {}}, file_cfg)
    defaults: RawConfig = merged["inputs"]

    def value(name: str) -> Any:
        return get_input(name, env) or defaults.get(name, "")

    return RunnerConfig(
        mode=value("mode"),
        github_token=value("github-token"),
        repo=GitHubRepo.from_env(env),
        ec2_image_id=value("ec2-image-id"),
        ec2_instance_type=value("ec2-instance-type"),
        subnet_id=value("subnet-id"),
        security_group_id=value("security-group-id"),
        label=value("label"),
        ec2_instance_id=value("ec2-instance-id"),
        iam_role_name=value("iam-role-name"),
        runner_home_dir=value("runner-home-dir") or None,
        pre_runner_script=value("pre-runner-script"),
        aws_resource_tags=_parse_tags(value("aws-resource-tags")),
        ec2_volume_size=_optional_int("ec2-volume-size", value("ec2-volume-size")),
        ec2_device_name=value("ec2-device-name") or "/dev/sda1",
        ec2_volume_type=value("ec2-volume-type") or "gp3",
        aws_region=env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION") or None,
        startup_quiet_period_seconds=_number(
            "startup-quiet-period-seconds", value("startup-quiet-period-seconds"), 30.0,
        ),
        startup_retry_interval_seconds=_number(
            "startup-retry-interval-seconds", value("startup-retry-interval-seconds"), 10.0,
        ),
        startup_timeout_minutes=_number(
            "startup-timeout-minutes", value("startup-timeout-minutes"), 5.0,
        ),
    ).validate()
