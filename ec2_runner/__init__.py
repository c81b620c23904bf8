"""Ephemeral EC2 GitHub Actions runners.

Example:
    from injector import Injector

    from ec2_runner import AWSModule, RunnerModule, load_config, run

    config = load_config()
    await run(config, Injector([RunnerModule(config), AWSModule()]))
"""

from ec2_runner import logging as _logging  # noqa: F401
from ec2_runner.action import StartResult, main, run, set_output, start, stop
from ec2_runner.aws import (
    AWSModule,
    EC2ClientFactory,
    InstanceId,
    InstanceLauncher,
    InstanceSpec,
    InstanceTerminator,
    ReadinessWaiter,
)
from ec2_runner.bootstrap import build_boot_script, encode_user_data, map_architecture
from ec2_runner.config import (
    GitHubRepo,
    RunnerConfig,
    generate_unique_label,
    get_input,
    load_config,
)
from ec2_runner.exceptions import ConfigurationError, Ec2RunnerError, RunnerRegistrationError
from ec2_runner.github import GitHubRunners, RunnerSettings
from ec2_runner.module import RunnerModule

__version__ = "0.1.0"

__all__ = [
    "AWSModule",
    "ConfigurationError",
    "EC2ClientFactory",
    "Ec2RunnerError",
    "GitHubRepo",
    "GitHubRunners",
    "InstanceId",
    "InstanceLauncher",
    "InstanceSpec",
    "InstanceTerminator",
    "ReadinessWaiter",
    "RunnerConfig",
    "RunnerModule",
    "RunnerRegistrationError",
    "RunnerSettings",
    "StartResult",
    "build_boot_script",
    "encode_user_data",
    "generate_unique_label",
    "get_input",
    "load_config",
    "main",
    "run",
    "set_output",
    "start",
    "stop",
]
