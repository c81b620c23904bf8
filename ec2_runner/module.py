"""Central DI module for ec2-runner.

Binds the per-invocation ``RunnerConfig`` and builds every component with
that config and its own bound logger, so nothing reads ambient state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from injector import Binder, Module, provider, singleton
from loguru import logger

from .aws.clients import EC2ClientFactory
from .aws.lifecycle import InstanceLauncher, InstanceTerminator, ReadinessWaiter
from .config import RunnerConfig
from .github import API_HEADERS, GitHubRunners, RunnerSettings
from .infra.http import BearerAuth, HttpClient

if TYPE_CHECKING:
    from loguru import Logger


class RunnerModule(Module):
    """Module for invocation-specific configuration and components.

    Usage:
        injector = Injector([RunnerModule(config), AWSModule()])
        launcher = injector.get(InstanceLauncher)
    """

    def __init__(self, config: RunnerConfig, log: Logger | None = None) -> None:
        self._config = config
        self._log = log or logger

    def configure(self, binder: Binder) -> None:
        binder.bind(RunnerConfig, to=self._config)

    @singleton
    @provider
    def provide_launcher(self, ec2: EC2ClientFactory) -> InstanceLauncher:
        return InstanceLauncher(ec2=ec2, log=self._log.bind(component="ec2-launcher"))

    @singleton
    @provider
    def provide_terminator(self, ec2: EC2ClientFactory) -> InstanceTerminator:
        return InstanceTerminator(ec2=ec2, log=self._log.bind(component="ec2-terminator"))

    @singleton
    @provider
    def provide_waiter(self, ec2: EC2ClientFactory) -> ReadinessWaiter:
        return ReadinessWaiter(ec2=ec2, log=self._log.bind(component="ec2-waiter"))

    @singleton
    @provider
    def provide_github(self, config: RunnerConfig) -> GitHubRunners:
        http = HttpClient(
            config.repo.api_url,
            BearerAuth(config.github_token),
            default_headers=API_HEADERS,
        )
        return GitHubRunners(
            http=http,
            repo=config.repo,
            log=self._log.bind(component="github"),
            settings=RunnerSettings(
                quiet_period=config.startup_quiet_period_seconds,
                retry_interval=config.startup_retry_interval_seconds,
                timeout=config.startup_timeout_minutes * 60,
            ),
        )


__all__ = ["RunnerModule"]
