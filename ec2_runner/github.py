"""GitHub Actions self-hosted runner API.

Issues registration tokens, finds runners by label, removes them, and waits
for a freshly booted runner to come online.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ec2_runner.config import GitHubRepo
from ec2_runner.exceptions import RunnerRegistrationError
from ec2_runner.infra.http import HttpClient, HttpError
from ec2_runner.infra.wait import wait_for_ready

if TYPE_CHECKING:
    from loguru import Logger

type Runner = dict[str, Any]

API_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}
PAGE_SIZE = 100


def has_label(runner: Runner, label: str) -> bool:
    return any(lbl.get("name") == label for lbl in runner.get("labels", []))


@dataclass(frozen=True, slots=True)
class RunnerSettings:
    """Timing of the registration wait."""

    quiet_period: float = 30.0
    retry_interval: float = 10.0
    timeout: float = 300.0


@dataclass(frozen=True, slots=True)
class GitHubRunners:
    """Runner management for one repository."""

    http: HttpClient
    repo: GitHubRepo
    log: Logger
    settings: RunnerSettings = RunnerSettings()

    @property
    def _runners_path(self) -> str:
        return f"/repos/{self.repo.owner}/{self.repo.name}/actions/runners"

    async def registration_token(self) -> str:
        """One-time token a new runner registers with."""
        try:
            response = await self.http.post(
                f"{self._runners_path}/registration-token", response_type=dict,
            )
        except Exception:
            self.log.error("GitHub Registration Token receiving error")
            raise

        self.log.info("GitHub Registration Token is received")
        return response.data["token"]

    async def list_runners(self) -> list[Runner]:
        runners: list[Runner] = []
        page = 1
        while True:
            response = await self.http.get(
                self._runners_path,
                params={"per_page": PAGE_SIZE, "page": page},
                response_type=dict,
            )
            batch = response.data.get("runners", [])
            runners.extend(batch)
            if len(batch) < PAGE_SIZE or len(runners) >= response.data.get("total_count", 0):
                return runners
            page += 1

    async def get_runner(self, label: str) -> Runner | None:
        """First runner carrying ``label``, if any."""
        return next((r for r in await self.list_runners() if has_label(r, label)), None)

    async def remove_runner(self, label: str) -> None:
        runner = await self.get_runner(label)

        if runner is None:
            self.log.info(
                "GitHub self-hosted runner with label {label} is not found, so the removal is skipped",
                label=label,
            )
            return

        try:
            await self.http.delete(f"{self._runners_path}/{runner['id']}")
        except Exception:
            self.log.error("GitHub self-hosted runner removal error")
            raise

        self.log.info("GitHub self-hosted runner {name} is removed", name=runner.get("name"))

    async def wait_for_runner_registered(self, label: str) -> Runner:
        """Wait until the runner with ``label`` is online.

        Raises:
            RunnerRegistrationError: The runner was not online before the timeout.
        """
        s = self.settings
        self.log.info(
            "Waiting {quiet:.0f}s for the AWS EC2 instance to be registered in GitHub as a new self-hosted runner",
            quiet=s.quiet_period,
        )
        await asyncio.sleep(s.quiet_period)
        self.log.info(
            "Checking every {interval:.0f}s if the GitHub self-hosted runner is registered",
            interval=s.retry_interval,
        )

        async def poll() -> Runner | None:
            try:
                return await self.get_runner(label)
            except HttpError as e:
                self.log.warning("Could not list runners, retrying: {error}", error=e)
                return None

        try:
            runner = await wait_for_ready(
                poll,
                lambda r: r.get("status") == "online",
                timeout=s.timeout,
                interval=s.retry_interval,
                description=f"runner with label {label}",
            )
        except TimeoutError as e:
            self.log.error("GitHub self-hosted runner registration error")
            raise RunnerRegistrationError(label, str(e)) from e

        self.log.info(
            "GitHub self-hosted runner {name} is registered and ready to use",
            name=runner.get("name"),
        )
        return runner

    async def close(self) -> None:
        await self.http.close()

    async def __aenter__(self) -> GitHubRunners:
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
