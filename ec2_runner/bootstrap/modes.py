"""Boot modes.

A runner either comes pre-installed in the AMI (``PreInstalled``) or is
downloaded at boot (``FreshInstall``). Each mode emits its own line sequence.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from ec2_runner.config import GitHubRepo

from .compose import script
from .ops import (
    PREREQUISITES,
    RUNNER_DIR,
    allow_run_as_root,
    apt_install,
    arch_case,
    cd,
    download_runner,
    install_aws_cli,
    install_runner_dependencies,
    latest_runner_version,
    mkdir_cd,
    pre_runner_hook,
    register_runner,
    run_runner,
    yum_install,
)


@dataclass(frozen=True, slots=True)
class PreInstalled:
    """Runner software and its dependencies already live in ``home_dir``."""

    home_dir: PurePosixPath

    def lines(
        self, token: str, label: str, *, repo: GitHubRepo, pre_runner_script: str = "",
    ) -> list[str]:
        return script(
            cd(str(self.home_dir)),
            pre_runner_hook(pre_runner_script),
            allow_run_as_root(),
            register_runner(repo.url, token, label),
            run_runner(),
        )


@dataclass(frozen=True, slots=True)
class FreshInstall:
    """Download the latest runner and the AWS CLI, supporting apt and yum hosts."""

    def lines(
        self, token: str, label: str, *, repo: GitHubRepo, pre_runner_script: str = "",
    ) -> list[str]:
        return script(
            mkdir_cd(RUNNER_DIR),
            pre_runner_hook(pre_runner_script),
            apt_install(*PREREQUISITES),
            yum_install(*PREREQUISITES),
            arch_case("cli"),
            install_aws_cli(),
            arch_case("runner"),
            latest_runner_version(),
            download_runner(),
            allow_run_as_root(),
            install_runner_dependencies(),
            register_runner(repo.url, token, label),
            run_runner(),
        )


type BootMode = PreInstalled | FreshInstall


def boot_mode(home_dir: str | PurePosixPath | None) -> BootMode:
    """Pick the mode from whether a runner home directory is configured."""
    match home_dir:
        case None | "":
            return FreshInstall()
        case _:
            return PreInstalled(PurePosixPath(home_dir))
