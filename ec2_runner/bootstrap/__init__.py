"""Boot script builder.

Produces the user-data script that registers the instance as a GitHub Actions
runner on first boot.

Example:
    >>> from ec2_runner.bootstrap import build_boot_script, encode_user_data
    >>> from ec2_runner.config import GitHubRepo
    >>>
    >>> lines = build_boot_script(
    ...     "abc123", "ci-xyz", "/home/runner", repo=GitHubRepo("octo", "app"),
    ... )
    >>> lines[1]
    'cd "/home/runner"'
    >>> user_data = encode_user_data(lines)
"""

from __future__ import annotations

from pathlib import PurePosixPath

from ec2_runner.config import GitHubRepo

from .compose import SHEBANG, Op, encode_user_data, render, resolve, script
from .modes import BootMode, FreshInstall, PreInstalled, boot_mode
from .ops import ARCHITECTURES, Architecture, map_architecture


def build_boot_script(
    token: str,
    label: str,
    home_dir: str | PurePosixPath | None = None,
    *,
    repo: GitHubRepo,
    pre_runner_script: str = "",
) -> list[str]:
    """Build the ordered boot script lines.

    Args:
        token: One-time runner registration token.
        label: Runner label, also used to find the runner later.
        home_dir: Directory of a pre-installed runner. None downloads one.
        repo: Repository the runner registers against.
        pre_runner_script: Shell sourced right before the runner is set up.

    Returns:
        Shebang followed by one shell statement per element.
    """
    return boot_mode(home_dir).lines(
        token, label, repo=repo, pre_runner_script=pre_runner_script,
    )


__all__ = [
    "ARCHITECTURES",
    "SHEBANG",
    "Architecture",
    "BootMode",
    "FreshInstall",
    "Op",
    "PreInstalled",
    "boot_mode",
    "build_boot_script",
    "encode_user_data",
    "map_architecture",
    "render",
    "resolve",
    "script",
]
