"""Boot script operations.

Each operation returns an Op rendering to one shell line. Lines do no error
checking of their own: a failing step only shows up as a runner that never
registers.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Final

from .compose import Op

RUNNER_DIR: Final = "actions-runner"
PRE_RUNNER_SCRIPT: Final = "pre-runner-script.sh"
PREREQUISITES: Final = ("curl", "jq", "git", "unzip")

AWS_CLI_URL: Final = "https://awscli.amazonaws.com/awscli-exe-linux-${ARCH}.zip"
RUNNER_RELEASES_API: Final = "https://api.github.com/repos/actions/runner/releases/latest"
RUNNER_DOWNLOAD_URL: Final = (
    "https://github.com/actions/runner/releases/download/"
    "v${RUNNER_VERSION}/actions-runner-linux-${ARCH}-${RUNNER_VERSION}.tar.gz"
)

# =============================================================================
# Architecture
# =============================================================================


@dataclass(frozen=True, slots=True)
class Architecture:
    """Architecture tokens used in download URLs.

    Attributes:
        cli: Token of the AWS CLI bundle (``awscli-exe-linux-<cli>.zip``).
        runner: Token of the runner tarball (``actions-runner-linux-<runner>``).
    """

    cli: str
    runner: str


ARCHITECTURES: Final[dict[tuple[str, ...], Architecture]] = {
    ("aarch64",): Architecture(cli="aarch64", runner="arm64"),
    ("amd64", "x86_64"): Architecture(cli="x86_64", runner="x64"),
}


def map_architecture(machine: str) -> Architecture | None:
    """Map ``uname -m`` output to download tokens. Unknown machines map to None."""
    for machines, arch in ARCHITECTURES.items():
        if machine in machines:
            return arch
    return None


def arch_case(target: str) -> Op:
    """Set ``$ARCH`` from ``uname -m`` using the ``target`` token of each mapping.

    Unknown machines match no branch and leave ``$ARCH`` untouched.

    Example:
        >>> arch_case("runner")()
        'case $(uname -m) in aarch64) ARCH="arm64" ;; amd64|x86_64) ARCH="x64" ;; esac'
    """

    def generate() -> str:
        branches = " ".join(
            f'{"|".join(machines)}) ARCH="{getattr(arch, target)}" ;;'
            for machines, arch in ARCHITECTURES.items()
        )
        return f"case $(uname -m) in {branches} esac"

    return generate


# =============================================================================
# Package Operations
# =============================================================================


def apt_install(*packages: str) -> Op:
    """Install packages when apt-get is present."""
    return lambda: (
        "command -v apt-get > /dev/null && sudo apt-get update && "
        f"sudo apt-get install -y {' '.join(packages)}"
    )


def yum_install(*packages: str) -> Op:
    """Install packages when yum is present."""
    return lambda: f"command -v yum > /dev/null && sudo yum -y install {' '.join(packages)}"


def install_aws_cli() -> Op:
    """Download and install AWS CLI v2 for ``$ARCH``."""
    return lambda: (
        f'curl "{AWS_CLI_URL}" -o "awscliv2.zip" && unzip awscliv2.zip && sudo ./aws/install'
    )


# =============================================================================
# Runner Operations
# =============================================================================


def latest_runner_version() -> Op:
    """Resolve the latest runner release into ``$RUNNER_VERSION`` (without the ``v``)."""
    return lambda: f"RUNNER_VERSION=$(curl --silent \"{RUNNER_RELEASES_API}\" | jq -r '.tag_name[1:]')"


def download_runner() -> Op:
    """Download and extract the ``$RUNNER_VERSION`` tarball for ``$ARCH``."""
    return lambda: f"curl -Ls {RUNNER_DOWNLOAD_URL} | tar xz"


def allow_run_as_root() -> Op:
    """User-data runs as root; the runner refuses that unless told otherwise."""
    return lambda: "export RUNNER_ALLOW_RUNASROOT=1"


def install_runner_dependencies() -> Op:
    return lambda: "sudo ./bin/installdependencies.sh"


def register_runner(url: str, token: str, label: str) -> Op:
    """Register the runner with a unique ``<hostname>-<uuid>`` name.

    Example:
        >>> register_runner("https://github.com/o/r", "abc", "ci")()
        './config.sh --url https://github.com/o/r --token abc --labels ci --name $(hostname)-$(uuidgen) --unattended'
    """
    return lambda: (
        f"./config.sh --url {url} --token {token} --labels {label} "
        "--name $(hostname)-$(uuidgen) --unattended"
    )


def run_runner() -> Op:
    return lambda: "./run.sh"


# =============================================================================
# Shell Operations
# =============================================================================


def cd(path: str) -> Op:
    """Change into ``path`` (quoted).

    Example:
        >>> cd("/home/runner")()
        'cd "/home/runner"'
    """
    return lambda: f'cd "{path}"'


def mkdir_cd(path: str) -> Op:
    return lambda: f"mkdir {path} && cd {path}"


def pre_runner_hook(content: str) -> Op:
    """Write ``content`` to a script and source it in the current shell.

    The content travels base64 encoded so arbitrary scripts survive quoting.
    An empty content sources an empty file.
    """
    encoded = base64.b64encode(content.encode("utf-8")).decode("ascii")
    return lambda: (
        f"echo '{encoded}' | base64 --decode > {PRE_RUNNER_SCRIPT} && source {PRE_RUNNER_SCRIPT}"
    )
