"""Action entry point: ``start`` and ``stop`` modes.

start:
    registration token → launch instance → outputs → wait running →
    wait for the runner to come online
stop:
    terminate instance → remove runner
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from injector import Injector
from loguru import logger

from .aws.clients import AWSModule
from .aws.lifecycle import InstanceId, InstanceLauncher, InstanceTerminator, ReadinessWaiter
from .aws.spec import InstanceSpec
from .config import RunnerConfig, generate_unique_label, load_config
from .github import GitHubRunners
from .logging import LogConfig, setup_logging, teardown_logging
from .module import RunnerModule

log = logger.bind(component="action")


@dataclass(frozen=True, slots=True)
class StartResult:
    label: str
    instance_id: InstanceId


def set_output(name: str, value: str, env: Mapping[str, str] | None = None) -> None:
    """Publish a step output through the ``GITHUB_OUTPUT`` file."""
    env = os.environ if env is None else env
    path = env.get("GITHUB_OUTPUT")
    if not path:
        log.info("Output {name}={value} (GITHUB_OUTPUT is not set)", name=name, value=value)
        return
    with Path(path).open("a", encoding="utf-8") as f:
        f.write(f"{name}={value}\n")


async def start(
    config: RunnerConfig,
    github: GitHubRunners,
    launcher: InstanceLauncher,
    waiter: ReadinessWaiter,
    *,
    env: Mapping[str, str] | None = None,
) -> StartResult:
    label = generate_unique_label()
    token = await github.registration_token()
    instance_id = await launcher.launch(InstanceSpec.build(config, label, token))

    set_output("label", label, env)
    set_output("ec2-instance-id", instance_id, env)

    await waiter.wait_running(instance_id)
    await github.wait_for_runner_registered(label)
    return StartResult(label=label, instance_id=instance_id)


async def stop(
    config: RunnerConfig,
    github: GitHubRunners,
    terminator: InstanceTerminator,
) -> None:
    await terminator.terminate(config.ec2_instance_id)
    await github.remove_runner(config.label)


async def run(config: RunnerConfig, injector: Injector | None = None) -> StartResult | None:
    """Run the configured mode with components built by ``injector``."""
    injector = injector or Injector([RunnerModule(config), AWSModule()])

    async with injector.get(GitHubRunners) as github:
        match config.mode:
            case "start":
                return await start(
                    config,
                    github,
                    injector.get(InstanceLauncher),
                    injector.get(ReadinessWaiter),
                )
            case "stop":
                await stop(config, github, injector.get(InstanceTerminator))
                return None


def _escape_data(value: str) -> str:
    """Escape a workflow command message so it stays on one line."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ec2-runner",
        description="Start or stop an ephemeral EC2 GitHub Actions runner",
    )
    parser.add_argument(
        "mode", nargs="?", choices=["start", "stop"], default=None,
        help="Overrides the 'mode' action input",
    )
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="Also write DEBUG logs to this file")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None, env: Mapping[str, str] | None = None) -> int:
    args = _parse_args(argv)
    env = dict(os.environ if env is None else env)
    if args.mode:
        env["INPUT_MODE"] = args.mode

    # Remove default handler (ID=0) that logs to stderr without filter
    logger.remove()
    handler_ids = setup_logging(LogConfig(level=args.log_level, file=args.log_file))
    try:
        config = load_config(env)
        asyncio.run(run(config))
    except Exception as e:
        log.opt(exception=e).debug("Action failed")
        print(f"::error::{_escape_data(str(e))}", file=sys.stdout)
        return 1
    finally:
        teardown_logging(handler_ids)
    return 0
