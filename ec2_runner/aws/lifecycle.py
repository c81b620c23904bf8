"""Lifecycle operations (launch, wait, terminate) for the runner instance.

Each operation is a single EC2 call. Provider errors are logged with a fixed
message naming the failing operation and re-raised unchanged; nothing here
retries.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .clients import EC2ClientFactory
from .spec import InstanceSpec

if TYPE_CHECKING:
    from loguru import Logger

type InstanceId = str


@dataclass(frozen=True, slots=True)
class InstanceLauncher:
    """Creates exactly one instance from an ``InstanceSpec``."""

    ec2: EC2ClientFactory
    log: Logger

    async def launch(self, spec: InstanceSpec) -> InstanceId:
        """Create the instance and return its id.

        Returns once EC2 acknowledges the request, not once it is running.
        """
        params = spec.to_request()
        try:
            self.log.info("RunInstances request: {params}", params=json.dumps(params))
            async with self.ec2() as ec2:
                result = await ec2.run_instances(**params)
            instance_id: InstanceId = result["Instances"][0]["InstanceId"]
        except Exception:
            self.log.error("AWS EC2 instance starting error")
            raise

        self.log.info("AWS EC2 instance {instance_id} is started", instance_id=instance_id)
        return instance_id


@dataclass(frozen=True, slots=True)
class InstanceTerminator:
    """Requests termination of one instance without waiting for it."""

    ec2: EC2ClientFactory
    log: Logger

    async def terminate(self, instance_id: InstanceId) -> None:
        try:
            async with self.ec2() as ec2:
                await ec2.terminate_instances(InstanceIds=[instance_id])
        except Exception:
            self.log.error(
                "AWS EC2 instance {instance_id} termination error", instance_id=instance_id,
            )
            raise

        self.log.info("AWS EC2 instance {instance_id} is terminated", instance_id=instance_id)


@dataclass(frozen=True, slots=True)
class ReadinessWaiter:
    """Blocks until EC2 reports the instance as running.

    Polling interval and attempt budget are the ``instance_running`` waiter
    defaults; a ``WaiterError`` means the instance did not get there in time.
    """

    ec2: EC2ClientFactory
    log: Logger

    async def wait_running(self, instance_id: InstanceId) -> None:
        try:
            async with self.ec2() as ec2:
                waiter = ec2.get_waiter("instance_running")
                await waiter.wait(InstanceIds=[instance_id])
        except Exception:
            self.log.error(
                "AWS EC2 instance {instance_id} initialization error", instance_id=instance_id,
            )
            raise

        self.log.info("AWS EC2 instance {instance_id} is up and running", instance_id=instance_id)
