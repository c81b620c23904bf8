"""EC2 side of the runner lifecycle.

Example:
    from injector import Injector

    from ec2_runner.aws import AWSModule, InstanceLauncher, InstanceSpec
    from ec2_runner.module import RunnerModule

    injector = Injector([RunnerModule(config), AWSModule()])
    launcher = injector.get(InstanceLauncher)
    instance_id = await launcher.launch(InstanceSpec.build(config, label, token))
"""

from ec2_runner.aws.clients import AWSModule, EC2ClientFactory
from ec2_runner.aws.lifecycle import (
    InstanceId,
    InstanceLauncher,
    InstanceTerminator,
    ReadinessWaiter,
)
from ec2_runner.aws.spec import InstanceSpec

__all__ = [
    "AWSModule",
    "EC2ClientFactory",
    "InstanceId",
    "InstanceLauncher",
    "InstanceSpec",
    "InstanceTerminator",
    "ReadinessWaiter",
]
