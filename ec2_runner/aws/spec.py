"""Instance specification for the runner instance."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ec2_runner.bootstrap import build_boot_script, encode_user_data
from ec2_runner.config import RunnerConfig


@dataclass(frozen=True, slots=True)
class InstanceSpec:
    """Everything EC2 needs to create the runner instance.

    Fields are passed to EC2 as given; missing or invalid values surface as
    the provider's own validation errors.
    """

    image_id: str
    instance_type: str
    subnet_id: str
    security_group_ids: tuple[str, ...]
    user_data: str
    iam_role_name: str = ""
    tag_specifications: tuple[dict[str, Any], ...] = field(default_factory=tuple)
    block_device_mappings: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    @classmethod
    def build(cls, config: RunnerConfig, label: str, token: str) -> InstanceSpec:
        """Spec for ``config`` registering a runner with ``label`` using ``token``."""
        lines = build_boot_script(
            token,
            label,
            config.runner_home_dir,
            repo=config.repo,
            pre_runner_script=config.pre_runner_script,
        )
        return cls(
            image_id=config.ec2_image_id,
            instance_type=config.ec2_instance_type,
            subnet_id=config.subnet_id,
            security_group_ids=tuple(config.security_group_ids),
            user_data=encode_user_data(lines),
            iam_role_name=config.iam_role_name,
            tag_specifications=tuple(config.tag_specifications(label)),
            block_device_mappings=tuple(config.block_device_mappings()),
        )

    def to_request(self) -> dict[str, Any]:
        """Keyword arguments for ``EC2.Client.run_instances``."""
        request: dict[str, Any] = {
            "ImageId": self.image_id,
            "InstanceType": self.instance_type,
            "MinCount": 1,
            "MaxCount": 1,
            "UserData": self.user_data,
            "SubnetId": self.subnet_id,
            "SecurityGroupIds": list(self.security_group_ids),
        }
        if self.iam_role_name:
            request["IamInstanceProfile"] = {"Name": self.iam_role_name}
        if self.tag_specifications:
            request["TagSpecifications"] = list(self.tag_specifications)
        if self.block_device_mappings:
            request["BlockDeviceMappings"] = list(self.block_device_mappings)
        return request
