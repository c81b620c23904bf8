"""Exception hierarchy for ec2-runner.

All ec2-runner specific exceptions inherit from Ec2RunnerError. Errors coming
from EC2 (botocore) and from the GitHub API (HttpError) are not wrapped: they
propagate to the caller unchanged.
"""

from __future__ import annotations


class Ec2RunnerError(Exception):
    """Base exception for all ec2-runner errors."""


class ConfigurationError(Ec2RunnerError):
    """Raised for invalid action inputs or missing required settings."""


class RunnerRegistrationError(Ec2RunnerError):
    """Raised when the runner never shows up online in GitHub."""

    def __init__(self, label: str, reason: str) -> None:
        self.label = label
        self.reason = reason
        super().__init__(f"Runner with label {label} did not register: {reason}")
