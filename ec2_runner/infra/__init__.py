from ec2_runner.infra.http import BearerAuth, HttpClient, HttpError, Response
from ec2_runner.infra.wait import wait_for_ready

__all__ = [
    "BearerAuth",
    "HttpClient",
    "HttpError",
    "Response",
    "wait_for_ready",
]
