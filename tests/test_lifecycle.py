from __future__ import annotations

import json

import pytest
from botocore.exceptions import ClientError, WaiterError

from ec2_runner.aws.clients import EC2ClientFactory
from ec2_runner.aws.lifecycle import InstanceLauncher, InstanceTerminator, ReadinessWaiter
from ec2_runner.aws.spec import InstanceSpec
from ec2_runner.config import RunnerConfig

from tests.conftest import FakeEC2, RecordingLog

pytestmark = [pytest.mark.unit]


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} happened"}}, operation)


@pytest.fixture
def spec(start_config: RunnerConfig) -> InstanceSpec:
    return InstanceSpec.build(start_config, "k3f9a", "tok")


class TestLaunch:
    @pytest.mark.asyncio
    async def test_returns_first_instance_id(
        self, ec2_factory: EC2ClientFactory, fake_ec2: FakeEC2, log: RecordingLog, spec: InstanceSpec,
    ):
        launcher = InstanceLauncher(ec2=ec2_factory, log=log)
        instance_id = await launcher.launch(spec)
        assert instance_id == fake_ec2.instance_id

    @pytest.mark.asyncio
    async def test_single_request_for_one_instance(
        self, ec2_factory: EC2ClientFactory, fake_ec2: FakeEC2, log: RecordingLog, spec: InstanceSpec,
    ):
        await InstanceLauncher(ec2=ec2_factory, log=log).launch(spec)
        assert len(fake_ec2.run_calls) == 1
        assert fake_ec2.run_calls[0] == spec.to_request()
        assert fake_ec2.run_calls[0]["MinCount"] == fake_ec2.run_calls[0]["MaxCount"] == 1

    @pytest.mark.asyncio
    async def test_logs_payload_and_id(
        self, ec2_factory: EC2ClientFactory, fake_ec2: FakeEC2, log: RecordingLog, spec: InstanceSpec,
    ):
        await InstanceLauncher(ec2=ec2_factory, log=log).launch(spec)
        info = log.messages("INFO")
        assert info[0] == f"RunInstances request: {json.dumps(spec.to_request())}"
        assert info[-1] == f"AWS EC2 instance {fake_ec2.instance_id} is started"

    @pytest.mark.asyncio
    async def test_provider_error_propagates_unchanged(
        self, ec2_factory: EC2ClientFactory, fake_ec2: FakeEC2, log: RecordingLog,
    ):
        error = client_error("MissingParameter", "RunInstances")
        fake_ec2.error = error
        incomplete = InstanceSpec(
            image_id="", instance_type="t3.micro", subnet_id="", security_group_ids=(), user_data="",
        )

        with pytest.raises(ClientError) as exc_info:
            await InstanceLauncher(ec2=ec2_factory, log=log).launch(incomplete)

        assert exc_info.value is error
        assert fake_ec2.run_calls[0]["ImageId"] == ""
        assert log.messages("ERROR") == ["AWS EC2 instance starting error"]
        assert len(fake_ec2.run_calls) == 1


class TestTerminate:
    @pytest.mark.asyncio
    async def test_requests_exactly_one_id(
        self, ec2_factory: EC2ClientFactory, fake_ec2: FakeEC2, log: RecordingLog,
    ):
        await InstanceTerminator(ec2=ec2_factory, log=log).terminate("i-0feed")
        assert fake_ec2.terminate_calls == [{"InstanceIds": ["i-0feed"]}]
        assert log.messages("INFO") == ["AWS EC2 instance i-0feed is terminated"]

    @pytest.mark.asyncio
    async def test_error_propagates(
        self, ec2_factory: EC2ClientFactory, fake_ec2: FakeEC2, log: RecordingLog,
    ):
        fake_ec2.error = client_error("UnauthorizedOperation", "TerminateInstances")
        with pytest.raises(ClientError):
            await InstanceTerminator(ec2=ec2_factory, log=log).terminate("i-0feed")
        assert len(fake_ec2.terminate_calls) == 1
        assert log.messages("ERROR") == ["AWS EC2 instance i-0feed termination error"]


class TestWaitRunning:
    @pytest.mark.asyncio
    async def test_uses_instance_running_waiter(
        self, ec2_factory: EC2ClientFactory, fake_ec2: FakeEC2, log: RecordingLog,
    ):
        await ReadinessWaiter(ec2=ec2_factory, log=log).wait_running("i-0feed")
        assert fake_ec2.waiter_names == ["instance_running"]
        assert fake_ec2.wait_calls == [{"InstanceIds": ["i-0feed"]}]
        assert log.messages("INFO") == ["AWS EC2 instance i-0feed is up and running"]

    @pytest.mark.asyncio
    async def test_waiter_give_up_propagates(
        self, ec2_factory: EC2ClientFactory, fake_ec2: FakeEC2, log: RecordingLog,
    ):
        error = WaiterError(
            name="InstanceRunning",
            reason="Max attempts exceeded",
            last_response={"Reservations": []},
        )
        fake_ec2.error = error
        with pytest.raises(WaiterError) as exc_info:
            await ReadinessWaiter(ec2=ec2_factory, log=log).wait_running("i-0feed")
        assert exc_info.value is error
        assert log.messages("ERROR") == ["AWS EC2 instance i-0feed initialization error"]
