"""AWS client factories with dependency injection.

Provides the EC2 client factory injected into the lifecycle components.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

import aioboto3
from injector import Module, provider, singleton

from ec2_runner.config import RunnerConfig


type Client[T] = Callable[[], AbstractAsyncContextManager[T]]
"""Factory that returns an async context manager for a client."""


class EC2ClientFactory:
    """Wrapper for EC2 client factory."""

    def __init__(self, factory: Client[Any]) -> None:
        self._factory = factory

    def __call__(self) -> AbstractAsyncContextManager[Any]:
        return self._factory()


class AWSModule(Module):
    """DI module that provides AWS client factories.

    Usage:
        >>> from injector import Injector
        >>> injector = Injector([RunnerModule(config), AWSModule()])
        >>> ec2 = injector.get(EC2ClientFactory)
        >>> async with ec2() as client:
        ...     await client.describe_instances()
    """

    @singleton
    @provider
    def provide_session(self) -> aioboto3.Session:
        """Provide singleton aioboto3 session."""
        return aioboto3.Session()

    @singleton
    @provider
    def provide_ec2(self, session: aioboto3.Session, config: RunnerConfig) -> EC2ClientFactory:
        """Provide EC2 client factory for the configured region."""
        @asynccontextmanager
        async def factory() -> AsyncIterator[Any]:
            async with session.client("ec2", region_name=config.aws_region) as client:
                yield client
        return EC2ClientFactory(factory)


__all__ = [
    "AWSModule",
    "Client",
    "EC2ClientFactory",
]
