"""Boot script composition.

Core types for the boot script DSL. Every operation renders to exactly one
shell line, so a composed script is a plain ordered list of lines.
"""

from __future__ import annotations

import base64
from collections.abc import Callable, Sequence
from typing import Final

SHEBANG: Final = "#!/bin/bash"

type Op = str | Callable[[], str] | list[Op]
"""Operation type: a literal line, a function returning a line, or a group."""


def resolve(op: Op) -> list[str]:
    """Resolve an operation to the shell lines it stands for."""
    match op:
        case str(line):
            return [line]
        case list(ops):
            return [line for o in ops for line in resolve(o)]
        case _:
            return [op()]


def script(*ops: Op | None) -> list[str]:
    """Compose operations into a boot script, shebang first.

    Example:
        >>> script("cd /opt", "./run.sh")
        ['#!/bin/bash', 'cd /opt', './run.sh']
    """
    return [SHEBANG, *(line for op in ops if op is not None for line in resolve(op))]


def render(lines: Sequence[str]) -> str:
    """Join boot script lines into the script text."""
    return "\n".join(lines)


def encode_user_data(lines: Sequence[str]) -> str:
    """Base64 user-data, as expected by EC2 RunInstances."""
    return base64.b64encode(render(lines).encode("utf-8")).decode("ascii")
