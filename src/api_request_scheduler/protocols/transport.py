# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for the transport that performs the actual network call."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TransportProtocol(Protocol):
    """
    Minimal protocol for dispatching an opaque request.

    The scheduler never inspects the request or the result. It awaits the
    transport, hands the result back to the caller on success, and passes
    any raised exception to the classifier on failure.
    """

    async def __call__(self, request: Any) -> Any:
        """
        Perform the request.

        Args:
            request: Opaque request payload as given to ``submit()``

        Returns:
            The result delivered to the caller's future.
        """
        ...
