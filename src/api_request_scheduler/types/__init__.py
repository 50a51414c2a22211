# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Type definitions and constants."""

from .request import (
    DEFAULT_CACHE_TTL_MS,
    Priority,
    RequestDescriptor,
    sequential_id_factory,
)

__all__ = [
    "DEFAULT_CACHE_TTL_MS",
    "Priority",
    # Request descriptor
    "RequestDescriptor",
    "sequential_id_factory",
]
