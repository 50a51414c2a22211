# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol definitions for scheduler components.

This module provides Protocol classes that define the interfaces for
pluggable components of the request scheduler.

Available protocols:
- TransportProtocol: Interface for the callable that performs a request
- ClassifierProtocol: Interface for classifying failures as rate limits

Supporting types:
- RateLimitVerdict: Result of a positive rate limit classification
"""

from .classifier import ClassifierProtocol, RateLimitVerdict
from .transport import TransportProtocol

__all__ = [
    "ClassifierProtocol",
    "RateLimitVerdict",
    "TransportProtocol",
]
