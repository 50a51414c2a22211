# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Bundled transports and the default rate limit classifier."""

from .classifier import RATE_LIMIT_STATUS, StatusCodeClassifier, parse_retry_after
from .http import HttpRequest, HttpResponse, HttpTransport

__all__ = [
    "RATE_LIMIT_STATUS",
    "HttpRequest",
    "HttpResponse",
    "HttpTransport",
    "StatusCodeClassifier",
    "parse_retry_after",
]
