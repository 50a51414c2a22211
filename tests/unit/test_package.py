"""Tests for the top-level package exports."""

import api_request_scheduler


class TestPackageExports:
    def test_version(self):
        assert api_request_scheduler.__version__ == "1.0.0"

    def test_all_names_resolve(self):
        """Every name in __all__ is importable from the package."""
        for name in api_request_scheduler.__all__:
            assert hasattr(api_request_scheduler, name), name

    def test_core_exports_are_the_implementations(self):
        from api_request_scheduler.scheduler.scheduler import RequestScheduler
        from api_request_scheduler.transports.http import HttpTransport

        assert api_request_scheduler.RequestScheduler is RequestScheduler
        assert api_request_scheduler.HttpTransport is HttpTransport
