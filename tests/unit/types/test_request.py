"""
Unit tests for RequestDescriptor and Priority.

Tests cover:
- Priority ranks and string parsing
- RequestDescriptor defaults and the cacheable property
- Sequential request id generation
"""

import pytest

from api_request_scheduler.types.request import (
    DEFAULT_CACHE_TTL_MS,
    Priority,
    RequestDescriptor,
    sequential_id_factory,
)


class TestPriority:
    """Tests for the Priority enum."""

    def test_ranks_order_high_first(self):
        """HIGH outranks NORMAL, which outranks LOW."""
        assert Priority.HIGH.rank < Priority.NORMAL.rank < Priority.LOW.rank

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("high", Priority.HIGH),
            ("NORMAL", Priority.NORMAL),
            ("Low", Priority.LOW),
            (Priority.HIGH, Priority.HIGH),
        ],
    )
    def test_parse_accepts_strings_and_members(self, value, expected):
        """Parse is case-insensitive and passes members through."""
        assert Priority.parse(value) is expected

    def test_parse_unknown_raises(self):
        """Unknown priority names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown priority"):
            Priority.parse("urgent")


class TestRequestDescriptor:
    """Tests for the RequestDescriptor dataclass."""

    def test_defaults(self):
        """A bare descriptor is normal priority, uncached and unretried."""
        descriptor = RequestDescriptor(
            request_id="req-1", request={"url": "/a"}, created_at_ms=1500.0
        )

        assert descriptor.priority is Priority.NORMAL
        assert descriptor.cache_key is None
        assert descriptor.cache_ttl_ms == DEFAULT_CACHE_TTL_MS
        assert descriptor.bypass_cache is False
        assert descriptor.retry_count == 0
        assert descriptor.created_at_ms == 1500.0

    def test_created_at_is_required(self):
        """The submission timestamp has no default clock."""
        with pytest.raises(TypeError, match="created_at_ms"):
            RequestDescriptor(request_id="req-1", request=None)  # type: ignore[call-arg]

    def test_created_at_is_keyword_only(self):
        """Positional fields stop before the timestamp."""
        with pytest.raises(TypeError):
            RequestDescriptor(  # type: ignore[misc]
                "req-1", None, Priority.HIGH, None, 1000.0, False, 0, 1500.0
            )

    def test_cacheable_requires_key(self):
        """Without a cache key the descriptor is not cacheable."""
        descriptor = RequestDescriptor(request_id="req-1", request=None, created_at_ms=0)
        assert descriptor.cacheable is False

    def test_cacheable_with_key(self):
        """A cache key makes the descriptor cacheable."""
        descriptor = RequestDescriptor(
            request_id="req-1", request=None, cache_key="summoner:abc", created_at_ms=0
        )
        assert descriptor.cacheable is True

    def test_bypass_disables_cacheable(self):
        """bypass_cache wins over a cache key."""
        descriptor = RequestDescriptor(
            request_id="req-1",
            request=None,
            cache_key="summoner:abc",
            bypass_cache=True,
            created_at_ms=0,
        )
        assert descriptor.cacheable is False

    def test_descriptor_has_no_future(self):
        """The descriptor is plain data; the future is kept elsewhere."""
        descriptor = RequestDescriptor(request_id="req-1", request=None, created_at_ms=0)
        assert not hasattr(descriptor, "future")


class TestSequentialIdFactory:
    """Tests for sequential_id_factory."""

    def test_ids_are_sequential(self):
        """Ids count up from 1 with the default prefix."""
        next_id = sequential_id_factory()
        assert [next_id(), next_id(), next_id()] == ["req-1", "req-2", "req-3"]

    def test_custom_prefix(self):
        """A custom prefix is used verbatim."""
        next_id = sequential_id_factory("riot")
        assert next_id() == "riot-1"

    def test_factories_are_independent(self):
        """Each factory keeps its own counter."""
        first = sequential_id_factory()
        second = sequential_id_factory()
        first()
        first()
        assert second() == "req-1"
