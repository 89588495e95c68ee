"""Unit tests for load requests, results and paging config."""
from __future__ import annotations

import dataclasses

import pytest

from offset_paging.core.paging import (
    Invalid,
    LoadParams,
    LoadType,
    Page,
    PagingConfig,
    PagingState,
)
from offset_paging.core.settings import PagingSettings


@pytest.mark.unit
class TestLoadParams:
    """Tests for LoadParams construction and validation."""

    def test_refresh_allows_missing_key(self):
        params = LoadParams.refresh(None, 20)

        assert params.load_type is LoadType.REFRESH
        assert params.key is None
        assert params.load_size == 20
        assert params.placeholders_enabled is True

    def test_prepend_flag(self):
        assert LoadParams.prepend(4, 2).is_prepend is True
        assert LoadParams.append(4, 2).is_prepend is False
        assert LoadParams.refresh(4, 2).is_prepend is False

    @pytest.mark.parametrize("load_size", [0, -1])
    def test_non_positive_load_size_rejected(self, load_size):
        with pytest.raises(ValueError, match="load_size must be positive"):
            LoadParams.refresh(None, load_size)

    def test_append_requires_key(self):
        with pytest.raises(ValueError, match="require a key"):
            LoadParams(LoadType.APPEND, None, 2)

    def test_params_are_frozen(self):
        params = LoadParams.refresh(0, 2)

        with pytest.raises(dataclasses.FrozenInstanceError):
            params.key = 3  # type: ignore[misc]


@pytest.mark.unit
class TestPage:
    """Tests for Page and Invalid results."""

    def test_empty_page(self):
        page = Page.empty()

        assert page.data == []
        assert page.prev_key is None
        assert page.next_key is None
        assert page.items_before == 0
        assert page.items_after == 0

    def test_invalid_is_not_a_page(self):
        assert not isinstance(Invalid(), Page)
        assert Invalid() == Invalid()


@pytest.mark.unit
class TestPagingConfig:
    """Tests for PagingConfig defaults and settings integration."""

    def test_initial_load_size_defaults_to_three_pages(self):
        assert PagingConfig(page_size=10).initial_load_size == 30

    def test_explicit_initial_load_size_kept(self):
        assert PagingConfig(page_size=10, initial_load_size=15).initial_load_size == 15

    def test_non_positive_page_size_rejected(self):
        with pytest.raises(ValueError):
            PagingConfig(page_size=0)

    def test_from_settings_clamps_to_max(self):
        settings = PagingSettings(default_page_size=20, max_page_size=50)

        config = PagingConfig.from_settings(settings, page_size=80)

        assert config.page_size == 50
        assert config.initial_load_size == 150

    def test_from_settings_uses_default_page_size(self):
        settings = PagingSettings(default_page_size=25, enable_placeholders=False)

        config = PagingConfig.from_settings(settings)

        assert config.page_size == 25
        assert config.enable_placeholders is False

    def test_paging_state_defaults(self):
        state = PagingState()

        assert state.pages == []
        assert state.anchor_position is None
        assert state.config.page_size == 20
