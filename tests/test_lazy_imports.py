"""Tests for the lazy top-level exports in wren/__init__.py."""

import pytest

import wren


class TestLazyImports:
    def test_all_matches_lazy_table(self) -> None:
        assert sorted(wren.__all__) == sorted(wren._LAZY_IMPORTS)

    @pytest.mark.parametrize("name", wren.__all__)
    def test_every_export_resolves(self, name: str) -> None:
        assert getattr(wren, name) is not None

    def test_unknown_name(self) -> None:
        with pytest.raises(AttributeError, match="no attribute"):
            wren.NotAThing  # noqa: B018

    def test_version(self) -> None:
        assert wren.__version__ == "0.1.0"
