"""Tests for transformation serialization."""

import pytest

from mediavault.media.transformations import (
    chain_to_string,
    component_to_string,
    eager_to_string,
)


class TestComponentToString:
    def test_single_parameter(self):
        assert component_to_string({"quality": "auto:good"}) == "q_auto:good"

    def test_parameters_sorted(self):
        result = component_to_string({"width": 400, "height": 225, "crop": "fill"})
        assert result == "c_fill,h_225,w_400"

    def test_format_and_none_skipped(self):
        assert component_to_string({"format": "mp4", "quality": None}) == ""

    def test_unknown_parameter(self):
        with pytest.raises(ValueError, match="Unknown transformation parameter: colour"):
            component_to_string({"colour": "red"})


class TestChainToString:
    def test_components_joined_with_slash(self):
        chain = [{"quality": "auto:low"}, {"fetch_format": "auto"}]
        assert chain_to_string(chain) == "q_auto:low/f_auto"

    def test_empty_components_dropped(self):
        assert chain_to_string([{}, {"fetch_format": "auto"}]) == "f_auto"


class TestEagerToString:
    def test_format_becomes_suffix(self):
        eager = [
            {"format": "mp4", "quality": "auto:low", "bit_rate": "1000k"},
            {"format": "webm", "quality": "auto:low"},
        ]
        assert eager_to_string(eager) == "br_1000k,q_auto:low/mp4|q_auto:low/webm"

    def test_format_only_entry(self):
        assert eager_to_string([{"format": "jpg"}]) == "jpg"
