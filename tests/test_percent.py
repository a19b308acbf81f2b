"""Tests for fixed-point basis-point arithmetic."""

from __future__ import annotations

import pytest

from rebalancer.engine.percent import (
    BASIS_POINTS,
    abs_diff,
    apply_bp,
    bp_to_pct,
    safe_floor_div,
    share_bp,
    validate_bp,
)
from rebalancer.errors import InvalidAllocation


class TestValidateBp:
    @pytest.mark.parametrize("value", [0, 1, 5000, 9999, 10_000])
    def test_valid(self, value):
        assert validate_bp(value) == value

    @pytest.mark.parametrize("value", [10_001, 12_000, -1])
    def test_invalid(self, value):
        with pytest.raises(InvalidAllocation):
            validate_bp(value)

    def test_message_names_field(self):
        with pytest.raises(InvalidAllocation, match="rebalance_threshold"):
            validate_bp(20_000, name="rebalance_threshold")

    def test_error_code(self):
        with pytest.raises(InvalidAllocation) as exc:
            validate_bp(10_001)
        assert exc.value.code == 102


class TestShareBp:
    def test_floor(self):
        # 500000 / 801000 = 0.62421...
        assert share_bp(500_000, 801_000) == 6242
        assert share_bp(300_000, 801_000) == 3745
        assert share_bp(1_000, 801_000) == 12

    def test_whole(self):
        assert share_bp(42, 42) == BASIS_POINTS

    def test_zero_whole_is_zero(self):
        assert share_bp(100, 0) == 0

    def test_zero_part(self):
        assert share_bp(0, 100) == 0


class TestApplyBp:
    def test_half(self):
        assert apply_bp(801_000, 5000) == 400_500

    def test_truncates(self):
        assert apply_bp(3, 5000) == 1

    def test_full(self):
        assert apply_bp(123, BASIS_POINTS) == 123


class TestHelpers:
    def test_abs_diff_symmetric(self):
        assert abs_diff(6242, 5000) == 1242
        assert abs_diff(5000, 6242) == 1242
        assert abs_diff(7, 7) == 0

    def test_safe_floor_div(self):
        assert safe_floor_div(400_500, 50_000) == 8
        assert safe_floor_div(10, 0) == 0

    def test_bp_to_pct(self):
        assert bp_to_pct(6242) == pytest.approx(62.42)
        assert bp_to_pct(10_000) == 100.0
