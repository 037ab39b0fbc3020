"""Unit tests for WAD/RAY fixed-point helpers."""
from __future__ import annotations

import pytest

from saviour.fixed_point import (
    MAX_UINT256,
    RAY,
    WAD,
    FixedPointOverflow,
    add,
    format_wad,
    ray_to_wad,
    rdivide,
    rmultiply,
    subtract,
    to_ray,
    to_wad,
    wad_to_ray,
    wdivide,
    wmultiply,
)


class TestMultiplyDivide:
    def test_wmultiply(self) -> None:
        assert wmultiply(2 * WAD, 3 * WAD) == 6 * WAD

    def test_wmultiply_truncates(self) -> None:
        # 1e-18 * 0.5 rounds down to zero
        assert wmultiply(1, WAD // 2) == 0

    def test_wdivide(self) -> None:
        assert wdivide(WAD, 4 * WAD) == WAD // 4

    def test_rmultiply_wad_by_ray_gives_wad(self) -> None:
        assert rmultiply(110 * WAD, RAY) == 110 * WAD
        assert rmultiply(100 * WAD, to_ray("1.5")) == 150 * WAD

    def test_rdivide_wad_by_ray_gives_wad(self) -> None:
        assert rdivide(10 * WAD, to_ray("0.9")) == 11_111_111_111_111_111_111

    def test_divide_by_zero(self) -> None:
        with pytest.raises(ZeroDivisionError):
            rdivide(WAD, 0)
        with pytest.raises(ZeroDivisionError):
            wdivide(WAD, 0)


class TestOverflow:
    def test_product_overflow_rejected(self) -> None:
        with pytest.raises(FixedPointOverflow):
            rmultiply(MAX_UINT256, 2)

    def test_scaled_dividend_overflow_rejected(self) -> None:
        with pytest.raises(FixedPointOverflow):
            rdivide(MAX_UINT256 // 10, RAY)

    def test_negative_operand_rejected(self) -> None:
        with pytest.raises(FixedPointOverflow):
            wmultiply(-1, WAD)

    def test_subtract_underflow_rejected(self) -> None:
        with pytest.raises(FixedPointOverflow):
            subtract(1, 2)

    def test_add_overflow_rejected(self) -> None:
        with pytest.raises(FixedPointOverflow):
            add(MAX_UINT256, 1)

    def test_largest_valid_product_ok(self) -> None:
        assert wmultiply(MAX_UINT256, 1) == MAX_UINT256 // WAD


class TestScaleConversion:
    def test_wad_to_ray_and_back(self) -> None:
        assert ray_to_wad(wad_to_ray(123 * WAD)) == 123 * WAD

    def test_ray_to_wad_is_lossy(self) -> None:
        assert ray_to_wad(RAY + 999_999_999) == WAD


class TestDecimalParsing:
    def test_to_wad(self) -> None:
        assert to_wad("66.67") == 66_670_000_000_000_000_000
        assert to_wad(1) == WAD

    def test_to_ray(self) -> None:
        assert to_ray("0.9") == 9 * 10**26

    def test_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            to_wad("abc")

    def test_rejects_negative(self) -> None:
        with pytest.raises(ValueError, match="Negative"):
            to_wad("-1")

    def test_rejects_infinity(self) -> None:
        with pytest.raises(ValueError):
            to_wad("Infinity")

    def test_format_wad(self) -> None:
        assert format_wad(11_111_111_111_111_111_111) == "11.111111"
        assert format_wad(WAD, 2) == "1.00"

    def test_long_input_is_not_rounded_up(self) -> None:
        assert to_wad("99999999999.999999999999999999") == 99_999_999_999_999_999_999_999_999_999
        assert to_ray("12345678901.234567890123456789012345678") == (
            12_345_678_901_234_567_890_123_456_789_012_345_678
        )

    def test_digits_beyond_scale_truncate(self) -> None:
        assert to_wad("1.0000000000000000019") == WAD + 1
