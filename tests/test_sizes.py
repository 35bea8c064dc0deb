"""Size string parsing tests."""

import pytest

from logtee.sizes import DEFAULT_SIZE, format_size, parse_size


class TestParseSize:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("512", 512),
            ("100b", 100),
            ("4k", 4096),
            ("10m", 10 * 1024 * 1024),
            ("10M", 10 * 1024 * 1024),
            ("2MiB", 2 * 1024 * 1024),
            ("1.5k", 1536),
            ("1g", 1024**3),
            (" 3 kb ", 3072),
        ],
    )
    def test_valid(self, text: str, expected: int) -> None:
        assert parse_size(text) == expected

    def test_invalid_falls_back(self, caplog) -> None:
        assert parse_size("ten megs") == DEFAULT_SIZE
        assert "Invalid size" in caplog.text

    @pytest.mark.parametrize("text", ["10ib", "10kk", "k", "10 x"])
    def test_malformed_unit_falls_back(self, text: str) -> None:
        assert parse_size(text, default=99) == 99

    def test_zero_falls_back(self) -> None:
        assert parse_size("0k", default=77) == 77

    def test_custom_default(self) -> None:
        assert parse_size("", default=1234) == 1234


class TestFormatSize:
    def test_bytes(self) -> None:
        assert format_size(512) == "512 B"

    def test_mebibytes(self) -> None:
        assert format_size(10 * 1024 * 1024) == "10.0 MiB"
