"""
Tests for check-in payload encoding.
"""

import pytest

from app.modules.attendance.encoder import build_checkin_url, format_countdown


class TestBuildCheckinUrl:
    def test_embeds_token_verbatim(self):
        url = build_checkin_url("aB3_x-9Z", "https://portal.example.edu")
        assert url == "https://portal.example.edu/checkin?t=aB3_x-9Z"

    def test_base_with_path(self):
        url = build_checkin_url("tok", "https://example.edu/estudos")
        assert url == "https://example.edu/estudos/checkin?t=tok"

    @pytest.mark.parametrize("token", ["", "a b", "a&b=c", "abc/def", "tok%20"])
    def test_rejects_non_url_safe_tokens(self, token):
        with pytest.raises(ValueError):
            build_checkin_url(token, "https://portal.example.edu")


class TestFormatCountdown:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (0, "0:00"),
            (9, "0:09"),
            (60, "1:00"),
            (615, "10:15"),
            (7210, "120:10"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_countdown(seconds) == expected

    def test_negative_floors_at_zero(self):
        assert format_countdown(-5) == "0:00"
