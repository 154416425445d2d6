"""Tests for Accept-Language negotiation and the response floor."""

import pytest

from rentauth.core.utils.locale import negotiate_locale
from rentauth.core.utils.timing import response_floor


class TestNegotiateLocale:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            (None, "en-US"),
            ("", "en-US"),
            ("fr-FR", "fr-FR"),
            ("fr-FR,fr;q=0.9,en;q=0.8", "fr-FR"),
            ("de", "de-DE"),
            ("es-MX,es;q=0.9", "es-CO"),
            ("ja-JP,pt;q=0.5", "pt-BR"),
            ("ja-JP", "en-US"),
            ("*", "en-US"),
        ],
    )
    def test_negotiation(self, header, expected):
        assert negotiate_locale(header) == expected

    def test_weights_order_candidates(self):
        assert negotiate_locale("en-US;q=0.3,de-DE;q=0.8") == "de-DE"

    def test_case_insensitive(self):
        assert negotiate_locale("PT-br") == "pt-BR"

    def test_bad_weight_is_skipped(self):
        assert negotiate_locale("fr-FR;q=abc,de-DE;q=0.1") == "de-DE"


class TestResponseFloor:
    async def test_pads_fast_blocks(self):
        slept: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            slept.append(seconds)

        async with response_floor(0.5, sleep=fake_sleep):
            pass

        assert len(slept) == 1
        assert 0.4 < slept[0] <= 0.5

    async def test_pads_even_when_the_block_raises(self):
        slept: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            slept.append(seconds)

        with pytest.raises(RuntimeError):
            async with response_floor(0.5, sleep=fake_sleep):
                raise RuntimeError("boom")

        assert len(slept) == 1

    async def test_zero_floor_never_sleeps(self):
        slept: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            slept.append(seconds)

        async with response_floor(0, sleep=fake_sleep):
            pass

        assert slept == []
