"""Prompt normalization and the 31-multiplier string hash."""

import pytest

from promptvid.animation.hashing import (
    DEFAULT_PROMPT_TOKEN,
    hash_prompt,
    normalize_prompt,
    prompt_seed,
    to_int32,
)


class TestToInt32:
    def test_in_range_values_unchanged(self):
        assert to_int32(0) == 0
        assert to_int32(2**31 - 1) == 2**31 - 1
        assert to_int32(-(2**31)) == -(2**31)

    def test_wraps_overflow(self):
        assert to_int32(2**31) == -(2**31)
        assert to_int32(2**32 + 5) == 5
        assert to_int32(-(2**31) - 1) == 2**31 - 1


class TestHashPrompt:
    def test_empty_string_is_zero(self):
        assert hash_prompt("") == 0

    def test_single_char_is_code_point(self):
        assert hash_prompt("a") == 97

    def test_known_values(self):
        # 97*31 + 98
        assert hash_prompt("ab") == 3105
        # "sora": ((115*31 + 111)*31 + 114)*31 + 97
        assert hash_prompt("sora") == 3536267

    def test_wraps_then_takes_absolute_value(self):
        text = "a long enough prompt to overflow thirty two bits many times over"
        expected = 0
        for ch in text:
            expected = to_int32(expected * 31 + ord(ch))
        assert hash_prompt(text) == abs(expected)
        assert 0 <= hash_prompt(text) <= 2**31

    def test_astral_chars_hash_as_surrogate_pairs(self):
        # U+1F600 -> D83D DE00
        expected = to_int32(0xD83D * 31 + 0xDE00)
        assert hash_prompt("\U0001F600") == abs(expected)

    def test_deterministic(self):
        assert hash_prompt("koi fish aurora") == hash_prompt("koi fish aurora")

    def test_small_edits_change_the_digest(self):
        prompts = [
            "neon city",
            "neon citz",
            "neon city ",
            "Neon city",
            "city neon",
            "neon cities",
            "aurora sky",
            "aurora skies",
        ]
        digests = {hash_prompt(p) for p in prompts}
        assert len(digests) == len(prompts)

    def test_control_characters_are_fine(self):
        assert hash_prompt("\x00\x01\n\t") >= 0


class TestNormalizePrompt:
    def test_trims_and_lowercases(self):
        assert normalize_prompt("  Neon CITY \n") == "neon city"

    @pytest.mark.parametrize("blank", ["", "   ", "\t\n", None])
    def test_blank_maps_to_default_token(self, blank):
        assert normalize_prompt(blank) == DEFAULT_PROMPT_TOKEN

    def test_idempotent(self):
        once = normalize_prompt("  Dreamlike Neon ")
        assert normalize_prompt(once) == once

    def test_prompt_seed_uses_normalized_text(self):
        assert prompt_seed("  SORA ") == hash_prompt("sora")
        assert prompt_seed("") == hash_prompt(DEFAULT_PROMPT_TOKEN)

    @pytest.mark.parametrize("ch", ["\x1c", "\x1d", "\x1e", "\x1f", "\x85"])
    def test_keeps_separator_controls(self, ch):
        assert normalize_prompt(ch) == ch
        assert prompt_seed(ch) == ord(ch)

    @pytest.mark.parametrize("ch", ["\ufeff", "\xa0", "\u2028", "\u3000", "\v"])
    def test_trims_unicode_whitespace(self, ch):
        assert normalize_prompt(f"{ch}koi{ch}") == "koi"
        assert prompt_seed(f"{ch}koi") == hash_prompt("koi")
