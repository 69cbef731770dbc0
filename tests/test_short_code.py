"""
Tests for short code generation and input validation.
"""
import pytest

from linksprint.exceptions import InvalidInputError
from linksprint.services.short_code import (
    ALPHABET,
    generate_short_code,
    validate_custom_code,
    validate_original_url,
)


class TestGenerateShortCode:
    """Test random code generation"""

    def test_default_length_is_six(self):
        assert len(generate_short_code()) == 6

    def test_only_base62_characters(self):
        for _ in range(500):
            code = generate_short_code()
            assert set(code) <= set(ALPHABET)
            assert code.isalnum()

    def test_alphabet_has_62_symbols(self):
        assert len(ALPHABET) == 62
        assert len(set(ALPHABET)) == 62

    def test_custom_length(self):
        assert len(generate_short_code(10)) == 10

    def test_large_sample_is_unique(self):
        """62^6 codes; 5,000 draws colliding is a ~0.02% event"""
        codes = {generate_short_code() for _ in range(5000)}
        assert len(codes) == 5000


class TestValidateCustomCode:
    """Test custom code rules: 3-10 chars of [A-Za-z0-9-]"""

    @pytest.mark.parametrize("code", ["abc", "promo1", "My-Link-10", "a-b", "ABCDEFGHIJ"])
    def test_accepts_valid_codes(self, code):
        assert validate_custom_code(code) == code

    @pytest.mark.parametrize("code", ["ab", "", "abcdefghijk"])
    def test_rejects_bad_length(self, code):
        with pytest.raises(InvalidInputError):
            validate_custom_code(code)

    @pytest.mark.parametrize("code", ["my code", "promo_1", "hey!", "abc\n", "café"])
    def test_rejects_bad_characters(self, code):
        with pytest.raises(InvalidInputError):
            validate_custom_code(code)


class TestValidateOriginalURL:
    """Test absolute URL validation"""

    @pytest.mark.parametrize("url", [
        "https://example.com/a",
        "http://localhost:8080/path?q=1",
        "ftp://files.example.org/pub",
    ])
    def test_accepts_absolute_urls(self, url):
        assert validate_original_url(url) == url

    @pytest.mark.parametrize("url", [
        "not-a-valid-url",
        "example.com/path",
        "/relative/path",
        "https://",
        "mailto:someone@example.com",
        "",
    ])
    def test_rejects_urls_without_scheme_or_host(self, url):
        with pytest.raises(InvalidInputError):
            validate_original_url(url)
