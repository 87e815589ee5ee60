"""Tests for e-mail masking."""

from app.utils.email_masking import mask_email


class TestMaskEmail:
    def test_normal_email(self):
        assert mask_email("john@example.com") == "j***@e***.com"

    def test_single_char_local(self):
        assert mask_email("a@example.com") == "***@e***.com"

    def test_subdomain_collapsed(self):
        assert mask_email("user@mail.example.org") == "u***@m***.org"

    def test_no_tld(self):
        assert mask_email("ab@localhost") == "a***@l***"

    def test_no_at_sign(self):
        assert mask_email("invalid") == "***"

    def test_full_address_never_shown(self):
        result = mask_email("verylongusername@privatecompany.io")
        assert "verylongusername" not in result
        assert "privatecompany" not in result
        assert result.endswith(".io")
