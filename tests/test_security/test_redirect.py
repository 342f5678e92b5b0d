"""Tests for redirectguard.security.redirect module."""

import pytest

from redirectguard.errors import MalformedDestination
from redirectguard.security.redirect import (
    ParsedDestination,
    external_is_local,
    has_control_characters,
    is_external,
    is_relative_reference,
    parse_destination,
    strip_dangerous_protocols,
)

BASE = "http://example.com/site"


class TestStripDangerousProtocols:
    def test_keeps_allowed_protocols(self):
        assert strip_dangerous_protocols("http://example.com") == "http://example.com"
        assert strip_dangerous_protocols("mailto:a@example.com") == "mailto:a@example.com"

    def test_strips_unknown_protocols(self):
        assert strip_dangerous_protocols("javascript:alert(0)") == "alert(0)"
        assert strip_dangerous_protocols("example:com") == "com"

    def test_strips_repeatedly(self):
        assert strip_dangerous_protocols("javascript:JavaScript:x") == "x"

    def test_colon_after_slash_is_not_a_protocol(self):
        assert strip_dangerous_protocols("a/b:c") == "a/b:c"

    def test_custom_allowed_list(self):
        assert strip_dangerous_protocols("ftp://host", allowed_protocols=["http"]) == "//host"


class TestIsExternal:
    def test_absolute_urls_are_external(self):
        assert is_external("http://example.com") is True
        assert is_external("https://other-example.com/path") is True

    def test_scheme_relative_urls_are_external(self):
        assert is_external("//example.com") is True
        assert is_external("//example:com") is True

    def test_leading_control_character_is_external(self):
        assert is_external("\x00/evil") is True

    @pytest.mark.parametrize(
        "path",
        ["test", "example.com", "example:com", "javascript:alert(0)", "/test", "node/1?a=b:c", ""],
    )
    def test_internal_paths_are_not_external(self, path):
        assert is_external(path) is False


class TestParseDestination:
    def test_plain_path(self):
        assert parse_destination("test") == ParsedDestination(path="test")

    def test_query_and_fragment(self):
        parsed = parse_destination("node/1?page=2&sort=#top")
        assert parsed.path == "node/1"
        assert parsed.query == {"page": ["2"], "sort": [""]}
        assert parsed.fragment == "top"

    def test_repeated_keys_keep_all_values(self):
        assert parse_destination("node?a=1&a=2").query == {"a": ["1", "2"]}


class TestExternalIsLocal:
    def test_url_below_base_path_is_local(self):
        assert external_is_local("http://example.com/site/test", BASE) is True
        assert external_is_local("http://example.com/site/", BASE) is True
        assert external_is_local("http://example.com/site", BASE) is True

    def test_url_outside_base_path_is_not_local(self):
        assert external_is_local("http://example.com/test", BASE) is False
        assert external_is_local("http://example.com/sitefoo", BASE) is False
        assert external_is_local("http://example.com", BASE) is False

    def test_host_comparison_ignores_case(self):
        assert external_is_local("http://EXAMPLE.com/Site/x", BASE) is True

    def test_other_host_is_not_local(self):
        assert external_is_local("http://example.ca/site", BASE) is False
        assert external_is_local("http://other-example.com", BASE) is False

    def test_userinfo_does_not_fool_host_check(self):
        assert external_is_local("http://example.com@evil.com/site", BASE) is False

    def test_backslashes_are_normalized(self):
        assert external_is_local("http:\\\\evil.com\\site", BASE) is False

    def test_leading_control_character_is_not_local(self):
        assert external_is_local("\x01http://example.com/site", BASE) is False

    def test_port_must_match(self):
        assert external_is_local("http://example.com:8080/site", BASE) is False
        assert external_is_local("http://example.com:80/site", BASE) is True

    def test_root_base_accepts_any_path_on_host(self):
        assert external_is_local("http://example.com", "http://example.com") is True
        assert external_is_local("http://example.com/x", "http://example.com/") is True

    def test_scheme_is_ignored_by_default(self):
        assert external_is_local("https://example.com/site/x", BASE) is True

    def test_scheme_enforced_when_asked(self):
        assert (
            external_is_local("https://example.com/site/x", BASE, enforce_scheme=True)
            is False
        )
        assert (
            external_is_local("http://example.com/site/x", BASE, enforce_scheme=True)
            is True
        )

    def test_bad_port_is_malformed(self):
        with pytest.raises(MalformedDestination):
            external_is_local("//example:com", BASE)

    def test_bad_ipv6_is_malformed(self):
        with pytest.raises(MalformedDestination):
            external_is_local("http://[::1/site", BASE)

    def test_path_without_host_is_malformed(self):
        with pytest.raises(MalformedDestination):
            external_is_local("/site/test", BASE)


class TestIsRelativeReference:
    def test_paths_are_relative(self):
        assert is_relative_reference("/dashboard") is True
        assert is_relative_reference("login?next=/") is True

    def test_absolute_and_scheme_relative_are_not(self):
        assert is_relative_reference("http://example.com") is False
        assert is_relative_reference("//evil.com") is False
        assert is_relative_reference("/\\evil.com") is False

    def test_schemes_are_not_relative(self):
        assert is_relative_reference("javascript:alert(0)") is False

    def test_empty_is_not_relative(self):
        assert is_relative_reference("") is False

    def test_control_characters_anywhere_are_not_relative(self):
        assert is_relative_reference("/x\r\nSet-Cookie: a=1") is False
        assert is_relative_reference("/x\ty") is False


class TestHasControlCharacters:
    @pytest.mark.parametrize("url", ["/x\r\ny", "http://a/\x00", "/a\x7f", "\tx"])
    def test_detects_control_characters(self, url):
        assert has_control_characters(url) is True

    @pytest.mark.parametrize("url", ["/caf€", "http://example.com/a%0D%0A", ""])
    def test_printable_urls_are_clean(self, url):
        assert has_control_characters(url) is False
