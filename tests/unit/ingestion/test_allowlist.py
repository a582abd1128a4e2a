"""Tests for the official domain allowlist."""

import pytest

from lextrust.services.ingestion.allowlist import DomainAllowlist, extract_host


class TestDomainAllowlist:
    """Tests for host matching."""

    @pytest.fixture
    def allowlist(self) -> DomainAllowlist:
        return DomainAllowlist.official()

    @pytest.mark.parametrize(
        "host",
        ["legifrance.gouv.fr", "www.legifrance.gouv.fr", "WWW.FEDLEX.ADMIN.CH", "www.ejustice.just.fgov.be"],
    )
    def test_exact_and_subdomains_are_allowed(self, allowlist, host):
        """Test that a registry domain and its subdomains are trusted."""
        assert allowlist.is_allowlisted(host)

    @pytest.mark.parametrize(
        "host",
        ["legifrance.gouv.fr.evil.com", "notlegifrance.gouv.fr", "api.gazettes.africa", "", None],
    )
    def test_substring_matches_are_rejected(self, allowlist, host):
        """Test that containing a registry domain is not enough."""
        assert not allowlist.is_allowlisted(host)

    def test_extra_hosts_are_merged(self):
        """Test that database hosts extend the static registry."""
        allowlist = DomainAllowlist.official(["Gazettes.Africa"])
        assert "api.gazettes.africa" in allowlist
        assert len(allowlist) > len(DomainAllowlist.official())

    def test_contains_ignores_non_strings(self, allowlist):
        """Test the ``in`` operator with a non-string value."""
        assert 42 not in allowlist


class TestExtractHost:
    """Tests for host extraction."""

    def test_lowercases_host(self):
        """Test that the host is lowercased and the port dropped."""
        assert extract_host("https://WWW.Legifrance.gouv.fr:443/jorf") == "www.legifrance.gouv.fr"

    @pytest.mark.parametrize("url", ["", "ftp://legifrance.gouv.fr/x", "legifrance.gouv.fr/x", "https://"])
    def test_invalid_urls(self, url):
        """Test that non-http URLs and missing hosts yield None."""
        assert extract_host(url) is None
