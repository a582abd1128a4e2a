"""Tests for legal identifier derivation and residency zones."""

import pytest

from lextrust.services.ingestion.identifiers import (
    derive_ecli,
    derive_eli,
    extract_ecli_from_text,
    resolve_identifiers,
    resolve_residency_zone,
)


class TestDeriveEli:
    """Tests for ELI derivation from canonical URLs."""

    def test_eli_path_segment(self):
        """Test that everything after an ``eli`` segment becomes the ELI."""
        url = "https://legilux.public.lu/eli/etat/leg/code/travail/20240101"
        assert derive_eli(url) == "etat/leg/code/travail/20240101"

    def test_legisquebec_uses_last_two_segments(self):
        """Test that LégisQuébec URLs keep their last two path segments."""
        url = "https://www.legisquebec.gouv.qc.ca/fr/document/lc/CCQ-1991"
        assert derive_eli(url) == "legisquebec/lc/CCQ-1991"

    def test_justice_laws_uses_full_path(self):
        """Test that federal Justice Laws URLs use their whole path."""
        url = "https://laws-lois.justice.gc.ca/fra/lois/C-46/"
        assert derive_eli(url) == "fra/lois/C-46"

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.legifrance.gouv.fr/codes/article_lc/LEGIARTI000032041571",
            "not a url",
            "",
        ],
    )
    def test_unrecognised_urls(self, url):
        """Test that unknown shapes and garbage yield None."""
        assert derive_eli(url) is None


class TestDeriveEcli:
    """Tests for ECLI derivation from canonical URLs."""

    def test_ecli_embedded_in_url(self):
        """Test that an ECLI token in the URL is used, uppercased."""
        url = "https://juportal.be/content/ecli:be:cass:2023:arr.20230112.1f"
        assert derive_ecli(url) == "ECLI:BE:CASS:2023:ARR.20230112.1F"

    def test_belgian_cassation_id_path(self):
        """Test that Belgian cassation ``/id/`` URLs map to ECLI:BE:CSC."""
        url = "https://www.courdecassation.be/id/c.20.0123.f"
        assert derive_ecli(url) == "ECLI:BE:CSC:C.20.0123.F"

    def test_french_cassation_decision_slug(self):
        """Test that French cassation decisions strip punctuation from the slug."""
        url = "https://www.courdecassation.fr/decision/6079a8a19ba5988459c4d6e1"
        assert derive_ecli(url) == "ECLI:FR:CCASS:6079A8A19BA5988459C4D6E1"

    def test_french_cassation_is_case_insensitive(self):
        """Test that host and path matching ignore case."""
        url = "https://WWW.COURDECASSATION.FR/Decision/abc-123"
        assert derive_ecli(url) == "ECLI:FR:CCASS:ABC123"

    def test_canlii_ca_path(self):
        """Test that canlii.ca paths are flattened into the ECLI."""
        assert derive_ecli("https://canlii.ca/t/jx1b2") == "ECLI:CA:TJX1B2"

    def test_unrecognised_url(self):
        """Test that a statute URL has no ECLI."""
        assert derive_ecli("https://www.fedlex.admin.ch/eli/cc/24/233_245_233/fr") is None


class TestTextAndResolution:
    """Tests for text scanning and identifier precedence."""

    def test_extract_ecli_from_text(self):
        """Test that the first ECLI in free text is returned uppercased."""
        text = "Vu l'arrêt ecli:fr:ccass:2021:c100123 rendu par la Cour."
        assert extract_ecli_from_text(text) == "ECLI:FR:CCASS:2021:C100123"

    def test_extract_ecli_without_match(self):
        """Test that text without an ECLI yields None."""
        assert extract_ecli_from_text("Aucune référence.") is None
        assert extract_ecli_from_text(None) is None

    def test_explicit_identifiers_win(self):
        """Test that adapter-provided identifiers take precedence."""
        eli, ecli = resolve_identifiers(
            "https://www.courdecassation.fr/decision/abc",
            "ECLI:FR:CCASS:2020:X1",
            explicit_eli="fr/loi/2020/1",
            explicit_ecli="ECLI:FR:CCASS:2022:EXPLICIT",
        )
        assert eli == "fr/loi/2020/1"
        assert ecli == "ECLI:FR:CCASS:2022:EXPLICIT"

    def test_text_fallback_for_ecli(self):
        """Test that the text is scanned when the URL yields no ECLI."""
        eli, ecli = resolve_identifiers(
            "https://www.legifrance.gouv.fr/juri/id/JURITEXT000047",
            "Décision ECLI:FR:CCASS:2023:SO00123 du 12 janvier 2023",
        )
        assert eli is None
        assert ecli == "ECLI:FR:CCASS:2023:SO00123"


class TestResidencyZone:
    """Tests for residency zone resolution."""

    @pytest.mark.parametrize(
        "code,zone",
        [("FR", "eu"), ("ch", "ch"), ("CA-QC", "ca"), ("TN", "maghreb"), ("RW", "rw"), ("OHADA", "ohada")],
    )
    def test_known_jurisdictions(self, code, zone):
        """Test the jurisdiction to zone table."""
        assert resolve_residency_zone(code) == zone

    def test_unknown_jurisdiction_defaults_to_ohada(self):
        """Test that unknown jurisdictions fall back to the default zone."""
        assert resolve_residency_zone("OAPI") == "ohada"

    def test_override_wins_and_is_lowercased(self):
        """Test that an explicit override takes precedence."""
        assert resolve_residency_zone("FR", " EU-West ") == "eu-west"
