"""Legal identifier derivation and residency zone resolution.

Each deriver is a table of URL-shape strategies tried in order; the first
strategy that recognises the URL wins. Unrecognised inputs yield ``None``.
Derived identifiers are best effort and not guaranteed unique.
"""

import re
from typing import Callable, List, Optional, Tuple
from urllib.parse import ParseResult, urlparse

from lextrust.core.config import settings

RESIDENCY_ZONE_MAP = {
    "FR": "eu",
    "BE": "eu",
    "LU": "eu",
    "EU": "eu",
    "MC": "eu",
    "CH": "ch",
    "CA-QC": "ca",
    "CA": "ca",
    "OHADA": "ohada",
    "MA": "maghreb",
    "TN": "maghreb",
    "DZ": "maghreb",
    "RW": "rw",
}

ECLI_URL_REGEX = re.compile(r"ECLI:([A-Z0-9:_.-]+)", re.IGNORECASE)
ECLI_TEXT_REGEX = re.compile(r"ECLI:[A-Z]{2}:[A-Z0-9]+:[A-Z0-9_.:-]+", re.IGNORECASE)


def resolve_residency_zone(jurisdiction_code: str, override: Optional[str] = None) -> str:
    """Compliance zone for a jurisdiction.

    Args:
        jurisdiction_code: Jurisdiction such as ``FR`` or ``CA-QC``.
        override: Explicit zone from the adapter; wins when set.

    Returns:
        Lowercase zone name, ``ohada`` by default.
    """
    if override:
        return override.strip().lower()
    zone = RESIDENCY_ZONE_MAP.get((jurisdiction_code or "").upper())
    return (zone or settings.ingestion.default_residency_zone).lower()


def _parse(url: str) -> Optional[ParseResult]:
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    return parsed


def _path_parts(parsed: ParseResult) -> List[str]:
    return [segment for segment in parsed.path.split("/") if segment]


# -- ELI ---------------------------------------------------------------------

def _eli_from_segment(parsed: ParseResult) -> Optional[str]:
    parts = _path_parts(parsed)
    if "eli" in parts:
        index = parts.index("eli")
        if index + 1 < len(parts):
            return "/".join(parts[index + 1:])
    return None


def _eli_legisquebec(parsed: ParseResult) -> Optional[str]:
    parts = _path_parts(parsed)
    if "legisquebec.gouv.qc.ca" in parsed.hostname and len(parts) >= 2:
        return f"legisquebec/{'/'.join(parts[-2:])}"
    return None


def _eli_justice_laws(parsed: ParseResult) -> Optional[str]:
    if "laws-lois.justice.gc.ca" in parsed.hostname:
        return "/".join(_path_parts(parsed)) or None
    return None


ELI_STRATEGIES: Tuple[Callable[[ParseResult], Optional[str]], ...] = (
    _eli_from_segment,
    _eli_legisquebec,
    _eli_justice_laws,
)


def derive_eli(url: str) -> Optional[str]:
    """European Legislation Identifier from a canonical URL."""
    parsed = _parse(url)
    if parsed is None:
        return None
    for strategy in ELI_STRATEGIES:
        eli = strategy(parsed)
        if eli:
            return eli
    return None


# -- ECLI --------------------------------------------------------------------

def _ecli_belgian_cassation(parsed: ParseResult) -> Optional[str]:
    host = parsed.hostname.upper()
    path = parsed.path
    upper_path = path.upper()
    if "COURDECASSATION.BE" in host and "/ID/" in upper_path:
        token = path[upper_path.index("/ID/") + 4:]
        return f"ECLI:BE:CSC:{token.upper()}" if token else None
    return None


def _ecli_french_cassation(parsed: ParseResult) -> Optional[str]:
    host = parsed.hostname.upper()
    if "COURDECASSATION.FR" in host and "/DECISION/" in parsed.path.upper():
        parts = _path_parts(parsed)
        if parts:
            slug = re.sub(r"[^A-Z0-9]", "", parts[-1], flags=re.IGNORECASE)
            return f"ECLI:FR:CCASS:{slug.upper()}"
    return None


def _ecli_canlii(parsed: ParseResult) -> Optional[str]:
    if "CANLII.CA" in parsed.hostname.upper():
        canonical = parsed.path.replace("/", "").upper()
        return f"ECLI:CA:{canonical}" if canonical else None
    return None


ECLI_STRATEGIES: Tuple[Callable[[ParseResult], Optional[str]], ...] = (
    _ecli_belgian_cassation,
    _ecli_french_cassation,
    _ecli_canlii,
)


def derive_ecli(url: str) -> Optional[str]:
    """European Case Law Identifier from a canonical URL."""
    match = ECLI_URL_REGEX.search(url or "")
    if match:
        return f"ECLI:{match.group(1).upper()}"
    parsed = _parse(url)
    if parsed is None:
        return None
    for strategy in ECLI_STRATEGIES:
        ecli = strategy(parsed)
        if ecli:
            return ecli
    return None


def extract_ecli_from_text(text: Optional[str]) -> Optional[str]:
    """First ECLI token found in free text."""
    if not text:
        return None
    match = ECLI_TEXT_REGEX.search(text)
    return match.group(0).rstrip(".").upper() if match else None


def resolve_identifiers(
    canonical_url: str,
    text: Optional[str],
    explicit_eli: Optional[str] = None,
    explicit_ecli: Optional[str] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """ELI and ECLI for a candidate: explicit, then URL shape, then text scan."""
    eli = explicit_eli or derive_eli(canonical_url)
    ecli = explicit_ecli or derive_ecli(canonical_url) or extract_ecli_from_text(text)
    return eli, ecli
