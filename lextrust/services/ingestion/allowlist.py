"""Official domain allowlist.

A host is trusted when it equals an allowlisted domain or is a subdomain
of one. Containing an allowlisted domain as a mere substring is not enough.
"""

from typing import Dict, FrozenSet, Iterable, Optional, Tuple
from urllib.parse import urlparse

OFFICIAL_DOMAIN_REGISTRY: Dict[str, Tuple[str, ...]] = {
    "legifrance.gouv.fr": ("FR",),
    "courdecassation.fr": ("FR",),
    "conseil-etat.fr": ("FR",),
    "justel.fgov.be": ("BE",),
    "moniteur.be": ("BE",),
    "ejustice.fgov.be": ("BE",),
    "ejustice.just.fgov.be": ("BE",),
    "courdecassation.be": ("BE",),
    "legilux.public.lu": ("LU",),
    "legimonaco.mc": ("MC",),
    "fedlex.admin.ch": ("CH",),
    "bger.ch": ("CH",),
    "legisquebec.gouv.qc.ca": ("CA-QC",),
    "canlii.org": ("CA-QC",),
    "canlii.ca": ("CA-QC",),
    "laws-lois.justice.gc.ca": ("CA-QC", "CA"),
    "scc-csc.ca": ("CA",),
    "scc-csc.lexum.com": ("CA",),
    "ohada.org": ("OHADA",),
    "sgg.gov.ma": ("MA",),
    "iort.gov.tn": ("TN",),
    "joradp.dz": ("DZ",),
    "eur-lex.europa.eu": ("EU",),
    "oapi.int": ("OAPI",),
    "cima-afrique.org": ("CIMA",),
    "amategeko.gov.rw": ("RW",),
    "minijust.gov.rw": ("RW",),
}


def extract_host(url: str) -> Optional[str]:
    """Lowercased hostname of an absolute http(s) URL, or None if unparsable."""
    if not url:
        return None
    try:
        parsed = urlparse(url.strip())
        host = parsed.hostname
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not host:
        return None
    return host.lower()


class DomainAllowlist:
    """Set of trusted hosts with exact or suffix matching."""

    def __init__(self, domains: Iterable[str]):
        self._domains: FrozenSet[str] = frozenset(
            domain.strip().lower().lstrip(".") for domain in domains if domain and domain.strip()
        )

    @classmethod
    def official(cls, extra: Iterable[str] = ()) -> "DomainAllowlist":
        """Registry domains plus any active hosts from authority_domains."""
        return cls([*OFFICIAL_DOMAIN_REGISTRY.keys(), *extra])

    def __contains__(self, host: object) -> bool:
        return isinstance(host, str) and self.is_allowlisted(host)

    def __len__(self) -> int:
        return len(self._domains)

    def is_allowlisted(self, host: Optional[str]) -> bool:
        if not host:
            return False
        normalized = host.lower()
        if normalized in self._domains:
            return True
        return any(normalized.endswith(f".{allowed}") for allowed in self._domains)
