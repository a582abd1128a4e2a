"""Registered jurisdiction adapters."""

import asyncio
from typing import Dict, List, Optional, Sequence, Type

from lextrust.schemas.ingestion import NormalizedDocument
from lextrust.services.ingestion.adapters import catalogue, sources
from lextrust.services.ingestion.adapters.base import BaseAdapter
from lextrust.services.ingestion.adapters.feeds import FeedClient
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


class AdapterRegistry:
    """Central registry for all adapters, in run order."""

    _adapters: Dict[str, Type[BaseAdapter]] = {}

    @classmethod
    def register(cls, adapter_cls: Type[BaseAdapter]) -> Type[BaseAdapter]:
        """Decorator to register an adapter class under its ``adapter_id``."""
        cls._adapters[adapter_cls.adapter_id] = adapter_cls
        return adapter_cls

    @classmethod
    def get_all_adapters(cls) -> Dict[str, Type[BaseAdapter]]:
        return cls._adapters


@AdapterRegistry.register
class OhadaUniformActsAdapter(BaseAdapter):
    adapter_id = "ohada-uniform-acts"
    description = "OHADA Uniform Acts baseline snapshot"

    async def collect(self) -> Sequence[NormalizedDocument]:
        remote_acts, ccja = await asyncio.gather(
            sources.fetch_ohada_documents(self.feeds),
            sources.fetch_ccja(self.feeds, limit=12),
        )
        return [*remote_acts, *ccja, *catalogue.ohada_uniform_acts()]


@AdapterRegistry.register
class EurLexAdapter(BaseAdapter):
    adapter_id = "eu-eur-lex-core"
    description = "EUR-Lex overlays for EU member jurisdictions"

    async def collect(self) -> Sequence[NormalizedDocument]:
        return catalogue.eu_regulations()


@AdapterRegistry.register
class LegifranceAdapter(BaseAdapter):
    adapter_id = "fr-legifrance-core"
    description = "France statutes and jurisprudence"

    async def collect(self) -> Sequence[NormalizedDocument]:
        feed_docs = await sources.fetch_legifrance_jorf(self.feeds, limit=8)
        return [*feed_docs, *catalogue.france_core()]


@AdapterRegistry.register
class JustelAdapter(BaseAdapter):
    adapter_id = "be-justel-core"
    description = "Belgium codes and cassation decisions"

    async def collect(self) -> Sequence[NormalizedDocument]:
        feed_docs = await sources.fetch_justel(self.feeds, limit=10)
        return [*feed_docs, *catalogue.belgium_core()]


@AdapterRegistry.register
class LegiluxAdapter(BaseAdapter):
    adapter_id = "lu-legilux-core"
    description = "Luxembourg consolidated labour code"

    async def collect(self) -> Sequence[NormalizedDocument]:
        feed_docs = await sources.fetch_legilux(self.feeds, limit=10)
        return [*feed_docs, *catalogue.luxembourg_core()]


@AdapterRegistry.register
class LegimonacoAdapter(BaseAdapter):
    adapter_id = "mc-legimonaco-core"
    description = "Monaco civil code extracts"

    async def collect(self) -> Sequence[NormalizedDocument]:
        return catalogue.monaco_core()


@AdapterRegistry.register
class FedlexAdapter(BaseAdapter):
    adapter_id = "ch-fedlex-core"
    description = "Switzerland federal code and TF jurisprudence"

    async def collect(self) -> Sequence[NormalizedDocument]:
        fedlex, tribunal = await asyncio.gather(
            sources.fetch_fedlex(self.feeds, limit=10),
            sources.fetch_tribunal_federal(self.feeds, limit=10),
        )
        return [*fedlex, *tribunal, *catalogue.switzerland_core()]


@AdapterRegistry.register
class QuebecAuthoritiesAdapter(BaseAdapter):
    adapter_id = "qc-authorities-core"
    description = "Québec statutes and CanLII jurisprudence"

    async def collect(self) -> Sequence[NormalizedDocument]:
        legisquebec, canlii, justice, supreme = await asyncio.gather(
            sources.fetch_legisquebec(self.feeds, limit=10),
            sources.fetch_canlii(self.feeds, limit=6),
            sources.fetch_justice_laws(self.feeds, limit=6),
            sources.fetch_supreme_court(self.feeds, limit=6),
        )
        return [*legisquebec, *canlii, *justice, *supreme, *catalogue.quebec_core()]


@AdapterRegistry.register
class MaghrebGazettesAdapter(BaseAdapter):
    adapter_id = "maghreb-gazettes"
    description = "Maghreb gazettes with language caveats"

    async def collect(self) -> Sequence[NormalizedDocument]:
        morocco, tunisia, algeria = await asyncio.gather(
            sources.fetch_gazettes_africa(
                self.feeds, "mar", "MA", "fr",
                "Traduction française; vérifier l’édition arabe pour force obligatoire.",
            ),
            sources.fetch_gazettes_africa(
                self.feeds, "tun", "TN", "ar",
                "Version arabe juridiquement contraignante; version française informative.",
            ),
            sources.fetch_gazettes_africa(
                self.feeds, "dza", "DZ", "ar",
                "Seule la version arabe fait foi; la traduction française est fournie à titre informatif.",
            ),
        )
        return [*morocco, *tunisia, *algeria, *catalogue.maghreb_gazettes()]


@AdapterRegistry.register
class RwandaGazetteAdapter(BaseAdapter):
    adapter_id = "rw-official-gazette"
    description = "Rwanda Official Gazette and judiciary snapshots"

    async def collect(self) -> Sequence[NormalizedDocument]:
        documents = await sources.fetch_rwanda(self.feeds)
        if not documents:
            LOGGER.warning("No Rwanda documents retrieved")
        return documents


def list_adapters(feeds: Optional[FeedClient] = None) -> List[BaseAdapter]:
    """Instances of every registered adapter, sharing one feed client."""
    shared = feeds or FeedClient()
    return [adapter_cls(shared) for adapter_cls in AdapterRegistry.get_all_adapters().values()]


def get_adapter(adapter_id: str, feeds: Optional[FeedClient] = None) -> Optional[BaseAdapter]:
    adapter_cls = AdapterRegistry.get_all_adapters().get(adapter_id)
    return adapter_cls(feeds) if adapter_cls else None
