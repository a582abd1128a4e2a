from lextrust.services.ingestion.adapters.base import BaseAdapter, StaticAdapter
from lextrust.services.ingestion.adapters.registry import AdapterRegistry, get_adapter, list_adapters

__all__ = ["AdapterRegistry", "BaseAdapter", "StaticAdapter", "get_adapter", "list_adapters"]
