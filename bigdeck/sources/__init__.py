from bigdeck.sources.base import CatalogSource, SecondarySource
from bigdeck.sources.catalog import ScryfallCatalog
from bigdeck.sources.secondary import ProxySecondary

__all__ = [
    "CatalogSource",
    "ProxySecondary",
    "ScryfallCatalog",
    "SecondarySource",
]
