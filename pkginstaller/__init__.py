from importlib import metadata

from .catalog import CatalogEntry, PackageCatalog
from .cli import main
from .suggestions.package_suggester import PackageSuggester, SuggestionResult

try:
    __version__ = metadata.version("package-installer")
except metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "__version__",
    "main",
    "CatalogEntry",
    "PackageCatalog",
    "PackageSuggester",
    "SuggestionResult",
]
