"""Base classes for package introspection backends."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import PackageSymbols


class PackageIntrospector(ABC):
    """Contract for backends that read the declarations of a package directory."""

    @abstractmethod
    def load(self, directory: str) -> Optional[PackageSymbols]:
        """Return the package's symbols, or None when `directory` is not exactly one package."""
