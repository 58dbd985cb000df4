"""Catalog-style access to in-memory tables.

Tables created here are registered in the shared ``TableRegistry`` under
``namespace.name``, so readers that only know the registry see the same data.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from partstore._error_messages import table_not_found_error
from partstore.config import DEFAULT_NAMESPACE, Settings
from partstore.errors import TableNotFoundError
from partstore.registry import TableRegistry
from partstore.schemas.types import TableSpec
from partstore.table import PartitionedTable
from partstore.transforms import Transform

logger = logging.getLogger(__name__)


class FallbackTableCatalog:
    def __init__(self, registry: TableRegistry, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.registry = registry
        self.namespace = namespace

    @classmethod
    def from_settings(cls, registry: TableRegistry, settings: Settings) -> FallbackTableCatalog:
        """Catalog whose unqualified identifiers resolve in ``settings.default_namespace``."""
        return cls(registry, namespace=settings.default_namespace)

    def qualify(self, ident: str) -> str:
        """``t`` -> ``<namespace>.t``; already qualified identifiers pass through."""
        return ident if "." in ident else f"{self.namespace}.{ident}"

    def create_table(
        self,
        ident: str,
        spec: TableSpec,
        partitioning: Sequence[Transform] = (),
        properties: Mapping[str, str] | None = None,
    ) -> PartitionedTable:
        name = self.qualify(ident)
        if name in self.registry:
            raise ValueError(f"Table '{name}' already exists")
        return self.registry.create(name, spec.renamed(name), partitioning, properties)

    def load_table(self, ident: str) -> PartitionedTable:
        name = self.qualify(ident)
        if name not in self.registry:
            raise TableNotFoundError(table_not_found_error(name, self.list_tables()))
        return self.registry.get(name)

    def table_exists(self, ident: str) -> bool:
        return self.qualify(ident) in self.registry

    def drop_table(self, ident: str) -> bool:
        name = self.qualify(ident)
        dropped = self.registry.drop(name)
        if dropped:
            logger.info("Dropped table %s", name)
        return dropped

    def list_tables(self, namespace: str | None = None) -> list[str]:
        prefix = f"{namespace or self.namespace}."
        return [name for name in self.registry.list_tables() if name.startswith(prefix)]
