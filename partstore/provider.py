"""Option-driven table provider backed by a ``TableRegistry``."""

from __future__ import annotations

from collections.abc import Mapping

from partstore.config import ProviderDefaults
from partstore.registry import TableRegistry
from partstore.table import PartitionedTable


class InMemoryProvider:
    """Resolve tables by the ``name`` option, creating them with default layout on first use."""

    short_name = "in-memory"

    def __init__(self, registry: TableRegistry, defaults: ProviderDefaults | None = None) -> None:
        self.registry = registry
        self.defaults = defaults or ProviderDefaults()

    def get_table(self, options: Mapping[str, str]) -> PartitionedTable:
        # Option keys are case-insensitive.
        lowered = {str(k).lower(): v for k, v in options.items()}
        name = lowered.get("name")
        if not name:
            raise ValueError(f"{self.short_name} provider requires a 'name' option")
        return self.registry.get_or_create(
            name,
            self.defaults.table_spec(name),
            self.defaults.partitioning(),
            dict(options),
        )
