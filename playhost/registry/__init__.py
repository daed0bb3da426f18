"""Game-type registry and built-in catalog."""

from playhost.registry.catalog import KnownSessionKind, register_default_descriptors
from playhost.registry.module_registry import ModuleRegistry

__all__ = ["KnownSessionKind", "ModuleRegistry", "register_default_descriptors"]
