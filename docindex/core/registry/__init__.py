from .errors import EnvironmentUnavailable, FragmentLoadError, RegistryStateError
from .models import Descriptor, RegistryState, freeze_mapping, thaw_view
from .index_registry import IndexRegistry
from .environment import (
    Environment,
    RegistryHandle,
    get_default_environment,
    reset_default_environment,
    set_default_environment,
)

__all__ = [
    "Descriptor",
    "Environment",
    "EnvironmentUnavailable",
    "FragmentLoadError",
    "IndexRegistry",
    "RegistryHandle",
    "RegistryState",
    "RegistryStateError",
    "freeze_mapping",
    "get_default_environment",
    "reset_default_environment",
    "set_default_environment",
    "thaw_view",
]
