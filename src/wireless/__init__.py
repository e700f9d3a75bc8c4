from wireless.container import Container, ContainerState
from wireless.exceptions import (
    WirelessAlreadyCleanedError,
    WirelessAlreadyResolvedError,
    WirelessConfigurationError,
    WirelessDependencyCycleError,
    WirelessDependencyNotRegisteredError,
    WirelessError,
    WirelessInvalidInjectionTargetError,
    WirelessInvalidProviderError,
    WirelessNotResolvedError,
    WirelessStateError,
)
from wireless.lock_mode import LockMode
from wireless.markers import Injected, Omit
from wireless.providers import (
    BindingProvider,
    FuncProvider,
    InterfaceValueProvider,
    Provider,
    ProviderOptions,
    ProviderSet,
    ValueProvider,
    bind,
    func,
    if_not_exists,
    interface_value,
    namespace,
    provider_set,
    value,
)

__all__ = [
    "BindingProvider",
    "Container",
    "ContainerState",
    "FuncProvider",
    "Injected",
    "InterfaceValueProvider",
    "LockMode",
    "Omit",
    "Provider",
    "ProviderOptions",
    "ProviderSet",
    "ValueProvider",
    "WirelessAlreadyCleanedError",
    "WirelessAlreadyResolvedError",
    "WirelessConfigurationError",
    "WirelessDependencyCycleError",
    "WirelessDependencyNotRegisteredError",
    "WirelessError",
    "WirelessInvalidInjectionTargetError",
    "WirelessInvalidProviderError",
    "WirelessNotResolvedError",
    "WirelessStateError",
    "bind",
    "func",
    "if_not_exists",
    "interface_value",
    "namespace",
    "provider_set",
    "value",
]
