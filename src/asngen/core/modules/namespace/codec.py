"""Numeric rules for namespaces.

The generic range covers every number with the same digit count as
`namespace_range` that is smaller than it. With `enable_namespace_extension`,
leading 9s widen a namespace by one digit each, so `9XX`, `99XX`, ... never
collide with the generic `XX` range.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from asngen.utils import is_safe_integer

if TYPE_CHECKING:
    from asngen.config import Config


def digit_count(value: int) -> int:
    return len(str(value))


def min_generic_namespace(config: Config) -> int:
    """Smallest number with the same digit count as `namespace_range`."""
    return 10 ** (digit_count(config.namespace_range) - 1)


def max_generic_namespace(config: Config) -> int:
    return config.namespace_range - 1


def is_valid_namespace(namespace: int, config: Config) -> bool:
    """Check whether a namespace is syntactically usable under the configuration.

    Leading 9s are stripped before counting digits when the namespace
    extension is enabled. Validity says nothing about being managed.
    """
    if not is_safe_integer(namespace) or namespace < min_generic_namespace(config):
        return False

    digits = str(namespace)
    if config.enable_namespace_extension:
        digits = digits.lstrip("9")
    return len(digits) == digit_count(config.namespace_range)


def is_managed_namespace(namespace: int, config: Config) -> bool:
    """A namespace is managed if it is generic or listed as an additional managed namespace."""
    if not is_safe_integer(namespace) or namespace < min_generic_namespace(config):
        return False
    if namespace <= max_generic_namespace(config):
        return True
    return any(v.namespace == namespace for v in config.additional_managed_namespaces)


def is_valid_additional_managed_namespace(namespace: int, config: Config) -> bool:
    """Valid namespaces outside the generic range may be declared as additional managed namespaces."""
    return is_valid_namespace(namespace, config) and namespace >= config.namespace_range


def all_managed_namespaces(config: Config) -> list[int]:
    """Generic namespaces in ascending order, followed by the additional ones in configured order."""
    generic = list(range(min_generic_namespace(config), max_generic_namespace(config) + 1))
    return generic + [v.namespace for v in config.additional_managed_namespaces]
