"""Formatting and parsing of ASN strings.

An ASN is the configured prefix, the namespace and the counter padded to at
least three digits. Digits are only ever added to the counter, so the
namespace width stays fixed (apart from leading 9s of the namespace
extension).
"""

import re

from asngen.config import Config
from asngen.core.modules.asn.models import ASNData
from asngen.core.modules.namespace.codec import (
    digit_count,
    is_valid_namespace,
    max_generic_namespace,
    min_generic_namespace,
)
from asngen.errors import InvalidASNError, LookupDisabledError, ValidationError
from asngen.utils import is_safe_integer

COUNTER_WIDTH = 3


def is_valid_counter(counter: int) -> bool:
    """A valid counter is a safe integer >= 0."""
    return is_safe_integer(counter) and counter >= 0


def format_asn(namespace: int, counter: int, config: Config) -> str:
    """Format a namespace and a counter into a full ASN including the prefix.

    Raises:
        ValidationError: if the namespace or the counter is invalid
    """
    if not is_valid_namespace(namespace, config):
        raise ValidationError(f"Invalid namespace: {namespace}")
    if not is_valid_counter(counter):
        raise ValidationError(f"Invalid counter: {counter} (must be a safe integer >= 0)")
    return f"{config.prefix}{namespace}{counter:0{COUNTER_WIDTH}d}"


def _asn_pattern(config: Config) -> re.Pattern[str]:
    width = digit_count(config.namespace_range)
    return re.compile(rf"(?:{re.escape(config.prefix)})?(\d{{{width}}})(\d{{{COUNTER_WIDTH}}})\d*", re.ASCII)


def is_valid_asn(asn: str, config: Config) -> bool:
    """Check that an ASN matches the configured format. The prefix is optional."""
    return _asn_pattern(config).fullmatch(asn) is not None


def parse_asn(asn: str, config: Config) -> ASNData:
    """Parse an ASN string into its parts. The prefix may be omitted.

    With the namespace extension enabled, leading 9s belong to the namespace,
    so the same digits split differently depending on that setting. The
    returned `asn` is the canonical formatted form.

    Raises:
        InvalidASNError: if the string does not match the configured format
    """
    if not is_valid_asn(asn, config):
        raise InvalidASNError(f"Invalid ASN: {asn}")

    digits = asn.removeprefix(config.prefix)
    width = digit_count(config.namespace_range)

    extension = ""
    if config.enable_namespace_extension:
        stripped = digits.lstrip("9")
        extension = digits[: len(digits) - len(stripped)]
        digits = stripped

    namespace_digits, counter_digits = digits[:width], digits[width:]
    if len(namespace_digits) < width or not counter_digits:
        raise InvalidASNError(f"Invalid ASN: {asn}")

    namespace = int(extension + namespace_digits)
    counter = int(counter_digits)
    try:
        canonical = format_asn(namespace, counter, config)
    except ValidationError as e:
        raise InvalidASNError(f"Invalid ASN: {asn} ({e})") from e

    return ASNData(asn=canonical, namespace=namespace, prefix=config.prefix, counter=counter)


def nth_niner_extension_range(n: int, base_range: int) -> tuple[int, int]:
    """Inclusive (min, max) of the namespaces reachable with exactly `n` leading 9s.

    >>> nth_niner_extension_range(1, 100)
    (9000, 9899)
    >>> nth_niner_extension_range(2, 100)
    (99000, 99899)
    """
    if n < 1:
        raise ValueError("n must be at least 1")

    width = digit_count(base_range)
    low, high = "9" + "0" * width, "98" + "9" * (width - 1)
    for _ in range(n - 1):
        low, high = "9" + low, "9" + high
    return int(low), int(high)


def get_format_description(config: Config) -> str:
    """Human-readable description of the configured ASN format, meant for monospaced output."""
    minimum = min_generic_namespace(config)
    maximum = max_generic_namespace(config)
    manual_end = minimum * 10 - 1 - (minimum if config.enable_namespace_extension else 0)

    if config.enable_namespace_extension:
        ranges = [nth_niner_extension_range(i, config.namespace_range) for i in (1, 2, 3)]
        extension_ranges = (
            ",\n"
            + "".join(f"    - {low}-{high},\n" for low, high in ranges[:2])
            + f"    - {ranges[2][0]}-{ranges[2][1]}, etc., are"
        )
    else:
        extension_ranges = " is"

    return (
        "Configured ASN Format:\n"
        f"{config.prefix:<4} - {minimum!s:<4} - 001\n"
        "(1)  - (2)  - (3)\n"
        "\n"
        f"(1) Prefix specified in configuration ({config.prefix}).\n"
        "(2) Numeric Namespace, whereas\n"
        f"    - {minimum}-{maximum} is reserved for automatic generation, and\n"
        f"    - {config.namespace_range}-{manual_end}{extension_ranges} reserved for user defined namespaces.\n"
        "    The user defined namespace can be used for pre-printed ASN barcodes and the like.\n"
        "(3) Counter, starting from 001, incrementing with each new ASN in the namespace.\n"
        "    After 999, another digit is added."
    )


def get_lookup_url(asn: str, config: Config) -> str:
    """Build the URL of the external system (e.g. a DMS) that documents this ASN.

    Raises:
        LookupDisabledError: if no lookup URL is configured
        InvalidASNError: if the ASN does not match the configured format
    """
    if not config.lookup_url:
        raise LookupDisabledError
    if not is_valid_asn(asn, config):
        raise InvalidASNError(f"Invalid ASN: {asn}")

    digits = asn.removeprefix(config.prefix)
    value = f"{config.prefix}{digits}" if config.lookup_include_prefix else digits
    return config.lookup_url.replace("{asn}", value)
