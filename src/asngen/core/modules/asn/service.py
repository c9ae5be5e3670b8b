from typing import Any

import structlog

from asngen.core.core import Service
from asngen.core.modules.asn.format import format_asn, parse_asn
from asngen.core.modules.asn.models import ASNData
from asngen.core.modules.audit.storage import write_asn_log
from asngen.core.modules.counter.models import CounterRecord
from asngen.core.modules.namespace.codec import is_valid_namespace, min_generic_namespace
from asngen.errors import NotFoundError, ValidationError
from asngen.utils import is_safe_integer, now, now_ms

logger = structlog.get_logger(__name__)


class AsnService(Service):
    """Allocates new ASNs and looks up existing ones."""

    def current_namespace(self) -> int:
        """Pick a generic namespace from the wall clock, spreading allocations over the generic range."""
        minimum = min_generic_namespace(self.config)
        return minimum + now_ms() % (self.config.namespace_range - minimum)

    async def generate_asn(
        self, metadata: dict[str, Any] | None = None, namespace: int | None = None, delta_counter: int = 1
    ) -> ASNData:
        """Generate a new ASN.

        The counter of the namespace is advanced by `delta_counter`; values in
        between are skipped (used by bumps). Without an explicit namespace, a
        generic namespace is chosen from the current time.

        Args:
            metadata: Additional metadata stored with the ASN
            namespace: Namespace to allocate in (optional)
            delta_counter: Positive amount to advance the counter by

        Raises:
            ValidationError: if the delta or the explicit namespace is invalid
        """
        if not is_safe_integer(delta_counter) or delta_counter < 1:
            raise ValidationError(f"Delta counter must be an integer >= 1, got {delta_counter!r}")
        if namespace is not None and not is_valid_namespace(namespace, self.config):
            raise ValidationError(f"Invalid namespace: {namespace}")

        metadata = {**(metadata or {}), "generatedAt": now().isoformat()}
        if namespace is None:
            namespace = self.current_namespace()

        record = CounterRecord(metadata=metadata, timestamp=now_ms())
        counter = await self.core.services.counter.increment(namespace, delta_counter, record)

        asn_data = ASNData(
            asn=format_asn(namespace, counter, self.config),
            namespace=namespace,
            prefix=self.config.prefix,
            counter=counter,
            metadata=metadata,
        )
        logger.info("asn_generated", asn=asn_data.asn, namespace=namespace, counter=counter, delta=delta_counter)

        self._write_audit_log(asn_data)
        await self._record_registration(namespace)
        return asn_data

    async def get_asn(self, asn: str) -> ASNData:
        """Parse an ASN and load the metadata stored when it was generated.

        Raises:
            InvalidASNError: if the ASN does not match the configured format
            NotFoundError: if the ASN was never generated
        """
        parsed = parse_asn(asn, self.config)
        record = await self.core.services.counter.get_record(parsed.namespace, parsed.counter)
        if record is None:
            raise NotFoundError(f"ASN {parsed.asn} not found")
        return parsed.model_copy(update={"metadata": record.metadata})

    async def get_current_counter(self, namespace: int) -> int:
        return await self.core.services.counter.get_current_sequence(namespace)

    def _write_audit_log(self, asn_data: ASNData) -> None:
        # Write-behind copy; the committed allocation stands even if this fails
        try:
            write_asn_log(self.config.data_dir, asn_data)
        except OSError:
            logger.warning("audit_log_failed", asn=asn_data.asn, exc_info=True)

    async def _record_registration(self, namespace: int) -> None:
        try:
            await self.core.services.stats.add_timestamp(namespace)
        except Exception:
            logger.warning("stats_update_failed", namespace=namespace, exc_info=True)
