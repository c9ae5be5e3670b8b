import asyncio
import math

import structlog

from asngen.core.core import Service
from asngen.core.modules.asn.format import format_asn
from asngen.core.modules.bump.models import BumpRecommendation, BumpResult
from asngen.core.modules.namespace.codec import all_managed_namespaces, is_managed_namespace
from asngen.core.modules.stats.service import max_hourly_rate
from asngen.errors import ValidationError
from asngen.utils import is_safe_integer, now

logger = structlog.get_logger(__name__)


class BumpService(Service):
    """Skips counters ahead after restoring a backup.

    ASNs registered between the backup and the restore are unknown to the
    restored store. Bumping every namespace by more than the number of such
    registrations keeps new ASNs from colliding with them.
    """

    def _resolve_namespaces(self, namespaces: list[int] | None) -> list[int]:
        if namespaces is None:
            return all_managed_namespaces(self.config)
        namespaces = list(dict.fromkeys(namespaces))  # Bump each namespace once

        unmanaged = [n for n in namespaces if not is_managed_namespace(n, self.config)]
        if unmanaged:
            raise ValidationError(
                "Namespaces not managed by the system cannot be bumped: "
                + ", ".join(f"{self.config.prefix}{n}XXX" for n in unmanaged)
            )
        return namespaces

    async def recommend_delta(
        self, hours: float, sigma: float = 3, namespaces: list[int] | None = None
    ) -> BumpRecommendation:
        """Suggest a delta covering `hours` of registrations at the worst-case rate for `sigma`.

        Uses the highest rate across the namespaces with enough registrations
        and never suggests less than 1.
        """
        if hours < 0:
            raise ValidationError("Hours since the backup must not be negative")
        namespaces = self._resolve_namespaces(namespaces)

        stats = await asyncio.gather(*(self.core.services.stats.get_stats(n) for n in namespaces))
        hourly_rate = max_hourly_rate(stats, sigma)
        return BumpRecommendation(
            sigma=sigma,
            hours=hours,
            hourly_rate=hourly_rate,
            delta_counter=max(1, math.ceil(hourly_rate * hours)),
            namespaces=namespaces,
        )

    async def bump(
        self,
        delta_counter: int,
        namespaces: list[int] | None = None,
        bumped_by: str | None = None,
        reason: str | None = None,
    ) -> list[BumpResult]:
        """Advance the counters of `namespaces` (default: all managed) by `delta_counter`.

        Counters never decrease. The allocated ASN records who bumped, when and why.
        """
        if not is_safe_integer(delta_counter) or delta_counter < 1:
            raise ValidationError(f"Delta counter must be an integer >= 1, got {delta_counter!r}")
        namespaces = self._resolve_namespaces(namespaces)

        metadata = {
            "bumpDelta": delta_counter,
            "bumpedAt": now().isoformat(),
            "bumpedBy": bumped_by,
            "bumpReason": reason,
        }
        asns = await asyncio.gather(
            *(self.core.services.asn.generate_asn(metadata, namespace, delta_counter) for namespace in namespaces)
        )

        results = []
        for asn in asns:
            result = BumpResult(
                namespace=asn.namespace,
                previous_counter=asn.counter - delta_counter,
                asn=asn,
                next_asn=format_asn(asn.namespace, asn.counter + 1, self.config),
            )
            logger.info("namespace_bumped", namespace=asn.namespace, delta=delta_counter, next_asn=result.next_asn)
            results.append(result)
        return results
