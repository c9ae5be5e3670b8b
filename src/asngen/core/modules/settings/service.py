import structlog

from asngen.core.core import Service
from asngen.core.modules.namespace.codec import digit_count
from asngen.core.modules.settings.models import CONFIG_KEY, PersistedConfig
from asngen.core.store import KvStore
from asngen.errors import ConfigurationDriftError

logger = structlog.get_logger(__name__)


def check_drift(previous: PersistedConfig, current: PersistedConfig) -> None:
    """Raise ConfigurationDriftError if `current` would make ASNs issued under `previous` unparseable."""
    if previous.prefix != current.prefix:
        raise ConfigurationDriftError(
            f"Database configuration mismatch: prefix. Old: {previous.prefix}, new: {current.prefix}. "
            "The prefix must be the same."
        )

    if digit_count(previous.namespace_range) != digit_count(current.namespace_range):
        raise ConfigurationDriftError(
            "Database configuration mismatch: namespace_range. "
            f"Old: {previous.namespace_range}, new: {current.namespace_range}. "
            "The number of digits must be the same."
        )


class SettingsService(Service):
    """Guards against configuration changes that would corrupt issued ASNs."""

    async def on_start(self) -> None:
        """Reconcile the configuration before anything gets allocated."""
        await self.reconcile()

    async def reconcile(self) -> None:
        """Compare the current configuration with the one stored on the last run.

        - No stored configuration (first run): store the current one.
        - Changed prefix or namespace digit count: raise ConfigurationDriftError.
        - Changed barcode type: log a warning and continue.

        Otherwise the current configuration becomes the new baseline. The
        baseline is replaced only if it is unchanged since it was checked, so
        of several instances starting at once only compatible ones succeed.
        """
        current = PersistedConfig.from_config(self.config)
        previous: PersistedConfig | None = None

        async def operation(store: KvStore) -> bool:
            nonlocal previous
            entry = await store.get(CONFIG_KEY)
            previous = None if entry.value is None else PersistedConfig.model_validate(entry.value)
            if previous is not None:
                check_drift(previous, current)
            return await store.atomic().check(entry).set(CONFIG_KEY, current.model_dump(mode="json")).commit()

        await self.core.transact(operation, lock_key=CONFIG_KEY)

        if previous is None:
            logger.info("config_baseline_stored", prefix=current.prefix, namespace_range=current.namespace_range)
        elif previous.barcode_type != current.barcode_type:
            logger.warning(
                "barcode_type_changed",
                old=previous.barcode_type,
                new=current.barcode_type,
                detail="Future barcodes use the new type, which may not be compatible with the old ones.",
            )
