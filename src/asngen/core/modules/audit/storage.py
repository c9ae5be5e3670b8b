"""File storage for the per-ASN audit log.

Each allocated ASN is written as JSON to its own file below the data
directory. The files are a backup/audit artifact; the key-value store
remains the source of truth.
"""

from pathlib import Path

from asngen.core.modules.asn.models import ASNData

COUNTER_FILE_WIDTH = 8


def get_counter_path(data_dir: str, namespace: int, counter: int) -> Path:
    """Build the audit log path for an ASN.

    Args:
        data_dir: Base directory for audit logs
        namespace: ASN namespace
        counter: ASN counter

    Returns:
        Absolute path, e.g. `<data_dir>/123/______42.log`
    """
    return Path(data_dir).resolve() / str(namespace) / f"{str(counter).rjust(COUNTER_FILE_WIDTH, '_')}.log"


def write_asn_log(data_dir: str, asn_data: ASNData) -> Path:
    """Write the ASN record to its audit log file, creating parent directories.

    The content for a given (namespace, counter) never changes, so rewriting is harmless.

    Returns:
        Absolute path to written file
    """
    file_path = get_counter_path(data_dir, asn_data.namespace, asn_data.counter)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(asn_data.model_dump_json(indent=2))
    return file_path
