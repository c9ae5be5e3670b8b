"""Tests for the per-ASN audit log files."""

import json

from asngen.core.modules.asn.models import ASNData
from asngen.core.modules.audit.storage import get_counter_path, write_asn_log


class TestGetCounterPath:
    def test_counter_is_padded_with_underscores(self, tmp_path):
        path = get_counter_path(str(tmp_path), 123, 42)
        assert path == tmp_path.resolve() / "123" / "______42.log"

    def test_long_counter_is_not_truncated(self, tmp_path):
        path = get_counter_path(str(tmp_path), 123, 123456789)
        assert path.name == "123456789.log"

    def test_path_is_absolute(self):
        assert get_counter_path("data", 100, 1).is_absolute()


class TestWriteAsnLog:
    def test_writes_json_and_creates_directories(self, tmp_path):
        asn_data = ASNData(asn="ASN123042", namespace=123, prefix="ASN", counter=42, metadata={"client": "cli"})

        path = write_asn_log(str(tmp_path / "nested"), asn_data)

        assert path.exists()
        content = json.loads(path.read_text())
        assert content["asn"] == "ASN123042"
        assert content["metadata"] == {"client": "cli"}

    def test_rewrite_is_harmless(self, tmp_path):
        asn_data = ASNData(asn="ASN123001", namespace=123, prefix="ASN", counter=1)
        first = write_asn_log(str(tmp_path), asn_data)
        second = write_asn_log(str(tmp_path), asn_data)
        assert first == second
        assert ASNData.model_validate_json(second.read_text()) == asn_data
