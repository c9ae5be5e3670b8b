"""Tests for configuration loading and validation."""

import pydantic
import pytest

from asngen.config import BarcodeType, Config


class TestConfigValidation:
    def test_defaults(self, make_config):
        config = make_config()
        assert config.barcode_type == BarcodeType.CODE128
        assert config.lookup_url is None
        assert config.additional_managed_namespaces == []
        assert config.transaction_max_attempts == 100

    @pytest.mark.parametrize("prefix", ["", "asn", "A1", "ABCDEFGHIJK"])
    def test_invalid_prefix(self, make_config, prefix):
        with pytest.raises(pydantic.ValidationError):
            make_config(prefix=prefix)

    @pytest.mark.parametrize("namespace_range", [0, -5, 1, 10, 100])
    def test_range_without_generic_namespaces(self, make_config, namespace_range):
        with pytest.raises(pydantic.ValidationError):
            make_config(namespace_range=namespace_range)

    def test_extension_rejects_generic_range_with_leading_nine(self, make_config):
        with pytest.raises(pydantic.ValidationError, match="leading 9s"):
            make_config(namespace_range=950, enable_namespace_extension=True)

    def test_extension_allows_range_below_nines(self, make_config):
        config = make_config(namespace_range=900, enable_namespace_extension=True)
        assert config.enable_namespace_extension

    def test_invalid_additional_namespace(self, make_config):
        with pytest.raises(pydantic.ValidationError, match="ASN500XXX - Inside"):
            make_config(namespace_range=600, additional_managed_namespaces="<500 Inside>")

    def test_additional_namespace_with_wrong_digit_count(self, make_config):
        with pytest.raises(pydantic.ValidationError):
            make_config(namespace_range=600, additional_managed_namespaces="<6000 Too long>")

    def test_barcode_type_is_case_insensitive(self, make_config):
        assert make_config(barcode_type="code39").barcode_type == BarcodeType.CODE39

    def test_lookup_url_requires_placeholder(self, make_config):
        with pytest.raises(pydantic.ValidationError):
            make_config(lookup_url="https://dms.example.com/documents")
        config = make_config(lookup_url="https://dms.example.com/documents?query=asn:{asn}")
        assert config.lookup_url is not None

    def test_config_is_frozen(self, make_config):
        config = make_config()
        with pytest.raises(pydantic.ValidationError):
            config.prefix = "OTHER"


class TestConfigFromEnvironment:
    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("ASNGEN_PREFIX", "DOC")
        monkeypatch.setenv("ASNGEN_NAMESPACE_RANGE", "60")
        monkeypatch.setenv("ASNGEN_ENABLE_NAMESPACE_EXTENSION", "true")
        monkeypatch.setenv("ASNGEN_ADDITIONAL_MANAGED_NAMESPACES", "<70 Seventy>,<912 Extended>")

        config = Config(_env_file=None)

        assert config.prefix == "DOC"
        assert config.namespace_range == 60
        assert config.enable_namespace_extension
        assert [v.namespace for v in config.additional_managed_namespaces] == [70, 912]
        assert config.additional_managed_namespaces[1].label == "Extended"
