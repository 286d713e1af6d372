"""
Tests for CompatibilityValidator

Covers the version comparison rules, fetch minimisation and the handling
of malformed service info documents.
"""
import json
from datetime import datetime, timezone

import pytest

from sudo_config_manager.compatibility import CompatibilityValidator, parse_service_info
from sudo_config_manager.config_store import ConfigStore
from sudo_config_manager.errors import MalformedServiceInfoError, TransportError

from conftest import FakeS3Client, service_info


def make_validator(document, objects, max_workers=1, **s3_kwargs):
    s3 = FakeS3Client(objects, **s3_kwargs)
    validator = CompatibilityValidator(ConfigStore.from_document(document), s3, max_workers=max_workers)
    return validator, s3


class TestNotApplicable:
    """Test validation without a service info bucket."""

    def test_no_s3_client_returns_empty(self, platform_config):
        """Test that validation without a bucket is an empty success."""
        validator = CompatibilityValidator(ConfigStore.from_document(platform_config), None)
        result = validator.validate()
        assert result.incompatible == []
        assert result.deprecated == []
        assert result.is_compatible


class TestVersionRules:
    """Test the incompatible / deprecated decision rules."""

    def test_below_min_version_is_incompatible(self):
        """Test version=2 with minVersion=3."""
        validator, _ = make_validator(
            {"sudoService": {"version": 2}},
            {"sudoService.json": service_info("sudoService", minVersion=3)},
        )
        result = validator.validate()
        assert [info.name for info in result.incompatible] == ["sudoService"]
        assert result.deprecated == []
        assert not result.is_compatible

    def test_equal_to_deprecated_is_deprecated(self):
        """Test version=2 with deprecated=2."""
        validator, _ = make_validator(
            {"sudoService": {"version": 2}},
            {"sudoService.json": service_info("sudoService", deprecated=2)},
        )
        result = validator.validate()
        assert result.incompatible == []
        assert [info.name for info in result.deprecated] == ["sudoService"]
        assert result.is_compatible

    def test_current_version_in_neither_list(self):
        """Test version=5 with minVersion=3 and deprecated=1."""
        validator, _ = make_validator(
            {"sudoService": {"version": 5}},
            {"sudoService.json": service_info("sudoService", minVersion=3, deprecated=1)},
        )
        result = validator.validate()
        assert result.incompatible == []
        assert result.deprecated == []

    def test_service_can_be_in_both_lists(self):
        """Test that the two checks are independent."""
        validator, _ = make_validator(
            {"sudoService": {"version": 1}},
            {"sudoService.json": service_info("sudoService", minVersion=2, deprecated=2)},
        )
        result = validator.validate()
        assert [info.name for info in result.incompatible] == ["sudoService"]
        assert [info.name for info in result.deprecated] == ["sudoService"]

    def test_missing_local_version_defaults_to_one(self):
        """Test that an absent version field counts as version 1."""
        validator, _ = make_validator(
            {"sudoService": {}},
            {"sudoService.json": service_info("sudoService", minVersion=2)},
        )
        result = validator.validate()
        assert result.incompatible[0].config_version == 1

    @pytest.mark.parametrize("version", ["3", 3.0, True, None])
    def test_non_integer_local_version_defaults_to_one(self, version):
        """Test that non-integer version values count as version 1."""
        validator, _ = make_validator(
            {"sudoService": {"version": version}},
            {"sudoService.json": service_info("sudoService", deprecated=1)},
        )
        result = validator.validate()
        assert result.deprecated[0].config_version == 1

    def test_absent_remote_fields_never_trigger(self):
        """Test that an empty service info object flags nothing."""
        validator, _ = make_validator(
            {"sudoService": {"version": 1}},
            {"sudoService.json": service_info("sudoService")},
        )
        result = validator.validate()
        assert result.incompatible == []
        assert result.deprecated == []

    def test_compatibility_info_fields(self):
        """Test that the record carries local and remote values."""
        validator, _ = make_validator(
            {"sudoService": {"version": 1}},
            {"sudoService.json": service_info(
                "sudoService", minVersion=2, deprecated=1, deprecationGrace=1700000000000)},
        )
        info = validator.validate().incompatible[0]
        assert info.name == "sudoService"
        assert info.config_version == 1
        assert info.min_supported_version == 2
        assert info.deprecated_version == 1
        assert info.deprecation_grace == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_grace_sentinel_means_none(self):
        """Test that deprecationGrace=-1 means no grace period."""
        validator, _ = make_validator(
            {"sudoService": {"version": 1}},
            {"sudoService.json": service_info("sudoService", deprecated=1, deprecationGrace=-1)},
        )
        assert validator.validate().deprecated[0].deprecation_grace is None


class TestFetching:
    """Test which service info documents are fetched."""

    def test_unconfigured_services_are_not_fetched(self):
        """Test that only documents for local namespaces are fetched."""
        validator, s3 = make_validator(
            {"sudoService": {"version": 1}},
            {
                "sudoService.json": service_info("sudoService", minVersion=2),
                "vcService.json": service_info("vcService", minVersion=2),
            },
        )
        result = validator.validate()
        assert s3.fetched == ["sudoService.json"]
        assert [info.name for info in result.incompatible] == ["sudoService"]

    def test_non_json_keys_are_not_fetched(self):
        """Test that keys without the .json suffix are ignored."""
        validator, s3 = make_validator(
            {"sudoService": {"version": 1}, "README": {}},
            {"README": b"hello", "sudoService.yaml": b"", "sudoService.json": service_info("sudoService")},
        )
        validator.validate()
        assert s3.fetched == ["sudoService.json"]

    def test_results_follow_listing_order(self):
        """Test that result order matches the listing order."""
        document = {name: {"version": 1} for name in ("zService", "aService", "mService")}
        objects = {f"{name}.json": service_info(name, minVersion=2) for name in document}
        validator, _ = make_validator(document, objects)
        result = validator.validate()
        assert [info.name for info in result.incompatible] == ["zService", "aService", "mService"]

    def test_parallel_fetch_preserves_order(self):
        """Test that parallel fetches still return results in listing order."""
        names = [f"service{i}" for i in range(10)]
        document = {name: {"version": 1} for name in names}
        objects = {f"{name}.json": service_info(name, deprecated=1) for name in reversed(names)}
        validator, s3 = make_validator(document, objects, max_workers=4)
        result = validator.validate()
        assert [info.name for info in result.deprecated] == list(reversed(names))
        assert sorted(s3.fetched) == sorted(objects)

    def test_listing_failure_raises(self, transport_error):
        """Test that a listing failure is an error, not an empty result."""
        validator, _ = make_validator(
            {"sudoService": {"version": 1}}, {}, list_error=transport_error,
        )
        with pytest.raises(TransportError):
            validator.validate()

    def test_fetch_failure_raises(self, transport_error):
        """Test that a fetch failure aborts validation."""
        validator, _ = make_validator(
            {"sudoService": {"version": 1}},
            {"sudoService.json": service_info("sudoService")},
            get_errors={"sudoService.json": transport_error},
        )
        with pytest.raises(TransportError):
            validator.validate()


class TestMalformedDocuments:
    """Test that bad service info documents are skipped."""

    @pytest.mark.parametrize("body", [
        b"{}",
        b"not json",
        b"[1, 2]",
        b'{"sudoService": "v2"}',
        b'{"sudoService": {"minVersion": "3"}}',
        b'{"sudoService": {"minVersion": 3.0}}',
        b'{"sudoService": {"deprecated": true}}',
        b"\xff\xfe",
    ])
    def test_malformed_document_is_skipped(self, body):
        """Test that one bad document contributes nothing and does not fail."""
        validator, _ = make_validator(
            {"sudoService": {"version": 1}, "vcService": {"version": 1}},
            {"sudoService.json": body, "vcService.json": service_info("vcService", minVersion=2)},
        )
        result = validator.validate()
        assert [info.name for info in result.incompatible] == ["vcService"]
        assert result.deprecated == []

    def test_service_named_in_document_must_be_configured(self):
        """Test that the document's service name is checked against local config."""
        validator, _ = make_validator(
            {"sudoService": {"version": 1}},
            {"sudoService.json": service_info("otherService", minVersion=2)},
        )
        result = validator.validate()
        assert result.incompatible == []

    def test_non_object_local_namespace_is_skipped(self):
        """Test that a configured but non-object namespace is skipped."""
        validator, s3 = make_validator(
            {"sudoService": "enabled"},
            {"sudoService.json": service_info("sudoService", minVersion=2)},
        )
        result = validator.validate()
        assert s3.fetched == ["sudoService.json"]
        assert result.incompatible == []


class TestParseServiceInfo:
    """Test parse_service_info()."""

    def test_returns_name_and_info(self):
        name, info = parse_service_info(service_info("sudoService", minVersion=2))
        assert name == "sudoService"
        assert info == {"minVersion": 2}

    def test_first_key_is_the_service_name(self):
        """Test that only the first top-level key is used."""
        body = json.dumps({"first": {"minVersion": 1}, "second": {"minVersion": 2}}).encode()
        name, _ = parse_service_info(body)
        assert name == "first"

    def test_empty_document_raises(self):
        with pytest.raises(MalformedServiceInfoError):
            parse_service_info(b"{}")


class TestUnexpectedClientErrors:
    """Test errors from S3 clients that do not raise TransportError."""

    def test_unexpected_error_is_wrapped(self):
        from sudo_config_manager.errors import FailedError

        validator, _ = make_validator(
            {"sudoService": {"version": 1}}, {}, list_error=KeyError("boom"),
        )
        with pytest.raises(FailedError) as excinfo:
            validator.validate()
        assert isinstance(excinfo.value.__cause__, KeyError)


class TestDeprecationGrace:
    """deprecationGrace is read leniently and never drops the service."""

    def test_numeric_string_grace(self):
        """Test that a grace given as a numeric string is still read."""
        validator, _ = make_validator(
            {"sudoService": {"version": 1}},
            {"sudoService.json": b'{"sudoService": {"minVersion": 3, "deprecationGrace": "1700000000000"}}'},
        )
        result = validator.validate()
        assert [info.name for info in result.incompatible] == ["sudoService"]
        assert result.incompatible[0].deprecation_grace == datetime(
            2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    @pytest.mark.parametrize("grace", ['"soon"', "true", "null", "[1]", "{}", "1e300"])
    def test_unreadable_grace_still_classifies(self, grace):
        """Test that a bad grace value means no grace, not a skipped service."""
        body = ('{"sudoService": {"minVersion": 3, "deprecated": 1, "deprecationGrace": %s}}'
                % grace).encode()
        validator, _ = make_validator({"sudoService": {"version": 1}}, {"sudoService.json": body})
        result = validator.validate()
        assert [info.name for info in result.incompatible] == ["sudoService"]
        assert [info.name for info in result.deprecated] == ["sudoService"]
        assert result.incompatible[0].deprecation_grace is None
