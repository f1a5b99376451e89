"""Tests for upload admission and identifier parsing."""

from uuid import uuid4

import pytest

from artverse.config import StorageConfig
from artverse.lib.exceptions import ValidationError
from artverse.lib.validation import AssetPolicy, check_plain_file_name, parse_uuid

MB = 1024 * 1024


class TestAssetPolicy:
    """Tests for AssetPolicy.validate()."""

    def test_accepts_allowed_type_within_limit(self):
        AssetPolicy().validate("image/jpeg", 2 * MB)

    def test_rejects_oversized_png(self):
        with pytest.raises(ValidationError) as exc_info:
            AssetPolicy().validate("image/png", 12 * MB)
        assert exc_info.value.reason == "size"
        assert exc_info.value.message == "File too large. Maximum size: 10.0MB"

    def test_rejects_pdf(self):
        with pytest.raises(ValidationError) as exc_info:
            AssetPolicy().validate("application/pdf", 1000)
        assert exc_info.value.reason == "type"

    def test_exactly_max_size_is_allowed(self):
        AssetPolicy().validate("image/gif", 10 * MB)

    def test_is_acceptable(self):
        policy = AssetPolicy()
        assert policy.is_acceptable("image/webp", 10)
        assert not policy.is_acceptable("text/html", 10)

    def test_from_config(self):
        policy = AssetPolicy.from_config(
            StorageConfig(allowed_types=["image/png"], max_upload_size=MB)
        )
        assert policy.allowed_types == frozenset({"image/png"})
        with pytest.raises(ValidationError):
            policy.validate("image/jpeg", 10)
        with pytest.raises(ValidationError) as exc_info:
            policy.validate("image/png", 2 * MB)
        assert exc_info.value.message == "File too large. Maximum size: 1.0MB"


class TestParseUuid:
    def test_passes_uuid_through(self):
        value = uuid4()
        assert parse_uuid(value) is value

    def test_parses_string(self):
        value = uuid4()
        assert parse_uuid(str(value)) == value

    def test_rejects_garbage(self):
        with pytest.raises(ValidationError, match="galleryId"):
            parse_uuid("not-a-uuid", "galleryId")


class TestCheckPlainFileName:
    @pytest.mark.parametrize("name", ["", ".", "..", "../x.png", "a/b.png", "a\\b.png"])
    def test_rejects_paths(self, name):
        with pytest.raises(ValidationError):
            check_plain_file_name(name)

    def test_accepts_plain_name(self):
        assert check_plain_file_name("abc-1-xyz.png") == "abc-1-xyz.png"
