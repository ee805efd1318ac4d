"""Tests for jail record models."""
import pytest
from pydantic import ValidationError

from jail.models import DEFAULT_WORKSPACE_DIR, JailListing, JailRecord


class TestJailRecord:
    """Test JailRecord validation."""

    def test_minimal_record(self):
        """Only name, source and runtime are required."""
        record = JailRecord(name="scratch", source="(empty)", runtime="Podman")

        assert record.runtime == "podman"
        assert record.workspace_dir == DEFAULT_WORKSPACE_DIR
        assert record.ports == set()
        assert record.container_id is None
        assert record.created_at > 0

    def test_missing_runtime_fails(self):
        with pytest.raises(ValidationError, match="runtime"):
            JailRecord(name="scratch", source="(empty)")

    def test_out_of_range_port_fails(self):
        with pytest.raises(ValidationError, match="outside"):
            JailRecord(name="scratch", source="(empty)", runtime="podman", ports=[0])

    def test_from_dict_uses_fallback_name(self):
        record = JailRecord.from_dict(
            {"source": "/src/app", "runtime": "docker", "ports": None}, fallback_name="app"
        )

        assert record.name == "app"
        assert record.ports == set()

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            JailRecord.from_dict(["not", "a", "record"])

    def test_to_dict_sorts_ports_and_omits_missing_container(self):
        record = JailRecord(name="a", source="b", runtime="docker", ports={8080, 22}, created_at=5)

        assert record.to_dict() == {
            "name": "a",
            "source": "b",
            "runtime": "docker",
            "workspace_dir": DEFAULT_WORKSPACE_DIR,
            "ports": [22, 8080],
            "created_at": 5,
        }

    def test_numeric_container_id_becomes_text(self):
        record = JailRecord.from_dict(
            {"name": "a", "source": "b", "runtime": "podman", "container_id": 123456}
        )

        assert record.container_id == "123456"


def test_listing_without_source_is_corrupt():
    assert JailListing(name="broken").is_corrupt
    assert not JailListing(name="ok", source="(empty)").is_corrupt
