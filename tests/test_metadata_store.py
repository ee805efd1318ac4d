"""Tests for jail record persistence."""
import pytest
import yaml

from jail.core.errors import JailNotFoundError, PersistError
from jail.core.metadata import RECORD_FILE, MetadataStore
from jail.models import DEFAULT_WORKSPACE_DIR, JailRecord


@pytest.fixture
def store(tmp_path):
    return MetadataStore(tmp_path / "jails")


def sample_record(**overrides):
    fields = dict(
        name="acme/widget",
        source="https://github.com/acme/widget.git",
        runtime="podman",
        workspace_dir="widget",
        ports={8080, 3000},
        created_at=1700000000,
    )
    fields.update(overrides)
    return JailRecord(**fields)


def test_save_then_load_is_field_equal(store):
    record = sample_record(container_id="abc123")
    store.save(record)

    loaded = store.load("acme/widget")

    assert loaded == record
    assert loaded.ports == {3000, 8080}


def test_record_lives_in_slash_free_directory(store, tmp_path):
    store.save(sample_record())

    path = tmp_path / "jails" / "acme_widget" / RECORD_FILE
    assert path.exists()
    data = yaml.safe_load(path.read_text())
    assert data["ports"] == [3000, 8080]
    assert "container_id" not in data


def test_load_missing_jail_raises_not_found(store):
    with pytest.raises(JailNotFoundError, match="not found"):
        store.load("ghost")


def test_load_malformed_record_raises_persist_error(store, tmp_path):
    jail_dir = tmp_path / "jails" / "broken"
    jail_dir.mkdir(parents=True)
    (jail_dir / RECORD_FILE).write_text("source: [unterminated\n")

    with pytest.raises(PersistError, match="parse"):
        store.load("broken")


def test_load_record_missing_fields_raises_persist_error(store, tmp_path):
    jail_dir = tmp_path / "jails" / "partial"
    jail_dir.mkdir(parents=True)
    (jail_dir / RECORD_FILE).write_text("source: somewhere\n")

    with pytest.raises(PersistError):
        store.load("partial")


def test_older_record_defaults_workspace_dir(store, tmp_path):
    jail_dir = tmp_path / "jails" / "legacy"
    jail_dir.mkdir(parents=True)
    (jail_dir / RECORD_FILE).write_text(
        "source: /src/legacy\nruntime: docker\ncreated_at: '1690000000'\n"
    )

    record = store.load("legacy")

    assert record.name == "legacy"
    assert record.workspace_dir == DEFAULT_WORKSPACE_DIR
    assert record.ports == set()
    assert record.created_at == 1690000000


def test_iter_records_flags_corrupt_entries(store, tmp_path):
    store.save(sample_record())
    bad = tmp_path / "jails" / "bad"
    bad.mkdir()
    (bad / RECORD_FILE).write_text("- just\n- a list\n")
    (tmp_path / "jails" / "no-record").mkdir()

    entries = dict(store.iter_records())

    assert set(entries) == {"acme/widget", "bad"}
    assert entries["bad"] is None
    assert entries["acme/widget"].source.endswith("widget.git")


def test_delete_removes_directory(store, tmp_path):
    store.save(sample_record())
    (store.jail_path("acme/widget") / "widget").mkdir()

    store.delete("acme/widget")

    assert not (tmp_path / "jails" / "acme_widget").exists()
    assert not store.exists("acme/widget")


def test_delete_missing_jail_raises_not_found(store):
    with pytest.raises(JailNotFoundError):
        store.delete("ghost")


def test_merge_ports_reports_new_ports_only():
    record = sample_record(ports={3000})

    assert record.merge_ports([3000]) is False
    assert record.merge_ports([3000, 5173]) is True
    assert record.ports == {3000, 5173}
