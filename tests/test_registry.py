"""Tests for the registry data model and its JSON document."""

import json

import pytest

from surveillance_console.errors import FormatError
from surveillance_console.models import DEFAULT_SOURCES, Registry, Settings


def test_settings_defaults():
    settings = Settings()
    assert settings.rotation_interval == 15
    assert settings.connection_timeout == 10
    assert settings.retry_interval == 30
    assert settings.max_retry_attempts == 5
    assert settings.low_quality_resolution == "640x480"
    assert settings.high_quality_resolution == "1920x1080"
    assert settings.grid_size == 16


def test_default_sources_reference_default_sites():
    registry = Registry.default()
    for source in DEFAULT_SOURCES:
        assert registry.find_site(source.site_display_name) is not None
        assert source.enabled


def test_next_ids():
    registry = Registry.default()
    assert registry.next_site_id() == 4
    assert registry.next_source_id() == 6
    assert Registry().next_site_id() == 1


def test_document_layout():
    data = json.loads(Registry.default().to_json())
    assert set(data) == {"identities", "sites", "sources", "settings"}
    assert data["sources"][0] == {
        "id": 1,
        "display_name": "Hallway",
        "site_display_name": "Pushkin St apartment",
        "connection_uri": "rtsp://192.168.1.100:554/stream1",
        "enabled": True,
    }


def test_from_json_accepts_bytes():
    document = Registry.default().to_json().encode("utf-8")
    assert Registry.from_json(document) == Registry.default()


class TestMalformedDocuments:
    """Anything that does not parse in full raises FormatError."""

    @pytest.mark.parametrize("document", [
        "",
        "[]",
        "{not json",
        b"\xff\xfe",
    ])
    def test_unparseable(self, document):
        with pytest.raises(FormatError):
            Registry.from_json(document)

    def test_missing_field(self):
        data = Registry.default().to_dict()
        del data["sources"][0]["connection_uri"]
        with pytest.raises(FormatError, match="connection_uri"):
            Registry.from_dict(data)

    def test_bool_is_not_an_id(self):
        data = Registry.default().to_dict()
        data["sites"][0]["id"] = True
        with pytest.raises(FormatError):
            Registry.from_dict(data)

    def test_enabled_must_be_bool(self):
        data = Registry.default().to_dict()
        data["sources"][0]["enabled"] = 1
        with pytest.raises(FormatError):
            Registry.from_dict(data)

    def test_unknown_role(self):
        data = Registry.default().to_dict()
        data["identities"] = [{"login": "x", "password_hash": "h", "role": "Janitor"}]
        with pytest.raises(FormatError, match="role"):
            Registry.from_dict(data)

    def test_deeply_nested_document(self):
        with pytest.raises(FormatError, match="nested"):
            Registry.from_json("[" * 200000)

    def test_negative_id(self):
        data = Registry.default().to_dict()
        data["sites"][0]["id"] = -1
        with pytest.raises(FormatError):
            Registry.from_dict(data)

    def test_zero_id(self):
        data = Registry.default().to_dict()
        data["sources"][0]["id"] = 0
        with pytest.raises(FormatError, match="positive"):
            Registry.from_dict(data)

    @pytest.mark.parametrize("value", [-5, 2 ** 32])
    def test_setting_out_of_range(self, value):
        data = Registry.default().to_dict()
        data["settings"]["rotation_interval"] = value
        with pytest.raises(FormatError, match="rotation_interval"):
            Registry.from_dict(data)
