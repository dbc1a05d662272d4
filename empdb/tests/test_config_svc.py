import pytest

from empdb.services.config_svc import DEFAULTS, ensure_default_config, get_config, update_config


def test_defaults_when_table_empty():
    assert get_config() == {"use_jta": False, "strict_not_found": False}


def test_ensure_default_config_keeps_existing_values():
    update_config({"use_jta": True})
    ensure_default_config()
    assert get_config()["use_jta"] is True
    assert get_config()["strict_not_found"] is False


@pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("on", True), ("no", False), (False, False)])
def test_update_accepts_boolean_spellings(raw, expected):
    assert update_config({"use_jta": raw}) == ["use_jta"]
    assert get_config()["use_jta"] is expected


def test_update_rejects_unknown_key():
    with pytest.raises(ValueError):
        update_config({"queue_name": "OTHER"})


def test_update_rejects_non_boolean():
    with pytest.raises(ValueError):
        update_config({"use_jta": "maybe"})
    assert set(DEFAULTS) == {"use_jta", "strict_not_found"}
