import pytest

from ynab_syncher.core import settings
from ynab_syncher.domain.reconciliation import ReconciliationStrategy


def test_read_config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "# comment\n"
        "YNAB_BUDGET_ID: 'budget-1'\n"
        "RECONCILIATION_STRATEGY: RANGE  # inline comment\n"
        "YNAB_TOKEN: \"abc#123\"\n"
        "EMPTY:\n"
        "not a pair\n",
        encoding="utf-8",
    )

    values = settings.read_config_file(str(path))

    assert values == {
        "YNAB_BUDGET_ID": "budget-1",
        "RECONCILIATION_STRATEGY": "RANGE",
        "YNAB_TOKEN": "abc#123",
    }


def test_read_missing_config_file(tmp_path):
    assert settings.read_config_file(str(tmp_path / "missing.yaml")) == {}


def test_get_env_int_falls_back_on_bad_values(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PORT", "abc")
    assert settings.get_env_int("PORT", 8000) == 8000

    monkeypatch.setenv("PORT", "0")
    assert settings.get_env_int("PORT", 8000, min_value=1) == 8000

    monkeypatch.setenv("PORT", "9000")
    assert settings.get_env_int("PORT", 8000, min_value=1) == 9000


def test_get_env_float_falls_back_on_bad_values(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("YNAB_CATEGORIES_TTL", "soon")
    assert settings.get_env_float("YNAB_CATEGORIES_TTL", 60.0) == 60.0


def test_get_env_strategy(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RECONCILIATION_STRATEGY", "range")
    assert settings.get_env_strategy() == ReconciliationStrategy.RANGE

    monkeypatch.setenv("RECONCILIATION_STRATEGY", "fuzzy")
    assert settings.get_env_strategy() == ReconciliationStrategy.STRICT

    monkeypatch.delenv("RECONCILIATION_STRATEGY")
    assert settings.get_env_strategy() == ReconciliationStrategy.STRICT


def test_secrets_are_masked():
    assert settings.mask_env_value("YNAB_TOKEN", "abcdef123456") == "ab...56"
    assert settings.mask_env_value("YNAB_TOKEN", "abc") == "****"
    assert settings.mask_env_value("YNAB_BUDGET_ID", "last-used") == "last-used"
    assert settings.mask_env_value("OTHER", "Bearer xyz") == "Be...yz"


def test_mappings_path_defaults_to_data_dir(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("CATEGORY_MAPPINGS_FILE", raising=False)
    assert settings.get_mappings_path().endswith("category_mappings.json")

    monkeypatch.setenv("CATEGORY_MAPPINGS_FILE", "/tmp/mappings.json")
    assert settings.get_mappings_path() == "/tmp/mappings.json"
