"""Tests for environment-driven settings."""

import pytest

from subtrack.config import validate_all_settings
from subtrack.config.settings import AppSettings, GoogleSheetsSettings, LocalStorageSettings


class TestSettings:
    def test_app_defaults(self, monkeypatch):
        monkeypatch.delenv("MIN_PASSWORD_LENGTH", raising=False)
        settings = AppSettings(_env_file=None)
        assert settings.min_password_length == 6
        assert settings.feedback_message_seconds == 3
        assert settings.currency_symbol == "¥"

    def test_bcrypt_rounds_floor(self):
        with pytest.raises(ValueError):
            AppSettings(_env_file=None, bcrypt_rounds=2)

    def test_local_path_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SUBTRACK_LOCAL_PATH", str(tmp_path / "guest.json"))
        assert LocalStorageSettings().path == tmp_path / "guest.json"

    def test_profiles_dir_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SUBTRACK_LOCAL_PROFILES_DIR", str(tmp_path))
        assert LocalStorageSettings().profiles_dir == tmp_path

    def test_google_sheets_from_env(self, monkeypatch, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}", encoding="utf-8")
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(credentials))
        monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-123")

        settings = GoogleSheetsSettings()

        assert settings.spreadsheet_id == "sheet-123"
        assert settings.subscriptions_sheet_name == "Subscriptions"
        assert settings.users_sheet_name == "Users"

    def test_missing_credentials_file_warns(self, tmp_path):
        with pytest.warns(UserWarning, match="No service account key"):
            settings = GoogleSheetsSettings(
                _env_file=None,
                credentials_path=str(tmp_path / "missing.json"),
                spreadsheet_id="sheet-123",
            )
        assert settings.spreadsheet_id == "sheet-123"

    def test_missing_google_sheets_is_reported_not_raised(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        monkeypatch.chdir(tmp_path)

        results = validate_all_settings()

        assert results["google_sheets"] is False
        assert "google_sheets_error" in results
        assert results["app"] is True
