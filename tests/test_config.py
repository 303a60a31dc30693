from app.core.config import Settings


def test_settings_read_dotenv_file(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("LOG_LEVEL=DEBUG\nAPP_PASSWORD=from-dotenv\nMAIL_PORT=587\n")
    monkeypatch.chdir(tmp_path)
    for name in ("LOG_LEVEL", "APP_PASSWORD", "MAIL_PORT"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()
    assert settings.LOG_LEVEL == "DEBUG"
    assert settings.MAIL_PASSWORD == "from-dotenv"
    assert settings.MAIL_PORT == 587


def test_environment_beats_dotenv_file(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("LOG_LEVEL=DEBUG\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    assert Settings().LOG_LEVEL == "ERROR"
