from file_analysis.config import Settings


def test_settings_defaults():
    settings = Settings()

    assert settings.port == 8002
    assert settings.analysis_workers == 4
    assert settings.analysis_backlog == 100
    assert settings.cors_origins == ["*"]
    assert settings.db_url == "sqlite:////data/file_analysis.db"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATA_DIR", "/tmp/analysis/")
    monkeypatch.setenv("ANALYSIS_WORKERS", "8")
    monkeypatch.setenv("FILE_SERVICE_URL", "http://localhost:5001/api")

    settings = Settings()

    assert settings.analysis_workers == 8
    assert settings.file_service_url == "http://localhost:5001/api"
    assert settings.db_url == "sqlite:////tmp/analysis/file_analysis.db"
