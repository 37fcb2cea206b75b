from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    port: int = 8002
    log_level: str = "INFO"
    data_dir: str = "/data"
    reports_dir: str = "/data/reports"

    file_service_url: str = "http://file-storing-service:8001/api"
    file_service_timeout: float = 10.0
    quickchart_url: str = "https://quickchart.io/chart"
    cors_origins: list[str] = ["*"]

    # пул фоновых анализов
    analysis_workers: int = 4
    analysis_backlog: int = 100
    shutdown_drain_timeout: float = 5.0

    @property
    def db_url(self) -> str:
        return f"sqlite:///{self.data_dir.rstrip('/')}/file_analysis.db"


settings = Settings()
