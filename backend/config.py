import os
from functools import lru_cache
from urllib.parse import quote_plus

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Job Board API"

    database_url: str = "sqlite:///jobboard.db"
    mssql_server: str | None = None
    mssql_database: str = "JobBoard"
    mssql_user: str | None = None
    mssql_password: str | None = None
    mssql_port: int = 1433
    mssql_odbc_driver: str = "{ODBC Driver 17 for SQL Server}"

    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    otp_expire_minutes: int = 10
    bcrypt_rounds: int = 12

    mail_server: str = "smtp.gmail.com"
    mail_port: int = 587
    mail_use_tls: bool = True
    mail_use_ssl: bool = False
    mail_username: str | None = None
    mail_password: str | None = None
    mail_default_sender: str | None = None
    mail_suppress_send: bool = False

    frontend_urls: str | None = None
    upload_folder: str = "uploads"
    upload_url_prefix: str = "/api/uploads"
    max_resume_bytes: int = 5 * 1024 * 1024

    sweeper_enabled: bool = True
    sweeper_interval_seconds: int = 60 * 60

    port: int = 5000
    flask_debug: bool = False
    testing: bool = False

    @model_validator(mode="after")
    def default_sender(self):
        if not self.mail_default_sender:
            self.mail_default_sender = self.mail_username
        return self

    @property
    def sqlalchemy_url(self) -> str:
        if not self.mssql_server:
            return self.database_url
        raw_conn = (
            f"DRIVER={self.mssql_odbc_driver};"
            f"SERVER={self.mssql_server},{self.mssql_port};"
            f"DATABASE={self.mssql_database};"
            f"UID={self.mssql_user or ''};"
            f"PWD={self.mssql_password or ''};"
            "TrustServerCertificate=yes;"
        )
        return f"mssql+pyodbc:///?odbc_connect={quote_plus(raw_conn)}"

    @property
    def mail_configured(self) -> bool:
        return bool(self.mail_username and self.mail_password)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
