from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"

SANTA_DATA_BASE_URL = "https://raw.githubusercontent.com/alj-devops/santa-data/master"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Remote user data (two JSON arrays joined on uid)
    USERS_DATA_URL: str = f"{SANTA_DATA_BASE_URL}/users.json"
    USER_PROFILES_DATA_URL: str = f"{SANTA_DATA_BASE_URL}/userProfiles.json"
    DATA_FETCH_TIMEOUT: float = 10.0

    # SMTP transport (Ethereal in development)
    SMTP_HOST: str = "smtp.ethereal.email"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_TIMEOUT: float = 60.0

    MAIL_FROM: str = "do_not_reply@northpole.com"
    MAIL_TO: str = "santa@northpole.com"

    # =================================================================
    # LETTER DISPATCH SCHEDULER
    # =================================================================
    SCHEDULER_INTERVAL_MINUTES: int = 15
    SCHEDULER_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def smtp_configured(self) -> bool:
        """True when credentials for the SMTP relay are present."""
        return bool(self.SMTP_USERNAME and self.SMTP_PASSWORD)

    def json_logs(self) -> bool:
        return self.environment == "production"

    def get_smtp_config(self) -> dict:
        """
        Get SMTP transport configuration.

        Port 465 uses implicit TLS; everything else upgrades with STARTTLS.
        """
        return {
            "hostname": self.SMTP_HOST,
            "port": self.SMTP_PORT,
            "username": self.SMTP_USERNAME,
            "password": self.SMTP_PASSWORD,
            "use_tls": self.SMTP_PORT == 465,
            "start_tls": self.SMTP_PORT == 587,
            "timeout": self.SMTP_TIMEOUT,
        }

    def get_scheduler_config(self) -> dict:
        return {
            "interval_minutes": self.SCHEDULER_INTERVAL_MINUTES,
            "enabled": self.SCHEDULER_ENABLED,
        }


settings = Settings()
