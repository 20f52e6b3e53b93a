"""Client configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """GhostTransfer client settings loaded from environment variables."""

    # Remote share service
    api_base_url: str = "https://dev.api.ghosttransfer.tech"
    request_timeout: float = 30.0
    upload_public: bool = False

    # Used when the local IANA zone cannot be detected
    fallback_timezone: str = "Asia/Karachi"

    # Cosmetic upload progress
    progress_interval_ms: int = 200
    progress_max_increment: float = 15.0
    progress_cap: float = 90.0
    success_display_ms: int = 1000

    # QR image service
    qr_service_url: str = "https://api.qrserver.com/v1/create-qr-code/"
    qr_size: int = 240
    qr_download_size: int = 480

    log_level: str = "INFO"

    model_config = {
        "env_prefix": "GHOSTTRANSFER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def progress_interval_seconds(self) -> float:
        return self.progress_interval_ms / 1000

    @property
    def success_display_seconds(self) -> float:
        return self.success_display_ms / 1000


# Singleton instance
settings = Settings()
