import os


class Settings:
    # Project
    PROJECT_NAME: str = "shm-metrics"
    VERSION: str = "1.0.0"

    # Storage Settings
    SHM_DIR: str = os.getenv("SHM_METRICS_DIR", "/run/fty-shm-1")

    # Logging Settings
    LOG_LEVEL: str = os.getenv("SHM_METRICS_LOG_LEVEL", "INFO").upper()
    LOG_FILE: str | None = os.getenv("SHM_METRICS_LOG_FILE") or None

    # Garbage collector cadence used by the CLI scheduler (seconds)
    SWEEP_INTERVAL: float = float(os.getenv("SHM_METRICS_SWEEP_INTERVAL", 60))


settings = Settings()
