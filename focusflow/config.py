import os
from typing import List, Literal

from pydantic import BaseModel, Field, model_validator

from .models import time_to_minutes, normalize_time

DEFAULT_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
]


class DayWindow(BaseModel):
    """Bounds of the schedulable part of a day (working hours)."""
    start: str = "06:00"
    end: str = "23:00"

    @model_validator(mode="after")
    def check_bounds(self):
        self.start = normalize_time(self.start)
        self.end = normalize_time(self.end)
        if self.start_minutes >= self.end_minutes:
            raise ValueError(f"Day window start {self.start} must be before end {self.end}")
        return self

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end)


class Settings(BaseModel):
    storage: Literal["csv", "memory"] = "csv"
    data_dir: str = "data"
    day_window: DayWindow = Field(default_factory=DayWindow)
    cors_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_ORIGINS))
    session_size: int = Field(default=20, ge=1)
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)


def get_settings() -> Settings:
    """Builds settings from FOCUSFLOW_* environment variables."""
    env = os.environ
    origins = env.get("FOCUSFLOW_CORS_ORIGINS")
    return Settings(
        storage=env.get("FOCUSFLOW_STORAGE", "csv"),
        data_dir=env.get("FOCUSFLOW_DATA_DIR", "data"),
        day_window=DayWindow(
            start=env.get("FOCUSFLOW_DAY_START", "06:00"),
            end=env.get("FOCUSFLOW_DAY_END", "23:00"),
        ),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else list(DEFAULT_ORIGINS),
        session_size=env.get("FOCUSFLOW_SESSION_SIZE", 20),
        host=env.get("FOCUSFLOW_HOST", "127.0.0.1"),
        port=env.get("FOCUSFLOW_PORT", 8000),
    )
