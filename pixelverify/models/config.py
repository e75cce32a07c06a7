"""Configuration models for the visual verification engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class TimeoutConfig(BaseModel):
    visible_timeout_ms: int = 10000
    settle_window_ms: int = 3000
    navigation_settle_ms: int = 1000  # settle window used after clicking "next"
    network_idle_timeout_ms: int = 10000
    fetch_timeout_ms: int = 30000
    series_switch_delay_ms: int = 2000
    stability_retries: int = Field(default=0, ge=0)
    stability_backoff_factor: float = Field(default=2.0, ge=1.0)

    @model_validator(mode="after")
    def settle_fits_visible_budget(self) -> "TimeoutConfig":
        # The first settle window always runs in full, so it must fit the wait budget
        for name in ("settle_window_ms", "navigation_settle_ms"):
            if getattr(self, name) > self.visible_timeout_ms:
                raise ValueError(
                    f"{name} ({getattr(self, name)}) exceeds visible_timeout_ms ({self.visible_timeout_ms})"
                )
        return self


class ComparisonConfig(BaseModel):
    threshold: int = Field(default=0, ge=0, le=255)
    max_mismatched_pixels: int = Field(default=0, ge=0)
    fixture_extension: str = "jpeg"
    content_attribute: str = "src"
    diff_jpeg_quality: int = Field(default=90, ge=1, le=100)
    output_dir: str = "./output"

    @field_validator("fixture_extension")
    @classmethod
    def strip_leading_dot(cls, v: str) -> str:
        return v.lstrip(".")


class SelectorConfig(BaseModel):
    image: str = '[data-testid="medical-image"]'
    next_button: str = '[data-testid="next-image-button"]'
    slice_information: str = '[data-testid="slice-information"]'
    disclaimer_accept: str = '[data-testid="welcome-popup-accept-button"]'


class SeriesConfig(BaseModel):
    name: str
    fixture_prefix: str
    total_images: int = Field(ge=1)
    fixture_dir: str
    button_selector: Optional[str] = None


def _default_series() -> list[SeriesConfig]:
    return [
        SeriesConfig(
            name="Series 1",
            fixture_prefix="series_1",
            total_images=7,
            fixture_dir="fixture/series1",
            button_selector='[data-testid="series-1-button"]',
        ),
        SeriesConfig(
            name="Series 2",
            fixture_prefix="series_2",
            total_images=6,
            fixture_dir="fixture/series2",
            button_selector='[data-testid="series-2-button"]',
        ),
    ]


class VerifierConfig(BaseModel):
    # Target
    target_url: str

    # Browser
    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720

    # Waits and comparison policy
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)
    selectors: SelectorConfig = Field(default_factory=SelectorConfig)

    # Series under test
    series: list[SeriesConfig] = Field(default_factory=_default_series)

    # Execution
    stop_on_failure: bool = False

    # Reporting
    report_output_dir: str = "./output"

    @classmethod
    def load(cls, path: str | Path) -> "VerifierConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
