"""Configuration models for Joidu Focus."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from joidu_focus.models.focus.session import BREAK_DURATIONS


class FocusConfig(BaseModel):
    """Focus timer defaults."""

    default_duration: int = Field(default=25, ge=0, le=240, description="Minutes")
    break_duration: int = Field(default=5, description="Minutes")
    auto_break: bool = Field(default=False)
    block_distractions: bool = Field(default=False)
    end_sound: bool = Field(default=True)
    tick_interval: float = Field(default=1.0, gt=0)
    autosave_interval: float = Field(default=30.0, gt=0)
    snapshot_key: str = Field(default="focus-session", min_length=1)

    @field_validator("break_duration")
    @classmethod
    def validate_break_duration(cls, v: int) -> int:
        if v not in BREAK_DURATIONS:
            raise ValueError(f"break_duration must be one of {BREAK_DURATIONS}")
        return v


class SyncConfig(BaseModel):
    """Progress simulation settings."""

    removal_delay: float = Field(default=1.0, ge=0)
    tick_ms: int = Field(default=50, gt=0)


class OutputConfig(BaseModel):
    """Output configuration."""

    format: Literal["table", "json", "yaml"] = Field(default="table")
    color: bool = Field(default=True, description="Coloured terminal output")


class AppConfig(BaseModel):
    """Main Joidu Focus configuration."""

    focus: FocusConfig = Field(default_factory=FocusConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
