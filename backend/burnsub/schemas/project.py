from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _ProjectModel(BaseModel):
    """Frozen model that matches incoming keys case-insensitively.

    Clients send both ``Video`` and ``video`` style keys.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _lowercase_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k.lower() if isinstance(k, str) else k: v for k, v in data.items()}
        return data


class Position(_ProjectModel):
    x: str = "center"  # left, right, center
    y: str = "center"  # top, bottom, center


class Subtitle(_ProjectModel):
    text: str = ""
    time: float = 0.0
    duration: float = 0.0
    color: str = ""
    position: Position = Field(default_factory=Position)

    def is_active(self, t: float) -> bool:
        """Whether the subtitle is shown at ``t`` seconds (both ends inclusive)."""
        return self.time <= t <= self.time + self.duration


class Project(_ProjectModel):
    id: str = ""
    video: str
    silent: bool = False
    subtitles: tuple[Subtitle, ...] = ()

    def active_subtitles(self, t: float) -> list[Subtitle]:
        """Subtitles active at ``t`` seconds, in submission order."""
        return [subtitle for subtitle in self.subtitles if subtitle.is_active(t)]
