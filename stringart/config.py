from typing import Optional, Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class ConfigurationError(ValueError):
    """Raised when a run cannot be set up from the given parameters."""


class StringArtConfig(BaseModel):
    """
    Immutable settings for one string art run.

    Passed as-is to the anchor generator, the chord rasterizer and the
    selector loop. Invalid values raise pydantic.ValidationError.
    """

    model_config = ConfigDict(frozen=True)

    size: int = 300
    num_anchors: int = 271
    min_separation: Optional[int] = None  # None -> num_anchors // 15
    tolerance: float = 0.5
    mode: Literal["fast", "slow"] = "fast"
    shape: Literal["circle", "square"] = "circle"
    start_anchor: int = 0
    max_chords: Optional[int] = None
    cache_masks: bool = False
    workers: int = 1

    @field_validator("size", "num_anchors")
    @classmethod
    def _at_least_two(cls, v: int) -> int:
        if v < 2:
            raise ValueError(f"must be at least 2, got {v}")
        return v

    @field_validator("min_separation", "max_chords")
    @classmethod
    def _not_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError(f"must not be negative, got {v}")
        return v

    @field_validator("tolerance")
    @classmethod
    def _tolerance_not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"tolerance is a positive slack on the loss, got {v}")
        return v

    @field_validator("workers")
    @classmethod
    def _at_least_one_worker(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"need at least one worker, got {v}")
        return v

    @model_validator(mode="after")
    def _check_layout(self) -> "StringArtConfig":
        if self.shape == "square" and self.num_anchors % 4 != 0:
            raise ValueError(
                f"square layout needs num_anchors to be a multiple of 4, got {self.num_anchors}"
            )
        if not 0 <= self.start_anchor < self.num_anchors:
            raise ValueError(
                f"start_anchor must be in [0, {self.num_anchors}), got {self.start_anchor}"
            )
        return self

    @property
    def separation(self) -> int:
        """Effective minimum anchor separation for an admissible chord."""
        if self.min_separation is not None:
            return self.min_separation
        return self.num_anchors // 15

    @property
    def crop_to_circle(self) -> bool:
        return self.shape == "circle"
