"""Configuration management for f06kit."""

from pydantic import Field
from pydantic_settings import BaseSettings

from f06kit.models.diff import MissingRowPolicy, ToleranceConfig, ToleranceMode


class Settings(BaseSettings):
    """Settings loaded from environment variables (prefix F06KIT_)."""

    # Parsing
    max_blank_run: int = Field(default=2, ge=1)
    merge_blocks: bool = True

    # Diff defaults
    tolerance_mode: ToleranceMode = ToleranceMode.ABSOLUTE_OR_RELATIVE
    abs_tolerance: float = 0.0
    rel_tolerance: float = 0.0
    flag_sign_change: bool = False
    missing_rows: MissingRowPolicy = MissingRowPolicy.FLAG

    # Reporting / export
    csv_delimiter: str = ","
    max_reported_deltas: int = 10

    # Logging
    log_level: str = "INFO"

    @property
    def tolerance(self) -> ToleranceConfig:
        """Default tolerance policy for the diff engine."""
        return ToleranceConfig(
            mode=self.tolerance_mode,
            abs_tol=self.abs_tolerance,
            rel_tol=self.rel_tolerance,
            flag_sign_change=self.flag_sign_change,
        )

    class Config:
        env_prefix = "F06KIT_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
