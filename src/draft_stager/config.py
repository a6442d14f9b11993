"""Configuration settings for draft staging."""

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoringWeights(BaseModel):
    """Weights used to rank model menu entries.

    Only the ordering matters: identifier matches outrank label matches,
    which outrank token overlap.
    """

    testid_exact: int = 1500
    testid_exact_prefixed: int = 200
    testid_partial_base: int = 200
    testid_partial_per_char: int = 25
    testid_partial_cap: int = 900
    testid_partial_prefixed: int = 120
    testid_partial_gpt: int = 60
    text_exact: int = 500
    text_prefix: int = 420
    text_substring: int = 380
    token_per_char: int = 4
    token_min: int = 10
    token_max: int = 120
    missing_word_penalty: int = 12
    modifier_missing_penalty: int = 80
    modifier_extra_penalty: int = 40


class Timings(BaseModel):
    """Poll intervals and wait budgets, in seconds."""

    target_poll_interval: float = 0.3
    created_target_wait: float = 6.0
    created_target_poll_interval: float = 0.2
    attach_attempts: int = 6
    attach_retry_delay: float = 0.25
    ready_poll_interval: float = 0.3
    menu_initial_wait: float = 0.15
    menu_reopen_interval: float = 0.4
    menu_max_wait: float = 20.0
    thinking_poll_interval: float = 0.1
    thinking_max_wait: float = 10.0
    attachment_poll_interval: float = 0.25
    attachment_min_wait: float = 20.0


class Settings(BaseSettings):
    """Draft staging configuration."""

    # CDP endpoint
    remote_host: str = "127.0.0.1"
    remote_port: int = 9222

    # Draft contents
    url: str = "https://chatgpt.com"
    model: str = "gpt-5.2-pro"
    thinking: str = "extended"
    prompt: str = ""
    files: str = ""

    timeout_ms: int = 90000

    # Retry settings
    max_attempts: int = 3
    retry_backoff: float = 0.25

    timings: Timings = Field(default_factory=Timings)
    weights: ScoringWeights = Field(default_factory=ScoringWeights)

    model_config = SettingsConfigDict(
        env_prefix="DRAFT_",
        env_nested_delimiter="__",
    )

    @field_validator("thinking", mode="before")
    @classmethod
    def lower_thinking(cls, v: str | None) -> str:
        return (v or "extended").strip().lower()

    @property
    def timeout(self) -> float:
        """Overall timeout in seconds."""
        return self.timeout_ms / 1000

    def get_cdp_base_url(self) -> str:
        return f"http://{self.remote_host}:{self.remote_port}"

    def get_attachment_paths(self) -> list[str]:
        """Split the newline-separated ``files`` value into paths."""
        return [line.strip() for line in self.files.split("\n") if line.strip()]
