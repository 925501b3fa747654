from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from freshrss_filter.errors import ConfigurationError
from freshrss_filter.utils.text import item_text

# Opaque identifier of a feed item, as given by the feed source.
ItemID = str

DEFAULT_SYSTEM_PROMPT = (
    "You are a strict classifier. Decide if an RSS item is an advertisement or sponsored content. "
    "Reply JSON: {\"is_ad\": boolean, \"confidence\": 0..1, \"reason\": string}."
)

### Item

class FeedItem(BaseModel):
    """
    Unread item in the feed aggregator.
    """
    id: ItemID # The unique identifier of the item.
    title: str = "" # The title of the item.
    url: Optional[str] = None # The URL of the item.
    author: Optional[str] = None # The author of the item.
    content: Optional[str] = None # The plain text body of the item.
    html: Optional[str] = None # The HTML body of the item.
    created_at: Optional[datetime] = Field(default=None, alias="created_on_time") # The date and time the item was created.

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> Any:
        # Fever returns ids both as integers and as numeric strings.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _none_title(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def review_text(self) -> str:
        """
        The text sent to the classifier.
        """
        return item_text(
            title=self.title,
            author=self.author,
            content=self.content,
            html=self.html,
        )

### Classification

class Verdict(BaseModel):
    """
    Classifier verdict for a single item.
    """
    is_ad: bool # Whether the item is an advertisement or sponsored content.
    confidence: float = Field(allow_inf_nan=False) # The classifier confidence, clamped into [0, 1].
    reason: str = "" # A short explanation from the classifier.

    model_config = ConfigDict(
        extra="ignore",
    )

    @field_validator("confidence", mode="after")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return min(max(value, 0.0), 1.0)

    @field_validator("reason", mode="before")
    @classmethod
    def _none_reason(cls, value: Any) -> Any:
        return "" if value is None else value

class ReviewRecord(BaseModel):
    """
    Persisted proof that an item was reviewed, with its latest verdict.
    """
    item_id: ItemID # The identifier of the reviewed item.
    content_hash: str # Fingerprint of the review text.
    is_ad: bool # Whether the item was classified as an advertisement.
    confidence: float # The classifier confidence.
    reason: str # The classifier explanation.
    reviewed_at: datetime # When the verdict was stored.

### Processing

class ProcessAction(str, Enum):
    """
    Terminal outcome of the per-item procedure.
    """
    SKIPPED_EXISTS = "skipped_exists"
    KEPT = "kept"
    MARKED_READ = "marked_read"
    LABELED = "labeled"
    DELETED = "deleted"
    WOULD_ACT = "would_act"

    @property
    def label(self) -> str:
        return {
            ProcessAction.SKIPPED_EXISTS: "skipped (already reviewed)",
            ProcessAction.KEPT: "kept",
            ProcessAction.MARKED_READ: "marked read",
            ProcessAction.LABELED: "labeled",
            ProcessAction.DELETED: "deleted",
            ProcessAction.WOULD_ACT: "would act (dry run)",
        }[self]

class RemediationMode(str, Enum):
    """
    What to do with an actionable item.
    """
    MARK_READ = "mark_read"
    LABEL = "label"
    SOFT_DELETE = "soft_delete"

    @classmethod
    def from_delete_mode(cls, delete_mode: str) -> "RemediationMode":
        """
        Resolve the configured delete mode. Unknown values mean soft delete.
        """
        normalized = delete_mode.strip().lower()
        if normalized == "mark_read":
            return cls.MARK_READ
        if normalized == "label":
            return cls.LABEL
        return cls.SOFT_DELETE

class ItemEvent(BaseModel):
    """
    Progress event emitted after an item finished processing.
    """
    item_id: ItemID # The identifier of the item.
    title: str # The title of the item.
    action: Optional[ProcessAction] = None # The outcome, if the item succeeded.
    error: Optional[str] = None # The error message, if the item failed.

class RunOutcome(BaseModel):
    """
    Aggregated counters of a single pipeline run.
    """
    total: int = 0 # The number of items in the batch.
    skipped_exists: int = 0 # Items reviewed in a previous run.
    kept: int = 0 # Items that were not actionable.
    marked_read: int = 0 # Items marked as read.
    labeled: int = 0 # Items labeled and marked as read.
    deleted: int = 0 # Items soft deleted.
    would_act: int = 0 # Actionable items left untouched in dry run.
    errors: int = 0 # Items that failed.

    def record(self, action: ProcessAction):
        """
        Count a successful item outcome.
        """
        field_name = action.value
        setattr(self, field_name, getattr(self, field_name) + 1)

    def record_error(self):
        """
        Count a failed item.
        """
        self.errors += 1

    @property
    def reviewed(self) -> int:
        return (
            self.skipped_exists
            + self.kept
            + self.marked_read
            + self.labeled
            + self.deleted
            + self.would_act
        )

    def summary(self) -> str:
        """
        Human readable one-line summary of the run.
        """
        return (
            f"reviewed_items={self.reviewed}/{self.total} | "
            f"kept={self.kept} marked_read={self.marked_read} labeled={self.labeled} "
            f"deleted={self.deleted} skipped={self.skipped_exists} "
            f"would_act={self.would_act} errors={self.errors}"
        )

### Settings

class OpenAISettings(BaseModel):
    """
    Settings of the classification endpoint.
    """
    api_key: str = Field(repr=False) # The API key for the OpenAI compatible API.
    api_base: str = "https://api.openai.com/v1" # The base URL of the API.
    model: str = "gpt-4o-mini" # The chat model used for classification.
    temperature: Optional[float] = None # Sampling temperature, omitted when unset.
    max_tokens: Optional[int] = None # Completion token limit, omitted when unset.
    system_prompt: str = DEFAULT_SYSTEM_PROMPT # The classifier instructions.
    threshold: float = Field(default=0.5, ge=0.0, le=1.0) # Minimum confidence to act on an ad.

class FreshRSSSettings(BaseModel):
    """
    Settings of the FreshRSS instance.
    """
    base_url: str # The base URL of the FreshRSS instance.
    fever_api_key: str = Field(repr=False) # The Fever API key (MD5 of `username:password`).
    user_agent: str = "freshrss-filter/0.1" # The User-Agent header for API calls.
    delete_mode: str = "mark_read" # `mark_read`, `label`, or anything else for soft delete.
    greader_username: Optional[str] = None # Google Reader API username, enables labeling.
    greader_password: Optional[str] = Field(default=None, repr=False) # Google Reader API password.
    spam_label: str = "Ads" # The label applied to advertisements.
    request_timeout: float = 30.0 # HTTP timeout in seconds.

    @property
    def labeling_enabled(self) -> bool:
        return bool(self.greader_username and self.greader_password)

class SchedulerSettings(BaseModel):
    """
    Settings of the periodic run.
    """
    cron: str = "0 */10 * * * *" # Cron expression, 5 fields or 6 with leading seconds.

class DatabaseSettings(BaseModel):
    """
    Settings of the review store.
    """
    path: str = "freshrss-filter.db" # Path of the SQLite database.

class AppEnvSettings(BaseSettings):
    """
    App settings from the config file and environment variables.
    """
    openai: OpenAISettings
    freshrss: FreshRSSSettings
    scheduler: SchedulerSettings = SchedulerSettings()
    database: DatabaseSettings = DatabaseSettings()
    dry_run: bool = False # Identify ads without modifying items.
    concurrency: int = Field(default=5, ge=1) # Items processed simultaneously.

    model_config = SettingsConfigDict(
        env_prefix="FRF_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

class AppConfig(BaseModel):
    """
    Global app config.
    """
    openai: OpenAISettings # Classification endpoint settings.
    freshrss: FreshRSSSettings # FreshRSS settings.
    scheduler: SchedulerSettings # Periodic run settings.
    database: DatabaseSettings # Review store settings.
    dry_run: bool = False # Identify ads without modifying items.
    concurrency: int = Field(default=5, ge=1) # Items processed simultaneously.
    remediation_mode: RemediationMode = RemediationMode.MARK_READ # Resolved from `freshrss.delete_mode`.

    model_config = ConfigDict(
        frozen=True,
    )

    @model_validator(mode="after")
    def _check_labeling(self) -> "AppConfig":
        if self.remediation_mode is RemediationMode.LABEL and not self.freshrss.labeling_enabled:
            raise ConfigurationError(
                "delete_mode is \"label\" but greader_username/greader_password are not set."
            )
        return self
