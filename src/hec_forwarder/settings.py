from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, frozen=True)

    hec_url: str = Field(alias="SPLUNK_HEC_URL")
    hec_token: str = Field(alias="SPLUNK_HEC_TOKEN")
    # Events are only ever sent by an explicit flush at the end of an invocation.
    hec_max_batch_count: int = Field(default=0, alias="SPLUNK_HEC_MAX_BATCH_COUNT")
    hec_max_retries: int = Field(default=3, alias="SPLUNK_HEC_MAX_RETRIES")
    hec_retry_base_delay_ms: int = Field(default=100, alias="SPLUNK_HEC_RETRY_BASE_DELAY_MS")
    hec_retry_max_delay_ms: int = Field(default=2000, alias="SPLUNK_HEC_RETRY_MAX_DELAY_MS")
    hec_timeout_s: float = Field(default=10.0, alias="SPLUNK_HEC_TIMEOUT_S")
    hec_verify_tls: bool = Field(default=True, alias="SPLUNK_HEC_VERIFY_TLS")
    hec_index: str | None = Field(default=None, alias="SPLUNK_HEC_INDEX")
    hec_host: str = Field(default="serverless", alias="SPLUNK_HEC_HOST")

    change_record_sourcetype: str = Field(default="aws:dynamodb", alias="CHANGE_RECORD_SOURCETYPE")
    archive_sourcetype: str = Field(default="aws:cloudtrail", alias="ARCHIVE_SOURCETYPE")
    archive_records_field: str = Field(default="Records", alias="ARCHIVE_RECORDS_FIELD")
    archive_time_field: str = Field(default="eventTime", alias="ARCHIVE_TIME_FIELD")

    aws_region: str | None = Field(default=None, alias="AWS_REGION")

    @field_validator("hec_url")
    @classmethod
    def _validate_hec_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("SPLUNK_HEC_URL must be an absolute http(s) URL")
        return value

    @field_validator("hec_token")
    @classmethod
    def _validate_hec_token(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("SPLUNK_HEC_TOKEN must not be blank")
        return value.strip()

    @field_validator("hec_max_batch_count")
    @classmethod
    def _validate_manual_flush(cls, value: int) -> int:
        if value != 0:
            raise ValueError("SPLUNK_HEC_MAX_BATCH_COUNT must be 0 (manual flush only)")
        return value

    @field_validator("hec_max_retries")
    @classmethod
    def _validate_max_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("SPLUNK_HEC_MAX_RETRIES must be >= 0")
        return value

    @field_validator("hec_retry_base_delay_ms")
    @classmethod
    def _validate_retry_base_delay(cls, value: int) -> int:
        if value < 1:
            raise ValueError("SPLUNK_HEC_RETRY_BASE_DELAY_MS must be > 0")
        return value

    @field_validator("hec_timeout_s")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("SPLUNK_HEC_TIMEOUT_S must be > 0")
        return value

    @field_validator("hec_index")
    @classmethod
    def _blank_index_is_unset(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _validate_retry_delay_bounds(self) -> Settings:
        if self.hec_retry_max_delay_ms < self.hec_retry_base_delay_ms:
            raise ValueError(
                "SPLUNK_HEC_RETRY_MAX_DELAY_MS must be >= SPLUNK_HEC_RETRY_BASE_DELAY_MS"
            )
        return self
