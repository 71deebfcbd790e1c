from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./cellkom.db"

DEFAULT_STORE_NAME = "CELLKOM"
DEFAULT_STORE_TAGLINE = "Pusat Service Hp dan Komputer"
DEFAULT_STORE_ADDRESS = "Jorong Kampung Baru, Muaro Paiti, Kec. Kapur IX"
DEFAULT_STORE_PHONE = "082285959441"
DEFAULT_RECEIPT_FOOTER = "Terima kasih telah berbelanja!\nBarang yang sudah dibeli tidak dapat dikembalikan."
DEFAULT_WALK_IN_CUSTOMER_NAME = "Pelanggan Umum"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(DEFAULT_DATABASE_URL, alias="DATABASE_URL")

    basic_auth_username: str = Field(..., alias="BASIC_AUTH_USERNAME")
    basic_auth_password: str = Field(..., alias="BASIC_AUTH_PASSWORD")

    cors_origins: str | None = Field(None, alias="CORS_ORIGINS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Printed on every receipt header/footer.
    store_name: str = Field(DEFAULT_STORE_NAME, alias="STORE_NAME")
    store_tagline: str | None = Field(DEFAULT_STORE_TAGLINE, alias="STORE_TAGLINE")
    store_address: str = Field(DEFAULT_STORE_ADDRESS, alias="STORE_ADDRESS")
    store_phone: str | None = Field(DEFAULT_STORE_PHONE, alias="STORE_PHONE")
    receipt_footer: str = Field(DEFAULT_RECEIPT_FOOTER, alias="RECEIPT_FOOTER")

    walk_in_customer_name: str = Field(DEFAULT_WALK_IN_CUSTOMER_NAME, alias="WALK_IN_CUSTOMER_NAME")
    low_stock_threshold: int = Field(3, alias="LOW_STOCK_THRESHOLD", ge=0)

    @field_validator("store_name", "walk_in_customer_name", mode="before")
    @classmethod
    def _strip_required_text(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("store_address", "receipt_footer", mode="before")
    @classmethod
    def _normalize_multiline(cls, v: object) -> object:
        # `.env` files carry "\n" escapes; receipts need real line breaks.
        if isinstance(v, str):
            return v.replace("\\n", "\n").replace("\r\n", "\n").strip()
        return v

    @field_validator("store_tagline", "store_phone", "cors_origins", mode="before")
    @classmethod
    def _empty_to_none(cls, v: object) -> object:
        if v is None:
            return None
        if isinstance(v, str):
            text = v.strip()
            return text or None
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper() or "INFO"
        return v

    @property
    def store_address_lines(self) -> list[str]:
        return [line for line in self.store_address.split("\n") if line.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
