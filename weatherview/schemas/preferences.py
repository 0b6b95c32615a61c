from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class UserPreferences(BaseModel):
    hometown: str = Field(default="", max_length=128)
    api_key: str = Field(default="", max_length=128)

    @field_validator("hometown", "api_key")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()


class PreferencesUpdate(BaseModel):
    hometown: str | None = Field(default=None, max_length=128)
    api_key: str | None = Field(default=None, max_length=128)


class PreferencesRead(BaseModel):
    hometown: str
    api_key_set: bool
    api_key_hint: str | None = None

    @classmethod
    def from_preferences(cls, prefs: UserPreferences) -> PreferencesRead:
        hint = f"...{prefs.api_key[-4:]}" if len(prefs.api_key) > 8 else None
        return cls(hometown=prefs.hometown, api_key_set=bool(prefs.api_key), api_key_hint=hint)
