from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EncryptRequest(BaseModel):
    data: str | None = None


class EncryptResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    encrypted_data: str = Field(alias="encryptedData")


class DecryptRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    encrypted_data: str | None = Field(default=None, alias="encryptedData")


class DecryptResponse(BaseModel):
    data: str
