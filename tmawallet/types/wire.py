from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class AccessRequest(_WireModel):
    project_public_token: str = Field(alias="projectPublicToken", description="Public token of the host project")
    host_session_token: str = Field(alias="hostSessionToken", description="Opaque session token from the host platform")
    client_public_key: str = Field(alias="clientPublicKey", description="Hex-encoded client lookup tag")


class AccessData(_WireModel):
    intermediary_key: str = Field(alias="intermediaryKey", description="Hex-encoded server half of the key")


class AccessResponse(_WireModel):
    result: bool = Field(description="True when the server issued an intermediary key")
    data: Optional[AccessData] = Field(default=None, description="Present when result is true")
    error: Optional[str] = Field(default=None, description="Present when result is false")


class AddressReport(_WireModel):
    project_public_token: str = Field(alias="projectPublicToken", description="Public token of the host project")
    host_session_token: str = Field(alias="hostSessionToken", description="Opaque session token from the host platform")
    wallet_address: str = Field(alias="walletAddress", description="Checksummed wallet address")
