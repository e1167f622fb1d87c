"""Google Business Profile account and location models."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BusinessAccount(BaseModel):
    """Account record as returned by the Account Management API."""
    name: str  # accounts/{id}
    account_name: Optional[str] = None
    type: Optional[str] = None
    role: Optional[str] = None
    verification_state: Optional[str] = None
    vetted_state: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    @property
    def account_id(self) -> str:
        return self.name.rsplit("/", 1)[-1]


class LocationAddress(BaseModel):
    address_lines: list[str] = Field(default_factory=list)
    locality: Optional[str] = None
    administrative_area: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None


class LocationMetadata(BaseModel):
    duplicate: bool = False
    suspended: bool = False
    can_delete: bool = False
    can_update: bool = True


class LocationProfile(BaseModel):
    """Flattened location record used to seed automation configurations.

    A location always belongs to exactly one account path
    (accounts/{account_id}/locations/{location_id}).
    """
    location_id: str
    name: str
    account_id: Optional[str] = None
    categories: list[str] = Field(default_factory=list)
    website_uri: Optional[str] = None
    phone_number: Optional[str] = None
    address: LocationAddress = Field(default_factory=LocationAddress)
    metadata: LocationMetadata = Field(default_factory=LocationMetadata)
