"""Request payloads. Keys on the wire are camelCase."""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, conint, field_validator

from models import BRIEF_TEMPLATES, DEFAULT_TEMPLATE
from utils import MAX_ROW_ID

OfferStatus = Literal["new", "shortlist", "rejected"]
Role = Literal["standard", "administrator"]

# true/false and "12" are not ids
OfferId = conint(strict=True, ge=1, le=MAX_ROW_ID)
MAX_BULK_IDS = 500


class _Payload(BaseModel):
    # unknown keys (a "status" on a new offer, for one) are dropped
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")


class _VerbatimPayload(BaseModel):
    # passwords keep their surrounding whitespace
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LoginInput(_VerbatimPayload):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=200)

    @field_validator("username", mode="before")
    @classmethod
    def _strip_username(cls, v):
        return v.strip() if isinstance(v, str) else v


class BriefInput(_Payload):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    expected_result: str = Field(min_length=1, alias="expectedResult")
    deadline: str = Field(min_length=1, max_length=200)
    budget: Optional[str] = Field(default=None, max_length=200)
    criteria: List[str] = Field(default_factory=list)
    template: str = DEFAULT_TEMPLATE

    @field_validator("criteria")
    @classmethod
    def _drop_blank_criteria(cls, v: List[str]) -> List[str]:
        return [c.strip() for c in v if c and c.strip()]

    @field_validator("template")
    @classmethod
    def _known_template(cls, v: str) -> str:
        if v not in BRIEF_TEMPLATES:
            raise ValueError("unknown template")
        return v


class OfferInput(_Payload):
    freelancer_name: str = Field(min_length=1, max_length=200, alias="freelancerName")
    contact: str = Field(min_length=1, max_length=255)
    portfolio: Optional[str] = None
    experience: Optional[str] = None
    skills: Optional[str] = None
    approach: str = Field(min_length=1)
    deadline: str = Field(min_length=1, max_length=200)
    price: str = Field(min_length=1, max_length=200)
    guarantees: Optional[str] = None
    risks: Optional[str] = None


class StatusInput(_Payload):
    status: OfferStatus


class BulkStatusInput(_Payload):
    offer_ids: List[OfferId] = Field(min_length=1, max_length=MAX_BULK_IDS, alias="offerIds")
    status: OfferStatus


class BulkDeleteInput(_Payload):
    offer_ids: List[OfferId] = Field(min_length=1, max_length=MAX_BULK_IDS, alias="offerIds")


class RoleInput(_Payload):
    role: Role


class ResetPasswordInput(_VerbatimPayload):
    new_password: str = Field(min_length=1, max_length=200, alias="newPassword")


# ---- text-generation payloads ----

class ProjectTextInput(_Payload):
    template: str = DEFAULT_TEMPLATE
    title: str = ""
    description: str = Field(min_length=1)
    result: str = ""
    deadline: str = ""
    budget: str = ""


class ProjectSummary(_Payload):
    title: str = ""
    description: str = ""
    result: str = ""


class OfferText(_Payload):
    approach: str = Field(min_length=1)
    deadline: str = ""
    price: str = ""
    guarantees: str = ""
    risks: str = ""


class OfferTextInput(_Payload):
    template: str = DEFAULT_TEMPLATE
    project: ProjectSummary
    offer: OfferText
