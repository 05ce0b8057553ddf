import datetime as dt
from enum import StrEnum
from typing import Optional
from pydantic import Field
from salescoach.models.base import MongoBaseModel


class AccountType(StrEnum):
    GENERAL_HOSPITAL = "general_hospital"
    HOSPITAL = "hospital"
    CLINIC = "clinic"
    PHARMACY = "pharmacy"


class AccountRecord(MongoBaseModel):
    """A customer site (hospital, clinic, pharmacy) visited by the field team."""
    name: str
    account_type: AccountType = AccountType.CLINIC


class PrescriptionRecord(MongoBaseModel):
    """
    A prescribed quantity of a product at an account.
    Linked to activities only through the optional weak back-reference.
    """
    account_id: str
    contact_id: Optional[str] = None
    product_name: str
    quantity: float = Field(default=0, ge=0)
    price: float = Field(default=0, ge=0)
    prescription_date: dt.datetime
    related_activity_id: Optional[str] = None
