# schemas/bank.py
"""
Pydantic schemas for the bank registry.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class BankBase(BaseModel):
     bank_name: str = Field(..., min_length=1, max_length=100)
     short_name: str = Field(..., min_length=1, max_length=20)
     bank_address: Optional[str] = Field(None, max_length=200)


class BankCreate(BankBase):
     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "bank_name": "Finabank N.V.",
                    "short_name": "FINA",
                    "bank_address": "Dr. Sophie Redmondstraat 59-61, Paramaribo"
               }
          }
     )


class BankUpdate(BankBase):
     """Full replacement of a bank entry."""


class BankResponse(BankBase):
     id: int
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)
