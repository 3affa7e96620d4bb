# routers/banks.py
"""
Bank registry API routes.

Any signed-in user can read the registry; only administrators change it.
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_session
from schemas.bank import BankCreate, BankResponse, BankUpdate
from services import bank_service
from utils.auth import Principal, require_admin, verify_token

router = APIRouter(prefix="/api/banks", tags=["banks"])


@router.get("", response_model=List[BankResponse], summary="List banks by name")
def list_banks(
     db: Session = Depends(get_session),
     principal: Principal = Depends(verify_token),
):
     return bank_service.list_banks(db)


@router.get("/{bank_id}", response_model=BankResponse, summary="Get bank by ID")
def get_bank(
     bank_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(verify_token),
):
     return bank_service.get_bank(db, bank_id)


@router.post(
     "",
     response_model=BankResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Add a bank"
)
def create_bank(
     bank_data: BankCreate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_admin),
):
     return bank_service.create_bank(db, bank_data)


@router.put("/{bank_id}", response_model=BankResponse, summary="Update a bank")
def update_bank(
     bank_id: int,
     bank_data: BankUpdate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_admin),
):
     return bank_service.update_bank(db, bank_id, bank_data)


@router.delete("/{bank_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an unused bank")
def delete_bank(
     bank_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_admin),
):
     bank_service.delete_bank(db, bank_id)
