# routers/payment_requests.py
"""
Payment request API routes for the Kasmoni backend.

Role-based access:
- Member: submit requests for own slots, upload proof, see own requests
- Administrator / super user: list, count and review all requests
"""
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from database import get_session
from models import PaymentRequest
from models.payment_request import PaymentRequestStatus
from schemas.payment_request import (
     EligibleSlotResponse,
     PaymentRequestCreate,
     PaymentRequestListResponse,
     PaymentRequestResponse,
     PaymentRequestReview,
     PaymentRequestReviewResponse,
     PendingCountResponse,
     ProofUploadResponse,
)
from services import ForbiddenError
from services import message_service, payment_request_service
from services.audit_service import ClientInfo
from services.notification_service import (
     Notifier,
     build_payment_notifications,
     dispatch_notifications,
     get_notifier,
)
from utils.auth import Principal, require_admin, require_member, verify_token
from utils.storage import StorageNotConfiguredError, upload_proof
from .dependencies import get_client_info

router = APIRouter(prefix="/api/payment-requests", tags=["payment-requests"])


def _build_request_response(request: PaymentRequest) -> PaymentRequestResponse:
     """PaymentRequestResponse with the member and group names filled in."""
     response = PaymentRequestResponse.model_validate(request)
     response.member_name = request.member.full_name if request.member else None
     response.group_name = request.group.name if request.group else None
     return response


@router.post(
     "",
     response_model=PaymentRequestResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Submit a payment request"
)
def submit_request(
     request_data: PaymentRequestCreate,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_member),
):
     """
     File a payment for one of your own slots. It is billed to the current
     month and waits for an administrator to approve it.
     """
     request = payment_request_service.submit_request(db, principal.member_id, request_data)
     message_service.record_request_submitted(db, request)
     return _build_request_response(request)


@router.post(
     "/proof",
     response_model=ProofUploadResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Upload a proof of payment"
)
def upload_proof_of_payment(
     file: UploadFile = File(...),
     principal: Principal = Depends(require_member),
):
     """Returns the URL to send as proof_of_payment."""
     try:
          url = upload_proof(file, principal.member_id)
     except StorageNotConfiguredError:
          raise HTTPException(
               status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
               detail="File storage is not configured"
          )
     return ProofUploadResponse(url=url)


@router.get(
     "/my",
     response_model=PaymentRequestListResponse,
     summary="Your own payment requests"
)
def list_my_requests(
     request_status: Optional[PaymentRequestStatus] = Query(None, alias="status", description="Filter by status"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_member),
):
     status_value = PaymentRequestStatus(request_status).value if request_status else None
     requests = payment_request_service.list_requests(db, status=status_value, member_id=principal.member_id)
     return PaymentRequestListResponse(
          requests=[_build_request_response(r) for r in requests],
          total=len(requests),
     )


@router.get(
     "/eligible-slots",
     response_model=List[EligibleSlotResponse],
     summary="Groups and slots you can file requests for"
)
def list_eligible_slots(
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_member),
):
     return payment_request_service.eligible_slots(db, principal.member_id)


@router.get(
     "",
     response_model=PaymentRequestListResponse,
     summary="List payment requests"
)
def list_requests(
     request_status: Optional[PaymentRequestStatus] = Query(None, alias="status", description="Filter by status"),
     member_id: Optional[int] = Query(None, description="Filter by member ID"),
     group_id: Optional[int] = Query(None, description="Filter by group ID"),
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_admin),
):
     status_value = PaymentRequestStatus(request_status).value if request_status else None
     requests = payment_request_service.list_requests(db, status_value, member_id, group_id)
     return PaymentRequestListResponse(
          requests=[_build_request_response(r) for r in requests],
          total=len(requests),
     )


@router.get(
     "/pending-count",
     response_model=PendingCountResponse,
     summary="Number of requests awaiting review"
)
def get_pending_count(
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_admin),
):
     return PendingCountResponse(count=payment_request_service.pending_count(db))


@router.get(
     "/{request_id}",
     response_model=PaymentRequestResponse,
     summary="Get payment request by ID"
)
def get_request(
     request_id: int,
     db: Session = Depends(get_session),
     principal: Principal = Depends(verify_token),
):
     """Administrators can read any request; members only their own."""
     request = payment_request_service.get_request(db, request_id)
     if not principal.is_admin and not principal.owns_member(request.member_id):
          raise ForbiddenError("You do not have permission to view this payment request")
     return _build_request_response(request)


@router.put(
     "/{request_id}/review",
     response_model=PaymentRequestReviewResponse,
     summary="Approve or reject a payment request"
)
def review_request(
     request_id: int,
     review: PaymentRequestReview,
     background_tasks: BackgroundTasks,
     db: Session = Depends(get_session),
     principal: Principal = Depends(require_admin),
     client: ClientInfo = Depends(get_client_info),
     notifier: Notifier = Depends(get_notifier),
):
     """
     - **status**: approved or rejected
     - any payment field sent overrides the member's value before the decision

     Approval records one payment with status pending. A request can be
     reviewed only once.
     """
     request, payment = payment_request_service.review_request(db, request_id, review, principal, client)
     if payment is not None:
          notifications = build_payment_notifications(db, [payment])
          message_service.record_payment_notifications(db, notifications)
          background_tasks.add_task(dispatch_notifications, notifier, notifications)
     return PaymentRequestReviewResponse(
          request=_build_request_response(request),
          payment_id=payment.id if payment is not None else None,
     )
