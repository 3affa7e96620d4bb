# schemas/__init__.py
from .member import (
     MemberCreate,
     MemberUpdate,
     MemberResponse,
     MemberListResponse,
)
from .group import (
     GroupCreate,
     GroupUpdate,
     GroupResponse,
     GroupDetailResponse,
     GroupStatusResponse,
     GroupMemberCreate,
     GroupMemberResponse,
     GroupWithRecipientResponse,
)
from .payment import (
     PaymentCreate,
     PaymentUpdate,
     PaymentStatusUpdate,
     PaymentResponse,
     PaymentListResponse,
     BulkPaymentItem,
     BulkPaymentCreate,
)
from .payment_request import (
     PaymentRequestCreate,
     PaymentRequestReview,
     PaymentRequestResponse,
)
from .payment_log import PaymentLogResponse, PaymentLogListResponse

__all__ = [
     "MemberCreate",
     "MemberUpdate",
     "MemberResponse",
     "MemberListResponse",
     "GroupCreate",
     "GroupUpdate",
     "GroupResponse",
     "GroupDetailResponse",
     "GroupStatusResponse",
     "GroupMemberCreate",
     "GroupMemberResponse",
     "GroupWithRecipientResponse",
     "PaymentCreate",
     "PaymentUpdate",
     "PaymentStatusUpdate",
     "PaymentResponse",
     "PaymentListResponse",
     "BulkPaymentItem",
     "BulkPaymentCreate",
     "PaymentRequestCreate",
     "PaymentRequestReview",
     "PaymentRequestResponse",
     "PaymentLogResponse",
     "PaymentLogListResponse",
]
