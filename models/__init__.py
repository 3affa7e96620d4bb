# models/__init__.py
from .base import Base
from .member import Member
from .group import Group
from .group_member import GroupMember
from .payment import Payment, PaymentStatus, PaymentType
from .payment_request import PaymentRequest, PaymentRequestStatus
from .payment_log import PaymentLog, PaymentLogAction
from .payment_trashbox import PaymentTrashbox
from .payment_archive import PaymentArchive
from .bank import Bank
from .message import Message, MessageStatus, MessageType

__all__ = [
     "Base",
     "Member",
     "Group",
     "GroupMember",
     "Payment",
     "PaymentStatus",
     "PaymentType",
     "PaymentRequest",
     "PaymentRequestStatus",
     "PaymentLog",
     "PaymentLogAction",
     "PaymentTrashbox",
     "PaymentArchive",
     "Bank",
     "Message",
     "MessageStatus",
     "MessageType",
]
