# models/message.py
import enum
from sqlalchemy import Column, Integer, String, Text
from .base import Base, TimestampMixin


class MessageType(str, enum.Enum):
     DELETE_ACCOUNT = "delete_account"
     CHANGE_INFO = "change_info"
     PAYMENT_NOTIFICATION = "payment_notification"


class MessageStatus(str, enum.Enum):
     """pending doubles as unread in the administrators' inbox."""
     PENDING = "pending"
     APPROVED = "approved"
     REJECTED = "rejected"
     READ = "read"


class Message(TimestampMixin, Base):
     """
     Message model - the member/administrator inbox.

     Members file account requests here, and payment notifications are kept
     as messages next to the e-mail that is sent. The member's name and
     contact details are copied in, so member_id carries no foreign key and
     a message outlives the member it names.
     """
     __tablename__ = "messages"

     id = Column(Integer, primary_key=True, autoincrement=True)
     member_id = Column(Integer, nullable=False, index=True)
     member_name = Column(String(101), nullable=False)
     member_email = Column(String(255), nullable=True)
     member_phone = Column(String(20), nullable=True)

     request_type = Column(String(30), nullable=False)
     request_details = Column(Text, nullable=False)
     status = Column(String(20), nullable=False, default=MessageStatus.PENDING.value, index=True)
     admin_notes = Column(Text, nullable=True)

     def __repr__(self):
          return f"<Message(id={self.id}, member_id={self.member_id}, type='{self.request_type}', status='{self.status}')>"
