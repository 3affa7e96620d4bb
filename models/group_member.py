# models/group_member.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from .base import Base


class GroupMember(Base):
     """
     Slot assignment: the member who receives the group's payout in
     receive_month. A month can be held by only one member per group.
     """
     __tablename__ = "group_members"
     __table_args__ = (
          UniqueConstraint("group_id", "receive_month", name="uq_group_members_group_month"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
     member_id = Column(Integer, ForeignKey("members.id"), nullable=False, index=True)
     receive_month = Column(String(7), nullable=False)
     joined_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     group = relationship("Group", back_populates="slots")
     member = relationship("Member", back_populates="slots")

     def __repr__(self):
          return f"<GroupMember(group_id={self.group_id}, member_id={self.member_id}, receive_month='{self.receive_month}')>"
