from sqlalchemy import Column, String, DateTime, Integer, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base

class Ticket(Base):
    __tablename__ = "tickets"

    # Assigned from the "ticket" counter in the sequences table, never by the engine
    id = Column(Integer, primary_key=True, index=True, autoincrement=False)

    title = Column(String(200), nullable=False)
    description = Column(String(2000), nullable=False)
    priority = Column(Integer, nullable=False)   # 1=low .. 4=urgent
    status = Column(Integer, nullable=False)     # 1=open 2=in_progress 3=resolved 4=closed
    category = Column(Integer, nullable=False)   # 1=hardware 2=software 3=network 4=other

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    creator = relationship("User", foreign_keys=[created_by])
    assignee = relationship("User", foreign_keys=[assigned_to])
    updates = relationship(
        "Update",
        back_populates="ticket",
        passive_deletes=True,
        order_by="Update.created_at",
    )

    # timestamps are written by the lifecycle service so they are identical across dialects
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    @property
    def creator_name(self):
        return self.creator.full_name if self.creator else None

    @property
    def assignee_name(self):
        return self.assignee.full_name if self.assignee else None
