from sqlalchemy import Column, String, DateTime, Integer, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base


class Update(Base):
    """Append-only comment on a ticket."""
    __tablename__ = "updates"

    id = Column(Integer, primary_key=True, index=True, autoincrement=False)
    ticket_id = Column(Integer, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    ticket = relationship("Ticket", back_populates="updates")

    updated_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    author = relationship("User")

    message = Column(String(1000), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    @property
    def author_name(self):
        return self.author.full_name if self.author else None
