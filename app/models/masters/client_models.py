from sqlalchemy import Column, Integer, String, Text, Index
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, OwnerMixin


class Client(Base, TimestampMixin, OwnerMixin):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)

    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    gstin = Column(String(15), nullable=True)

    invoices = relationship("Invoice", back_populates="client", lazy="noload")

    __table_args__ = (Index("ix_client_user_name", "user_id", "name"),)

    def __repr__(self):
        return f"<Client id={self.id} name={self.name}>"
