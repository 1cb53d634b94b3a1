from datetime import datetime
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from contentgen.db import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    subscription_id = Column(
        Integer, ForeignKey("subscriptions.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(String(64), nullable=False)
    state = Column(String(32), nullable=False, default="completed")
    paid_at = Column(DateTime, default=datetime.now, nullable=False)

    subscription = relationship("Subscription", back_populates="payments")
