"""
Quote Run model - one batch of shipments quoted together.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Numeric, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from rateshop.db.database import Base


class QuoteRunStatus(str, enum.Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class QuoteRun(Base):
    __tablename__ = "quote_runs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True)
    name = Column(String, nullable=False)
    strategy = Column(String, nullable=False, default="parallel")
    status = Column(
        SQLEnum(
            QuoteRunStatus,
            native_enum=False,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        default=QuoteRunStatus.PROCESSING.value,
    )

    shipment_count = Column(Integer, nullable=False, default=0)
    success_count = Column(Integer, nullable=False, default=0)
    error_count = Column(Integer, nullable=False, default=0)
    total_quotes_received = Column(Integer, nullable=False, default=0)
    best_total_price = Column(Numeric(12, 2), nullable=True)
    total_profit = Column(Numeric(12, 2), nullable=True)

    pricing_settings = Column(JSONB, nullable=True)  # {"margin_percentage": 15, "minimum_profit": 100}
    selected_carrier_ids = Column(JSONB, nullable=True)
    summary_metrics = Column(JSONB, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = relationship("Customer", back_populates="quote_runs")
    results = relationship(
        "QuoteResult",
        back_populates="quote_run",
        cascade="all, delete-orphan",
        order_by="QuoteResult.row_index",
    )
