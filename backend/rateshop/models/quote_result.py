"""
Quote Result model - the persisted outcome for one shipment of a run.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from rateshop.db.database import Base


class QuoteResult(Base):
    __tablename__ = "quote_results"
    __table_args__ = (UniqueConstraint("quote_run_id", "row_index", name="uq_quote_results_run_row"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quote_run_id = Column(UUID(as_uuid=True), ForeignKey("quote_runs.id"), nullable=False)
    row_index = Column(Integer, nullable=False)

    status = Column(String, nullable=False)  # success, success_unpriced, error
    error = Column(String, nullable=True)
    routing_decision = Column(String, nullable=True)  # reefer, standard, dual
    routing_reason = Column(String, nullable=True)

    from_zip = Column(String, nullable=True)
    to_zip = Column(String, nullable=True)
    quote_count = Column(Integer, nullable=False, default=0)
    best_carrier = Column(String, nullable=True)
    best_price = Column(Numeric(10, 2), nullable=True)

    shipment = Column(JSONB, nullable=False)  # ShipmentRecord as submitted
    quotes = Column(JSONB, nullable=True)  # list of Quote dicts

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    quote_run = relationship("QuoteRun", back_populates="results")
