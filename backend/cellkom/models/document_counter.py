from __future__ import annotations

from sqlalchemy import CheckConstraint, Integer
from sqlalchemy.orm import Mapped, mapped_column

from cellkom.core.enums import DocumentType
from cellkom.models.base import Base
from cellkom.models.sql_enums import document_type_enum


class DocumentCounter(Base):
    """Next TRX/SRV number per document type and calendar year."""

    __tablename__ = "document_counters"
    __table_args__ = (CheckConstraint("next_number >= 1", name="next_number_positive"),)

    doc_type: Mapped[DocumentType] = mapped_column(document_type_enum, primary_key=True)
    year: Mapped[int] = mapped_column(Integer, primary_key=True)
    next_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
