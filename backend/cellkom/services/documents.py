from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cellkom.core.enums import DocumentType
from cellkom.models.document_counter import DocumentCounter


_PREFIXES: dict[DocumentType, str] = {
    DocumentType.SALES_TRANSACTION: "TRX",
    DocumentType.SERVICE_TRANSACTION: "SRV",
}


def format_document_number(doc_type: DocumentType, *, year: int, number: int) -> str:
    return f"{_PREFIXES.get(doc_type, 'DOC')}-{year}-{number:06d}"


async def next_document_number(session: AsyncSession, *, doc_type: DocumentType, issue_date: date) -> str:
    """Allocate the next number for `doc_type` in the year of `issue_date` (gapless per year)."""
    counter = (
        await session.execute(
            select(DocumentCounter)
            .where(DocumentCounter.doc_type == doc_type, DocumentCounter.year == issue_date.year)
            .with_for_update()
        )
    ).scalar_one_or_none()
    if counter is None:
        counter = DocumentCounter(doc_type=doc_type, year=issue_date.year, next_number=1)
        session.add(counter)

    number = counter.next_number
    counter.next_number = number + 1
    await session.flush()

    return format_document_number(doc_type, year=issue_date.year, number=number)
