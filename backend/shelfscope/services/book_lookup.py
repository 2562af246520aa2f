"""Resolve the books a user picked during onboarding for display in the report."""
import logging
from typing import List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session

from shelfscope.models import Book
from shelfscope.schemas.report import SelectedBook

logger = logging.getLogger(__name__)


class BookLookup:
    def __init__(self, db: Session):
        self.db = db

    def find_many(self, ids: Optional[Sequence[str]]) -> List[SelectedBook]:
        """
        Look up books by internal id or external id, in the order requested.

        Unknown ids are skipped. Any lookup failure yields an empty list so the report
        can still be generated.
        """
        wanted = list(dict.fromkeys(i for i in (ids or []) if i))
        if not wanted:
            return []

        try:
            books = self.db.query(Book).filter(
                or_(Book.id.in_(wanted), Book.external_id.in_(wanted))
            ).all()
        except Exception as e:
            # Never break report generation - log and continue without books
            logger.warning("[BOOKS] selected book lookup failed: ids=%s, error=%s", wanted, e, exc_info=True)
            return []

        by_id = {}
        for book in books:
            by_id[book.id] = book
            if book.external_id:
                by_id.setdefault(book.external_id, book)

        found: List[SelectedBook] = []
        seen = set()
        for book_id in wanted:
            book = by_id.get(book_id)
            if book is None:
                logger.debug("[BOOKS] book not found for id=%s", book_id)
                continue
            if book.id in seen:
                continue
            seen.add(book.id)
            found.append(
                SelectedBook(
                    id=book.id,
                    title=book.title,
                    author=book.author_name,
                    cover_image=book.cover_image_url,
                )
            )
        return found
