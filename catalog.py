import math

from flask import current_app
from sqlalchemy import or_

from errors import InvalidInput, NotFound
from models import BOOK_TYPES, Book, BookAuditLog

REQUIRED_FIELDS = ("title", "author", "price")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_PAGE = 1_000_000
MAX_LIMIT = 100


def page_arg(value, default, maximum):
    """Positive int from a query-string value, else the default; capped at maximum."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    return min(number, maximum)


def finite_number(value, name):
    """Non-negative finite float, else InvalidInput."""
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a number")
    if not math.isfinite(number):
        raise InvalidInput(f"{name} must be a finite number")
    if number < 0:
        raise InvalidInput(f"{name} cannot be negative")
    return number


def whole_number(value, name):
    """Non-negative integer; 3 and "3" pass, 2.9 does not."""
    number = finite_number(value, name)
    if number != int(number):
        raise InvalidInput(f"{name} must be a whole number")
    return int(number)


def _truthy(value):
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def clean_fields(data, partial=False):
    """Validate a book payload and return the editable fields it contains."""
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object")

    fields = {key: data[key] for key in Book.FIELDS if key in data}

    if not partial:
        missing = [name for name in REQUIRED_FIELDS if fields.get(name) in (None, "")]
        if missing:
            raise InvalidInput(f"Missing required fields: {', '.join(missing)}")
    elif not fields:
        raise InvalidInput("No book fields to update")

    for name in ("title", "author"):
        if name in fields and not str(fields[name] or "").strip():
            raise InvalidInput(f"{name} cannot be blank")

    if "price" in fields:
        finite_number(fields["price"], "price")

    if "stock" in fields:
        whole_number(fields["stock"], "stock")

    if "bookType" in fields and fields["bookType"] not in BOOK_TYPES:
        raise InvalidInput(f"bookType must be one of: {', '.join(BOOK_TYPES)}")

    return fields


class BookCatalog:
    """Reads and writes the books table; every write is audited except delete."""

    def __init__(self, session):
        self.session = session

    def _newest_first(self, query):
        return query.order_by(Book.created_at.desc())

    def list_all(self):
        return self._newest_first(self.session.query(Book)).all()

    def list_admin(self, page=None, limit=None):
        page = page_arg(page, DEFAULT_PAGE, MAX_PAGE)
        limit = page_arg(limit, DEFAULT_LIMIT, MAX_LIMIT)

        query = self.session.query(Book)
        total = query.count()
        books = self._newest_first(query).offset((page - 1) * limit).limit(limit).all()
        return books, {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        }

    def get_by_id(self, book_id):
        book = self.session.get(Book, book_id)
        if book is None:
            raise NotFound("Book not found")
        return book

    def search(self, query, include_description=True, require_query=False):
        query = (query or "").strip()
        if not query:
            if require_query:
                raise InvalidInput("Search query is required")
            return self.list_all()

        pattern = f"%{query}%"
        columns = [Book.title, Book.author]
        if include_description:
            columns.append(Book.description)
        matches = self.session.query(Book).filter(or_(*(col.ilike(pattern) for col in columns)))
        return self._newest_first(matches).all()

    def list_by_category(self, category):
        return self._newest_first(self.session.query(Book).filter_by(category=category)).all()

    def list_featured(self):
        return self._newest_first(self.session.query(Book).filter_by(featured=True)).all()

    def create(self, data, actor_id):
        fields = clean_fields(data)

        book = Book(created_by=actor_id, updated_by=actor_id)
        self._apply(book, fields)
        if book.featured is None:
            book.featured = False
        if not book.book_type:
            book.book_type = "internal"
        if book.stock is None:
            book.stock = 0

        self.session.add(book)
        self.session.flush()
        self.session.add(BookAuditLog(
            book_id=book.id,
            action_type="CREATE",
            admin_id=actor_id,
            new_values=book.to_dict(),
        ))
        self.session.commit()
        current_app.logger.info("Admin %s created book %s", actor_id, book.id)
        return book

    def update(self, book_id, data, actor_id):
        fields = clean_fields(data, partial=True)
        book = self.get_by_id(book_id)
        old_values = book.to_dict()

        self._apply(book, fields)
        book.updated_by = actor_id
        self.session.add(BookAuditLog(
            book_id=book.id,
            action_type="UPDATE",
            admin_id=actor_id,
            old_values=old_values,
            new_values=fields,
        ))
        self.session.commit()
        current_app.logger.info("Admin %s updated book %s", actor_id, book.id)
        return book

    def remove(self, book_id):
        # Unknown ids are not an error.
        deleted = self.session.query(Book).filter_by(id=book_id).delete()
        self.session.commit()
        current_app.logger.info("Deleted book %s (%d row(s))", book_id, deleted)
        return deleted

    def increment_view_count(self, book_id):
        self.session.query(Book).filter_by(id=book_id).update(
            {Book.view_count: Book.view_count + 1}, synchronize_session=False
        )
        self.session.commit()

    def audit_trail(self, book_id):
        return (
            self.session.query(BookAuditLog)
            .filter_by(book_id=book_id)
            .order_by(BookAuditLog.id)
            .all()
        )

    def _apply(self, book, fields):
        for key, value in fields.items():
            if key == "price":
                value = finite_number(value, key)
            elif key == "stock":
                value = whole_number(value, key)
            elif key == "featured":
                value = _truthy(value)
            setattr(book, Book.FIELDS[key], value)
