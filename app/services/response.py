import math
from dataclasses import dataclass

from sqlalchemy.orm import Query

from app.config import settings


@dataclass(frozen=True)
class Page:
    items: list
    total_items: int
    current_page: int
    items_per_page: int

    @property
    def total_pages(self) -> int:
        # An empty result still reports one page.
        return max(math.ceil(self.total_items / self.items_per_page), 1)

    def pagination(self) -> dict:
        return {
            "total_items": self.total_items,
            "total_pages": self.total_pages,
            "current_page": self.current_page,
            "items_per_page": self.items_per_page,
        }


def normalize_page(page: int | None, limit: int | None) -> tuple[int, int]:
    page_number = max(int(page or 1), 1)
    limit_number = max(int(limit or settings.default_page_size), 1)
    return page_number, min(limit_number, settings.max_page_size)


def paginate(query: Query, page: int | None, limit: int | None) -> Page:
    page_number, limit_number = normalize_page(page, limit)
    total = query.order_by(None).count()
    items = query.limit(limit_number).offset((page_number - 1) * limit_number).all()
    return Page(items=items, total_items=total, current_page=page_number, items_per_page=limit_number)


def list_response(page: Page, message: str | None = None) -> dict:
    body = {"success": True, "data": page.items, "pagination": page.pagination()}
    if message:
        body["message"] = message
    return body


def ok(data=None, message: str | None = None) -> dict:
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body
