import math


def paginate(query, page: int, limit: int):
    """Returns (items, total, total_pages) for a 1-based page."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total, math.ceil(total / limit)


def page_body(key: str, items: list, total: int, total_pages: int, page: int) -> dict:
    return {
        "success": True,
        "count": total,
        "totalPages": total_pages,
        "currentPage": page,
        key: items,
    }
