from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import select


def paginate(
    *,
    session,
    query,
    page: int = 1,
    limit: int = 10,
    serialize: Optional[Callable] = None,
):
    if page < 1:
        page = 1

    if limit < 1:
        limit = 10

    offset = (page - 1) * limit

    total = session.exec(
        select(func.count()).select_from(query.subquery())
    ).one()

    results = session.exec(
        query.offset(offset).limit(limit)
    ).all()

    if serialize is not None:
        results = [serialize(r) for r in results]

    return {
        "total_items": total,
        "total_pages": (total + limit - 1) // limit,
        "current_page": page,
        "limit": limit,
        "results": results,
    }
