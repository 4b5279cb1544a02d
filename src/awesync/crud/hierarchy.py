"""Category hierarchy resolution with lookup-or-create auto-provisioning"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from awesync.core.utils.slug import node_slug
from awesync.crud.models import Category, Subcategory, SubSubcategory


logger = logging.getLogger(__name__)


class MissingCategoryError(ValueError):
    """Raised when a category path or heading name is empty."""


@dataclass(frozen=True)
class _Level:
    model: type[SQLModel]
    parent_field: Optional[str]


LEVELS: dict[int, _Level] = {
    1: _Level(Category, None),
    2: _Level(Subcategory, "category_id"),
    3: _Level(SubSubcategory, "subcategory_id"),
}


def _scoped(stmt, level: _Level, parent_id: Optional[int]):
    if level.parent_field is None:
        return stmt
    return stmt.where(getattr(level.model, level.parent_field) == parent_id)


def find_node(session: Session, depth: int, parent_id: Optional[int], slug: str):
    """Return the hierarchy row with slug under parent_id, or None."""
    level = LEVELS[depth]
    stmt = _scoped(select(level.model).where(level.model.slug == slug), level, parent_id)
    return session.exec(stmt).first()


def ensure_node(session: Session, depth: int, parent_id: Optional[int], name: str) -> int:
    """Return the id of the node named `name` at depth 1-3, creating it if missing.

    Nodes are matched by slug within their parent scope. New nodes get
    display_order = max + 1 in that scope. If a concurrent writer inserts the
    same (parent, slug) first, the unique constraint fires and the existing
    row is returned instead.
    """
    level = LEVELS[depth]
    if not name.strip():
        raise MissingCategoryError("Category name is empty")
    slug = node_slug(name)

    existing = find_node(session, depth, parent_id, slug)
    if existing is not None:
        return existing.id

    max_order = session.exec(
        _scoped(select(func.max(level.model.display_order)), level, parent_id)
    ).one()
    fields = {"name": name, "slug": slug, "display_order": (max_order or 0) + 1}
    if level.parent_field:
        fields[level.parent_field] = parent_id
    node = level.model(**fields)

    try:
        with session.begin_nested():
            session.add(node)
            session.flush()
    except IntegrityError:
        existing = find_node(session, depth, parent_id, slug)
        if existing is None:
            raise
        return existing.id

    logger.info("Created %s %r (slug=%s)", level.model.__tablename__, name, slug)
    return node.id


def resolve_category_path(
    session: Session,
    category_path: list[str],
    ) -> tuple[int, Optional[int], Optional[int]]:
    """Map a 1-3 element heading path to (category_id, subcategory_id, sub_subcategory_id)."""
    if not category_path or not category_path[0]:
        raise MissingCategoryError("Resource has no category path")

    category_id = ensure_node(session, 1, None, category_path[0])
    subcategory_id = sub_subcategory_id = None
    if len(category_path) > 1 and category_path[1]:
        subcategory_id = ensure_node(session, 2, category_id, category_path[1])
        if len(category_path) > 2 and category_path[2]:
            sub_subcategory_id = ensure_node(session, 3, subcategory_id, category_path[2])
    return category_id, subcategory_id, sub_subcategory_id
