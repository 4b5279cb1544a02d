"""Resource persistence: URL lookup, import upserts, line mappings, export queries"""

from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from awesync.core.models import CatalogEntry, ParsedResource
from awesync.crud.models import (
    Category, Resource, ResourceLineMapping, ResourceStatus,
    Subcategory, SubSubcategory,
)


SECTION_PATH_SEP = " > "

CategoryIds = tuple[int, Optional[int], Optional[int]]


def get_by_url(session: Session, url: str) -> Resource | None:
    """Return the Resource with the given URL, or None if not found."""
    return session.exec(select(Resource).where(Resource.url == url)).one_or_none()


def create_resource(
    session: Session,
    parsed: ParsedResource,
    ids: CategoryIds,
    auto_approve: bool = False,
    ) -> Resource:
    """Insert a resource from an imported entry, marked as synced."""
    category_id, subcategory_id, sub_subcategory_id = ids
    now = datetime.now()
    resource = Resource(
        title=parsed.title,
        url=parsed.url,
        description=parsed.description or "",
        category_id=category_id,
        subcategory_id=subcategory_id,
        sub_subcategory_id=sub_subcategory_id,
        status=ResourceStatus.approved if auto_approve else ResourceStatus.pending,
        github_synced=True,
        last_synced_at=now,
    )
    session.add(resource)
    session.flush()
    return resource


def update_resource_from_import(
    session: Session,
    resource: Resource,
    parsed: ParsedResource,
    ids: CategoryIds,
    ) -> Resource:
    """Overwrite title, category assignment and (non-empty) description from an imported entry."""
    now = datetime.now()
    resource.title = parsed.title
    resource.description = parsed.description or resource.description
    resource.category_id, resource.subcategory_id, resource.sub_subcategory_id = ids
    resource.github_synced = True
    resource.last_synced_at = now
    resource.updated_at = now
    session.add(resource)
    session.flush()
    return resource


def get_line_mapping(session: Session, resource_id: int, list_id: int) -> ResourceLineMapping | None:
    return session.exec(
        select(ResourceLineMapping)
        .where(ResourceLineMapping.resource_id == resource_id)
        .where(ResourceLineMapping.list_id == list_id)
    ).one_or_none()


def upsert_line_mapping(
    session: Session,
    resource_id: int,
    list_id: int,
    parsed: ParsedResource,
    ) -> ResourceLineMapping:
    """Record where in the list document a resource was last seen."""
    mapping = get_line_mapping(session, resource_id, list_id)
    if mapping is None:
        mapping = ResourceLineMapping(resource_id=resource_id, list_id=list_id, line_number=parsed.source_line)
    mapping.line_number = parsed.source_line
    mapping.section_path = SECTION_PATH_SEP.join(parsed.category_path)
    mapping.last_sync_at = datetime.now()
    session.add(mapping)
    session.flush()
    return mapping


def get_approved_entries(session: Session) -> list[CatalogEntry]:
    """Return approved resources with a URL, joined to their hierarchy names."""
    rows = session.exec(
        select(Resource, Category.name, Subcategory.name, SubSubcategory.name)
        .join(Category, Resource.category_id == Category.id)
        .outerjoin(Subcategory, Resource.subcategory_id == Subcategory.id)
        .outerjoin(SubSubcategory, Resource.sub_subcategory_id == SubSubcategory.id)
        .where(Resource.status == ResourceStatus.approved)
        .where(Resource.url != "")
        .order_by(Resource.title)
    ).all()
    return [
        CatalogEntry(
            title=r.title,
            url=r.url,
            description=r.description or "",
            category_name=cat,
            subcategory_name=sub,
            sub_subcategory_name=subsub if sub else None,
        )
        for r, cat, sub, subsub in rows
    ]


def mark_approved_synced(session: Session) -> int:
    """Flag every approved resource as synced. Returns the number of rows touched."""
    now = datetime.now()
    resources = session.exec(select(Resource).where(Resource.status == ResourceStatus.approved)).all()
    for r in resources:
        r.github_synced = True
        r.last_synced_at = now
        session.add(r)
    session.flush()
    return len(resources)
