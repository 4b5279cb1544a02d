"""Database table definitions for the resource catalog and sync bookkeeping"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, DateTime, Index, JSON, Text, UniqueConstraint, text
from sqlmodel import Field, SQLModel


class ResourceStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class SyncAction(str, Enum):
    import_ = "import"
    export = "export"


class SyncStatus(str, Enum):
    """Outcome recorded on a SyncHistory row"""
    completed = "completed"
    completed_with_errors = "completed_with_errors"
    failed = "failed"


class QueueStatus(str, Enum):
    """Lifecycle of a SyncQueue row; only `processing` is non-terminal"""
    processing = "processing"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


class Category(SQLModel, table=True):
    """Top level of the catalog hierarchy (a ## heading)"""
    __tablename__ = "categories"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(..., nullable=False)
    slug: str = Field(..., unique=True, index=True, nullable=False)
    display_order: int = Field(default=0, nullable=False)
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class Subcategory(SQLModel, table=True):
    """Second level of the catalog hierarchy (a ### heading)"""
    __tablename__ = "subcategories"
    __table_args__ = (UniqueConstraint("category_id", "slug", name="uq_subcategory_parent_slug"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(..., nullable=False)
    slug: str = Field(..., index=True, nullable=False)
    category_id: int = Field(..., foreign_key="categories.id", index=True, nullable=False)
    display_order: int = Field(default=0, nullable=False)
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class SubSubcategory(SQLModel, table=True):
    """Third level of the catalog hierarchy (a #### heading)"""
    __tablename__ = "sub_subcategories"
    __table_args__ = (UniqueConstraint("subcategory_id", "slug", name="uq_sub_subcategory_parent_slug"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(..., nullable=False)
    slug: str = Field(..., index=True, nullable=False)
    subcategory_id: int = Field(..., foreign_key="subcategories.id", index=True, nullable=False)
    display_order: int = Field(default=0, nullable=False)
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class Resource(SQLModel, table=True):
    """A curated link; URL is the global identity used by import"""
    __tablename__ = "resources"
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(..., nullable=False)
    url: str = Field(..., unique=True, index=True, nullable=False)
    description: str = Field(default="", sa_column=Column(Text, nullable=False))
    category_id: int = Field(..., foreign_key="categories.id", index=True, nullable=False)
    subcategory_id: Optional[int] = Field(default=None, foreign_key="subcategories.id")
    sub_subcategory_id: Optional[int] = Field(default=None, foreign_key="sub_subcategories.id")
    status: ResourceStatus = Field(default=ResourceStatus.pending, nullable=False)
    github_synced: bool = Field(default=False, nullable=False)
    last_synced_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class AwesomeList(SQLModel, table=True):
    """An external markdown list tracked for import/export"""
    __tablename__ = "awesome_lists"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(..., nullable=False)
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    repo_owner: str = Field(..., nullable=False)
    repo_name: str = Field(..., nullable=False)
    branch: str = Field(default="main", nullable=False)
    file_path: str = Field(default="README.md", nullable=False)
    last_sync_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class ResourceLineMapping(SQLModel, table=True):
    """Where in a tracked list a resource was last seen, independent of conflict outcome"""
    __tablename__ = "resource_line_mappings"
    __table_args__ = (UniqueConstraint("resource_id", "list_id", name="uq_mapping_resource_list"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    resource_id: int = Field(..., foreign_key="resources.id", index=True, nullable=False)
    list_id: int = Field(..., foreign_key="awesome_lists.id", index=True, nullable=False)
    line_number: int = Field(..., nullable=False)
    section_path: str = Field(default="", sa_column=Column(Text, nullable=False))
    last_sync_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class SyncHistory(SQLModel, table=True):
    """Append-only audit row written once per import/export run"""
    __tablename__ = "sync_history"
    id: Optional[int] = Field(default=None, primary_key=True)
    list_id: int = Field(..., foreign_key="awesome_lists.id", index=True, nullable=False)
    action: SyncAction = Field(..., nullable=False)
    status: SyncStatus = Field(..., nullable=False)
    items_added: int = Field(default=0, nullable=False)
    items_updated: int = Field(default=0, nullable=False)
    items_skipped: int = Field(default=0, nullable=False)
    conflicts: int = Field(default=0, nullable=False)
    error_log: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    snapshot: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class SyncQueue(SQLModel, table=True):
    """In-flight job marker; at most one `processing` row per list"""
    __tablename__ = "sync_queue"
    __table_args__ = (
        Index(
            "uq_sync_queue_one_processing", "list_id", unique=True,
            sqlite_where=text("status = 'processing'"),
            postgresql_where=text("status = 'processing'"),
        ),
    )
    id: Optional[int] = Field(default=None, primary_key=True)
    list_id: int = Field(..., foreign_key="awesome_lists.id", index=True, nullable=False)
    action: SyncAction = Field(..., nullable=False)
    status: QueueStatus = Field(default=QueueStatus.processing, nullable=False)
    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    error: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
