"""Tracked list persistence"""

from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from awesync.crud.models import AwesomeList


def create_list(
    session: Session,
    repo_owner: str,
    repo_name: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    branch: str = "main",
    file_path: str = "README.md",
    ) -> AwesomeList:
    """Start tracking a list file in a remote repository. Name defaults to the repo name."""
    lst = AwesomeList(
        name=name or repo_name,
        description=description,
        repo_owner=repo_owner,
        repo_name=repo_name,
        branch=branch,
        file_path=file_path,
    )
    session.add(lst)
    session.flush()
    return lst


def get_list(session: Session, list_id: int) -> AwesomeList | None:
    return session.get(AwesomeList, list_id)


def get_all_lists(session: Session) -> list[AwesomeList]:
    """Return all tracked lists, newest first."""
    return list(session.exec(select(AwesomeList).order_by(AwesomeList.created_at.desc(), AwesomeList.id.desc())).all())


def touch_last_sync(session: Session, lst: AwesomeList, when: datetime | None = None) -> AwesomeList:
    lst.last_sync_at = when or datetime.now()
    session.add(lst)
    session.flush()
    return lst
