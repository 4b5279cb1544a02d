"""Intermediate data models for the parse, format, lint and sync pipeline"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ConflictStrategy(str, Enum):
    """What import does when a parsed URL already exists in the catalog"""
    skip = "skip"
    update = "update"
    create = "create"


class ParsedResource(BaseModel):
    """A single `- [Title](URL) - Description` entry found in a list document."""
    title: str
    url: str
    description: str = ""
    category_path: list[str]        # 1-3 heading names, outermost first
    source_line: int                # 1-based


class ParsedSection(BaseModel):
    """A ##/###/#### heading and everything found directly under it."""
    level: int
    name: str
    resources: list[ParsedResource] = Field(default_factory=list)
    children: list["ParsedSection"] = Field(default_factory=list)


class ParseResult(BaseModel):
    title: str = ""
    description: str = ""
    sections: list[ParsedSection] = Field(default_factory=list)
    resources: list[ParsedResource] = Field(default_factory=list)   # flat, de-duplicated by URL


class CatalogEntry(BaseModel):
    """Formatter input: one catalog resource joined to its hierarchy names."""
    title: str
    url: str
    description: str = ""
    category_name: str
    subcategory_name: Optional[str] = None
    sub_subcategory_name: Optional[str] = None


class FormatResult(BaseModel):
    markdown: str
    resource_count: int
    category_count: int


class LintIssue(BaseModel):
    line: int
    rule: str
    message: str


class LintResult(BaseModel):
    valid: bool
    errors: list[LintIssue] = Field(default_factory=list)
    warnings: list[LintIssue] = Field(default_factory=list)


class ImportFailure(BaseModel):
    url: str
    error: str


class ImportResult(BaseModel):
    success: bool
    added: int = 0
    updated: int = 0
    skipped: int = 0
    conflicts: int = 0
    errors: list[ImportFailure] = Field(default_factory=list)
    history_id: Optional[int] = None


class ExportResult(BaseModel):
    success: bool
    resource_count: int = 0
    category_count: int = 0
    lint_errors: int = 0
    lint_warnings: int = 0
    commit_sha: Optional[str] = None
    history_id: Optional[int] = None
