"""
Pydantic models for the Notion search front-end
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any


class SearchResultModel(BaseModel):
    """Model for a search result row"""
    id: str
    properties: Dict[str, Any]


class FilterOptionsModel(BaseModel):
    """Model for the available filter values"""
    subjects: List[str]
    grades: List[str]
    periods: List[str]


class PageModel(BaseModel):
    """Model for page identity and properties"""
    id: str
    properties: Dict[str, Any]


class FileModel(BaseModel):
    """Model for a file or pdf attachment"""
    type: str
    name: str
    url: Optional[str] = None
    caption: str = ""


class ChildPageModel(BaseModel):
    """Model for a child page reference"""
    id: str
    title: str
    properties: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class ChildPageDetailModel(BaseModel):
    """Model for child page details"""
    page: PageModel
    content: List[Dict[str, Any]]
    files: List[FileModel]


class PageDetailModel(ChildPageDetailModel):
    """Model for page details"""
    child_pages: List[ChildPageModel]


class PreloadRequest(BaseModel):
    """Model for a visibility hint from the result list"""
    page_ids: List[str] = Field(..., max_length=100)


class PreloadResponse(BaseModel):
    """Model for preload scheduling result"""
    requested: int
    scheduled: int


class StoreStatsModel(BaseModel):
    """Model for one cache store"""
    name: str
    size: int
    default_ttl: float
    hits: int
    misses: int


class SweepReportModel(BaseModel):
    """Model for one store sweep"""
    store: str
    size_before: int
    size_after: int
    expired: int
    evicted: int


class CacheStatsResponse(BaseModel):
    """Model for cache statistics"""
    stores: List[StoreStatsModel]
    preload: Dict[str, int]
    observed_pages: int


class ErrorResponse(BaseModel):
    """Model for error responses"""
    detail: str
    error_type: str
