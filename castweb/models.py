# castweb/models.py
from pydantic import BaseModel
from typing import List, Optional

class HealthOut(BaseModel):
    status: str

class VideoOut(BaseModel):
    name: str
    title: str
    platform: str
    video_id: str
    url: str
    plot: str
    thumb_url: str
    tags: List[str]

class EntryOut(BaseModel):
    kind: str
    name: str
    path: str
    mtime: float
    video: Optional[VideoOut] = None

class BrowseOut(BaseModel):
    path: str
    parent_path: str
    dirs: List[str]
    entries: List[EntryOut]
    page: int
    total_items: int
    has_prev: bool
    has_next: bool
