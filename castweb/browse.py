# castweb/browse.py: one-level directory listing over .strm/.url/.nfo sidecars
import os, logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import xml.etree.ElementTree as ET

from .sidecars import (
    POINTER_EXT, OVERRIDE_EXT, METADATA_EXT,
    read_nfo, read_strm, read_url_file,
)

log = logging.getLogger(__name__)

PAGE_SIZE = 100

class AccessDenied(Exception):
    """The requested directory resolves outside the configured root."""

@dataclass(frozen=True)
class VideoRecord:
    name: str
    platform: str
    video_id: str
    url: str
    title: str
    plot: str
    thumb: str
    tags: Tuple[str, ...] = ()

@dataclass(frozen=True)
class Entry:
    kind: str              # "dir" | "video"
    name: str
    mtime: float
    path: str = ""
    video: Optional[VideoRecord] = None

@dataclass(frozen=True)
class Listing:
    path: str
    parent_path: str
    dirs: Tuple[str, ...] = ()
    videos: Tuple[VideoRecord, ...] = ()
    entries: Tuple[Entry, ...] = ()

@dataclass(frozen=True)
class Page:
    entries: Tuple[Entry, ...]
    page: int
    total: int
    has_prev: bool
    has_next: bool

@dataclass
class PairCandidate:
    base: str
    pointer: str = ""
    override: str = ""
    metadata: str = ""
    mtime: float = 0.0

# ---------- paths ----------

def is_within_root(root: str, candidate: str) -> bool:
    abs_root = os.path.abspath(root)
    abs_child = os.path.abspath(candidate)
    try:
        rel = os.path.relpath(abs_child, abs_root)
    except ValueError:
        # different drives on Windows
        return False
    return not (rel == os.pardir or rel.startswith(os.pardir + os.sep))

def clean_rel(rel: str) -> str:
    rel = (rel or "").replace("/", os.sep)
    rel = os.path.normpath(rel).lstrip(os.sep)
    if rel in ("", os.curdir):
        return ""
    return rel

def parent_of(rel: str) -> str:
    p = os.path.dirname(rel)
    if p in ("", os.curdir) or p.startswith(os.pardir):
        return ""
    return p

# ---------- scan + pair ----------

def _mtime(path: str) -> float:
    try:
        return os.stat(path).st_mtime
    except OSError:
        return 0.0

def scan_dir(dir_path: str) -> Tuple[List[str], Dict[str, PairCandidate]]:
    """
    List the immediate children of dir_path: subdirectory names in listing
    order, and one PairCandidate per base name that has at least one sidecar.
    OSError from the listing itself propagates.
    """
    dirs: List[str] = []
    pairs: Dict[str, PairCandidate] = {}
    with os.scandir(dir_path) as entries:
        for entry in entries:
            name = entry.name
            if entry.is_dir(follow_symlinks=False):
                dirs.append(name)
                continue
            base, ext = os.path.splitext(name)
            ext = ext.lower()
            if ext not in (POINTER_EXT, OVERRIDE_EXT, METADATA_EXT):
                continue
            p = pairs.get(base)
            if p is None:
                p = pairs[base] = PairCandidate(base=base)
            path = os.path.join(dir_path, name)
            if ext == POINTER_EXT:
                p.pointer = path
                if not p.override:
                    p.mtime = _mtime(path)
            elif ext == OVERRIDE_EXT:
                # override timestamp always wins, whichever file came first
                p.override = path
                p.mtime = _mtime(path)
            else:
                p.metadata = path
    return dirs, pairs

def qualifies(p: PairCandidate) -> bool:
    return bool(p.metadata and (p.pointer or p.override))

def resolve_pair(p: PairCandidate) -> Optional[VideoRecord]:
    """Build the VideoRecord for a qualifying pair; None excludes it."""
    platform = video_id = url = ""
    try:
        if p.override:
            url = read_url_file(p.override)
        else:
            platform, video_id = read_strm(p.pointer)
            if not video_id:
                log.debug("skipping %s: no identifier in pointer", p.base)
                return None
        nfo = read_nfo(p.metadata)
    except (OSError, ET.ParseError, UnicodeError) as e:
        log.debug("skipping %s: %s", p.base, e)
        return None
    return VideoRecord(
        name=p.base, platform=platform, video_id=video_id, url=url,
        title=nfo.title, plot=nfo.plot, thumb=nfo.thumb, tags=tuple(nfo.tags),
    )

def dir_freshness(dir_path: str) -> float:
    """
    Newest timestamp among qualifying pairs directly inside dir_path.
    Only this one level is inspected; without a qualifying pair the
    directory's own mtime is used.
    """
    try:
        _, pairs = scan_dir(dir_path)
    except OSError:
        pairs = {}
    stamps = [p.mtime for p in pairs.values() if qualifies(p)]
    if stamps:
        return max(stamps)
    return _mtime(dir_path)

# ---------- assemble ----------

def _display_name(v: VideoRecord) -> str:
    return v.title if v.title.strip() else v.name

def _video_key(v: VideoRecord):
    # blank titles last, then case-insensitive title, then base name
    return (v.title == "", v.title.lower(), v.name)

def _entry_key(e: Entry):
    return (-e.mtime, e.name.lower())

def build_listing(root: str, rel: str) -> Listing:
    path = clean_rel(rel)
    parent = parent_of(path) if path else ""
    dir_path = os.path.join(root, path)
    if not is_within_root(root, dir_path):
        raise AccessDenied(path)

    dirs, pairs = scan_dir(dir_path)
    dirs.sort()

    videos: List[VideoRecord] = []
    entries: List[Entry] = []
    for d in dirs:
        entries.append(Entry(
            kind="dir", name=d,
            path=clean_rel(os.path.join(path, d)),
            mtime=dir_freshness(os.path.join(dir_path, d)),
        ))
    for base in sorted(pairs):
        p = pairs[base]
        if not qualifies(p):
            continue
        v = resolve_pair(p)
        if v is None:
            continue
        videos.append(v)
        entries.append(Entry(kind="video", name=_display_name(v), mtime=p.mtime, video=v))

    videos.sort(key=_video_key)
    entries.sort(key=_entry_key)
    log.debug("listing %r: %d dirs, %d videos", path, len(dirs), len(videos))
    return Listing(
        path=path, parent_path=parent,
        dirs=tuple(dirs), videos=tuple(videos), entries=tuple(entries),
    )

def paginate(entries: Sequence[Entry], page: int, size: int = PAGE_SIZE) -> Page:
    total = len(entries)
    start = min(max((page - 1) * size, 0), total)
    end = min(start + size, total)
    return Page(
        entries=tuple(entries[start:end]),
        page=page,
        total=total,
        has_prev=page > 1,
        has_next=end < total,
    )
