# castweb/sidecars.py: readers for the .strm / .url / .nfo sidecar files
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import parse_qs
import xml.etree.ElementTree as ET

POINTER_EXT = ".strm"
OVERRIDE_EXT = ".url"
METADATA_EXT = ".nfo"

# scheme prefix -> (platform type, query parameter carrying the id)
# Matched case-insensitively; extend this table to recognise a new platform.
PLATFORMS: Tuple[Tuple[str, str, str], ...] = (
    ("plugin://plugin.video.youtube", "youtube", "video_id"),
    ("plugin://plugin.video.svtplay", "svtplay", "id"),
)

@dataclass
class NfoData:
    title: str
    plot: str
    thumb: str
    tags: List[str]

def _first_line(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            line = line.strip()
            if line:
                return line
    return ""

def _text(root: ET.Element, tag: str) -> str:
    el = root.find(tag)
    if el is None:
        return ""
    return "".join(el.itertext()).strip()

def read_nfo(path: str) -> NfoData:
    """
    Parse a Kodi-style .nfo document:
    <movie><title/><plot/><thumb/><tag/>...</movie>

    Scalars are trimmed, blank tags dropped, duplicate tags removed while
    keeping the declared order. Raises OSError / ET.ParseError on failure.
    """
    root = ET.parse(path).getroot()
    tags: List[str] = []
    for el in root.findall("tag"):
        t = "".join(el.itertext()).strip()
        if t and t not in tags:
            tags.append(t)
    return NfoData(
        title=_text(root, "title"),
        plot=_text(root, "plot"),
        thumb=_text(root, "thumb"),
        tags=tags,
    )

def read_url_file(path: str) -> str:
    """First non-blank line of a .url file; "" is a valid result."""
    return _first_line(path)

def match_platform(line: str) -> Optional[Tuple[str, str]]:
    low = line.lower()
    for prefix, platform, param in PLATFORMS:
        if low.startswith(prefix):
            return platform, param
    return None

def parse_pointer(line: str) -> Tuple[str, str]:
    """Return (platform, id) for a pointer line, ("", "") when unrecognised."""
    hit = match_platform(line)
    if hit is None:
        return "", ""
    platform, param = hit
    # everything after the first '?' is the query; without one, the whole line
    _, sep, query = line.partition("?")
    if not sep:
        query = line
    values = parse_qs(query).get(param) or [""]
    return platform, values[0]

def read_strm(path: str) -> Tuple[str, str]:
    return parse_pointer(_first_line(path))
