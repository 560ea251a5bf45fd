# castweb/main.py: web UI over a .strm/.nfo tree + casting via ytcast
import os, io, logging
from typing import Optional
from urllib.parse import quote, urlencode

import requests
from fastapi import FastAPI, Query, Request, HTTPException
from fastapi.responses import (
    FileResponse,
    HTMLResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
)
from fastapi.templating import Jinja2Templates
from PIL import Image

from . import ytcast
from .browse import (
  AccessDenied, Entry, Listing, build_listing, clean_rel, is_within_root, paginate,
)
from .config import Settings
from .models import BrowseOut, EntryOut, HealthOut, VideoOut
from .state import State, StateError, load_state, save_state, state_path

log = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "templates")
IMAGE_TYPES = {
  ".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png",
  ".gif": "image/gif", ".webp": "image/webp",
}
IMAGE_CACHE_CONTROL = "public, max-age=60"
THUMB_MIN, THUMB_MAX = 32, 2048
SVT_TIMEOUT = 15
YOUTUBE_WATCH = "https://www.youtube.com/watch?v="
SVTPLAY_VIDEO = "https://www.svtplay.se/video/"

# Access log filter: keep /health probes out of uvicorn's access log
class _HealthFilter(logging.Filter):
  def filter(self, record):
    return "/health" not in record.getMessage()

def svt_do_request(request_url: str) -> int:
  resp = requests.get(request_url, timeout=SVT_TIMEOUT)
  return resp.status_code

def _text(code: int, msg: str) -> PlainTextResponse:
  return PlainTextResponse(msg, status_code=code)

def _url_path(rel: str) -> str:
  """'/'-joined, percent-encoded URL path for a relative filesystem path."""
  segs = [quote(s, safe="") for s in rel.replace(os.sep, "/").split("/") if s]
  return "/" + "/".join(segs)

def _dir_url(rel: str) -> str:
  base = _url_path(rel)
  return base if base == "/" else base + "/"

def _thumb_url(listing_path: str, thumb: str) -> str:
  if not thumb:
    return ""
  low = thumb.lower()
  if low.startswith("http://") or low.startswith("https://"):
    return thumb
  return _url_path(listing_path + "/" + thumb)

def _play_url(e: Entry) -> str:
  v = e.video
  q = {"type": v.platform, "id": v.video_id, "url": v.url}
  return "/play?" + urlencode({k: val for k, val in q.items() if val})

def _render_thumb(path: str, s: int) -> Optional[bytes]:
  """Scale so the short edge reaches s, then centre-crop s×s; JPEG bytes."""
  try:
    with Image.open(path) as im:
      img = im.convert("RGB")
      w, h = img.size
      if w == 0 or h == 0:
        return None
      scale = s / float(min(w, h))
      new_w, new_h = max(s, round(w * scale)), max(s, round(h * scale))
      if (new_w, new_h) != (w, h):
        img = img.resize((new_w, new_h), Image.LANCZOS)
      left = (img.width - s) // 2
      top = (img.height - s) // 2
      img = img.crop((left, top, left + s, top + s))
      buf = io.BytesIO()
      img.save(buf, format="JPEG", quality=85, optimize=True)
      return buf.getvalue()
  except (OSError, ValueError) as e:
    log.debug("thumbnail %s not rendered: %s", path, e)
    return None

def _serve_image(path: str, s: Optional[int]) -> Response:
  headers = {"Cache-Control": IMAGE_CACHE_CONTROL}
  if s:
    data = _render_thumb(path, s)
    if data is not None:
      return Response(data, media_type="image/jpeg", headers=headers)
  mime = IMAGE_TYPES.get(os.path.splitext(path)[1].lower(), "application/octet-stream")
  return FileResponse(path, media_type=mime, headers=headers)

def _video_out(listing: Listing, e: Entry) -> Optional[VideoOut]:
  v = e.video
  if v is None:
    return None
  return VideoOut(
    name=v.name, title=v.title, platform=v.platform, video_id=v.video_id,
    url=v.url, plot=v.plot, thumb_url=_thumb_url(listing.path, v.thumb),
    tags=list(v.tags),
  )

def _page_number(raw: str) -> int:
  try:
    n = int(raw)
  except (TypeError, ValueError):
    return 1
  return n if n > 0 else 1

def _thumb_size(raw: str) -> Optional[int]:
  try:
    n = int(raw)
  except (TypeError, ValueError):
    return None
  return n if THUMB_MIN <= n <= THUMB_MAX else None

def create_app(settings: Settings) -> FastAPI:
  root = settings.root
  state_file = state_path(settings.state_dir)

  app = FastAPI(title="castweb")
  app.state.settings = settings
  templates = Jinja2Templates(directory=TEMPLATES_DIR)

  if settings.silence_health:
    access = logging.getLogger("uvicorn.access")
    if not any(isinstance(f, _HealthFilter) for f in access.filters):
      access.addFilter(_HealthFilter())

  def _current_device() -> str:
    try:
      st = load_state(state_file)
    except StateError as e:
      log.warning("state unreadable, ignoring: %s", e)
      st = State()
    return st.ytcast_code or settings.ytcast_device

  @app.get("/health", response_model=HealthOut)
  def health():
    return HealthOut(status="ok")

  # ========== casting ==========
  @app.get("/play")
  @app.post("/play")
  def play(
    kind: str = Query("", alias="type"),
    vid: str = Query("", alias="id"),
    url: str = Query(""),
  ):
    if kind == "svtplay":
      if not url and vid:
        url = SVTPLAY_VIDEO + vid
      if not url:
        return _text(400, "missing url")
      if not settings.svtplay_endpoint:
        return _text(400, "svtplay endpoint not configured")
      sep = "&" if "?" in settings.svtplay_endpoint else "?"
      request_url = settings.svtplay_endpoint + sep + urlencode({"url": url})
      log.info("/play: forwarding %s to %s", url, settings.svtplay_endpoint)
      try:
        status = svt_do_request(request_url)
      except requests.RequestException as e:
        log.warning("/play: svtplay endpoint failed: %s", e)
        return _text(502, "svtplay endpoint failed")
      if not 200 <= status < 300:
        log.warning("/play: svtplay endpoint returned %d", status)
        return _text(502, "svtplay endpoint failed")
      return Response(status_code=204)

    if not url and vid:
      url = YOUTUBE_WATCH + vid
    if not url:
      log.info("/play: missing id")
      return _text(400, "missing id or url")
    device = _current_device()
    if not device:
      log.info("/play: device not configured; set --ytcast, YTCAST_DEVICE or pair a code")
      return _text(400, "ytcast device not configured")
    try:
      ytcast.cast(device, url)
    except ytcast.CastError:
      return _text(500, "failed to cast")
    return Response(status_code=204)

  @app.get("/ytcast/pair")
  def ytcast_pair(code: str = ""):
    if not ytcast.valid_code(code):
      return _text(400, "code must be 12 digits")
    try:
      ytcast.pair(code)
    except ytcast.CastError:
      return _text(500, "pairing failed")
    return Response(status_code=204)

  @app.get("/ytcast/set-code")
  def ytcast_set_code(code: str = ""):
    if not ytcast.valid_code(code):
      return _text(400, "code must be 12 digits")
    try:
      save_state(state_file, State(ytcast_code=code))
    except StateError as e:
      log.error("saving ytcast code failed: %s", e)
      return _text(500, "failed to save code")
    log.info("ytcast code updated")
    return Response(status_code=204)

  @app.get("/ytcast/list")
  def ytcast_list():
    try:
      out = ytcast.list_devices()
    except ytcast.CastError:
      return _text(500, "failed to list devices")
    return PlainTextResponse(out)

  # ========== browsing ==========
  @app.get("/api/browse", response_model=BrowseOut)
  def api_browse(path: str = Query("", description="relative path, e.g. A/B"), page: int = Query(1, ge=1)):
    try:
      listing = build_listing(root, path)
    except AccessDenied:
      raise HTTPException(403, detail="access denied")
    except OSError:
      raise HTTPException(404, detail="unable to read path")
    pg = paginate(listing.entries, page)
    return BrowseOut(
      path=listing.path,
      parent_path=listing.parent_path,
      dirs=list(listing.dirs),
      entries=[
        EntryOut(kind=e.kind, name=e.name, path=e.path, mtime=e.mtime, video=_video_out(listing, e))
        for e in pg.entries
      ],
      page=pg.page,
      total_items=pg.total,
      has_prev=pg.has_prev,
      has_next=pg.has_next,
    )

  @app.get("/{rel_path:path}", response_class=HTMLResponse)
  def browse(
    request: Request,
    rel_path: str,
    page: str = Query(""),
    s: str = Query("", description="square thumbnail edge, 32..2048"),
  ):
    rel = clean_rel(rel_path)
    target = os.path.join(root, rel)
    if not is_within_root(root, target):
      return _text(403, "access denied")

    if os.path.splitext(rel)[1].lower() in IMAGE_TYPES and os.path.isfile(target):
      return _serve_image(target, _thumb_size(s))

    if rel and os.path.isdir(target) and not request.url.path.endswith("/"):
      return RedirectResponse(_dir_url(rel), status_code=301)

    try:
      listing = build_listing(root, rel)
    except AccessDenied:
      return _text(403, "access denied")
    except OSError as e:
      log.info("browse %r failed: %s", rel, e)
      return _text(404, "unable to read path")

    n = _page_number(page)
    pg = paginate(listing.entries, n)
    base = _dir_url(listing.path)
    params = dict(request.query_params)
    prev_url = next_url = ""
    if pg.has_prev:
      params["page"] = str(n - 1)
      prev_url = base + "?" + urlencode(params)
    if pg.has_next:
      params["page"] = str(n + 1)
      next_url = base + "?" + urlencode(params)

    items = []
    for e in pg.entries:
      if e.kind == "dir":
        items.append({"kind": "dir", "name": e.name, "href": _dir_url(e.path)})
        continue
      v = e.video
      items.append({
        "kind": "video",
        "name": e.name,
        "id": v.video_id,
        "url": v.url,
        "platform": v.platform,
        "thumb": _thumb_url(listing.path, v.thumb),
        "tags": ", ".join(v.tags),
        "plot": v.plot,
        "play": _play_url(e),
      })

    return templates.TemplateResponse(request, "index.html", {
      "path": listing.path.replace(os.sep, "/"),
      "parent_url": _dir_url(listing.parent_path),
      "items": items,
      "page": n,
      "prev_url": prev_url,
      "next_url": next_url,
    })

  return app

app = create_app(Settings.from_env())
