import logging
import threading
import time

from markupsafe import escape

from markblog.errors import NotFoundError, RenderError
from markblog.rendering import render_markdown

logger = logging.getLogger(__name__)

# Application-owned keys, never listed or served as posts
RESERVED_KEYS = frozenset({"index"})


def is_post_key(key: str) -> bool:
    return key not in RESERVED_KEYS


class IdSequence:
    """Millisecond timestamp ids, strictly increasing.

    Pass the newest stored id as ``last`` so ids keep increasing across
    restarts even if the clock stepped back.
    """

    def __init__(self, clock=time.time, last=None):
        self._clock = clock
        self._last = int(last) if last else 0
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            candidate = int(self._clock() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return str(candidate)


def make_record(title=None, short="", long=None) -> dict:
    """Build the stored value, leaving out empty optional fields."""
    record = {"short": short or ""}
    if title:
        record["title"] = title
    if long:
        record["long"] = long
    return record


def summarize(post_id: str, record: dict) -> dict:
    """Index entry for one post. A render failure only affects this entry."""
    short = record.get("short", "")
    try:
        content = render_markdown(short)
    except RenderError:
        logger.exception(f"Could not render summary of Post {post_id}")
        content = escape(short)
    return {
        "url": f"/{post_id}",
        "title": record.get("title") or post_id,
        "content": content,
    }


def list_posts(store) -> list:
    """Scan the whole store and summarize every post, newest first."""
    return [
        summarize(key, record)
        for key, record in store.items(reverse=True)
        if is_post_key(key)
    ]


def load_post(store, post_id: str) -> dict:
    if not is_post_key(post_id):
        raise NotFoundError(post_id)
    record = store.get(post_id)
    return {
        "id": post_id,
        "title": record.get("title") or post_id,
        "content": render_markdown(record.get("long") or record.get("short", "")),
    }


def latest_post_id(store):
    """Newest numeric post id in the store, or None when there are no posts."""
    for key in store.keys(reverse=True):
        if is_post_key(key) and key.isdigit():
            return key
    return None


def create_post(store, ids: IdSequence, title=None, short="", long=None) -> str:
    post_id = ids.next()
    # Another process may have written this id already
    while store.contains(post_id):
        post_id = ids.next()
    store.put(post_id, make_record(title, short, long))
    logger.info(f"Created Post {post_id}")
    return post_id
