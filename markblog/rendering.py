import markdown
from flask import current_app, has_app_context
from markupsafe import Markup

from markblog.errors import RenderError

DEFAULT_EXTENSIONS = ["fenced_code", "tables"]


def markdown_extensions():
    if has_app_context():
        return current_app.config.get("MARKDOWN_EXTENSIONS", DEFAULT_EXTENSIONS)
    return DEFAULT_EXTENSIONS


def render_markdown(text) -> Markup:
    """
    Convert markdown to HTML safe for direct use in a template.
    Raw HTML in the source is kept as-is; posts are trusted content.
    """
    try:
        html = markdown.markdown(text or "", extensions=markdown_extensions())
    except Exception as exc:
        raise RenderError(f"Markdown rendering failed: {exc}") from exc
    return Markup(html)
