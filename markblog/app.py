import logging
import os

import click
from flask import Flask, current_app, redirect, render_template, request
from flask.cli import with_appcontext
from werkzeug.exceptions import HTTPException

from markblog.config import Config
from markblog.errors import NotFoundError, log_and_sanitize_error
from markblog.models import db
from markblog.posts import IdSequence, create_post, latest_post_id, list_posts, load_post
from markblog.store import KVStore

logger = logging.getLogger(__name__)


# ===== Store access =====
def get_store() -> KVStore:
    return current_app.extensions["kv_store"]


def get_ids() -> IdSequence:
    return current_app.extensions["post_ids"]


# ===== CLI =====
@click.command("reset-store")
@with_appcontext
def reset_store_command():
    """Delete every record in the content store."""
    count = get_store().clear()
    click.echo(f"Reset content database ({count} records removed).")


def create_app(test_config=None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        data_dir = os.path.abspath(app.config["DATA_DIR"])
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///" + os.path.join(data_dir, "posts.sqlite3")

    db.init_app(app)
    store = KVStore(db)
    store.open(app)
    app.extensions["kv_store"] = store

    # Continue after the newest stored post so a restart never reuses an id
    with app.app_context():
        app.extensions["post_ids"] = IdSequence(last=latest_post_id(store))

    app.cli.add_command(reset_store_command)

    # ===== Routes =====
    @app.route("/")
    def index():
        posts = list_posts(get_store())
        return render_template("index.html", posts=posts)

    @app.route("/create-post", methods=["GET"])
    def create_post_form():
        return render_template("create_post.html")

    @app.route("/create-post", methods=["POST"])
    def create_post_submit():
        form = request.form
        # Older clients post a single "content" field
        short = form.get("short", form.get("content", ""))
        post_id = create_post(
            get_store(),
            get_ids(),
            title=form.get("title", "").strip(),
            short=short,
            long=form.get("long", ""),
        )
        return redirect(f"/{post_id}", code=303)

    @app.route("/<post_id>")
    def post_view(post_id):
        post = load_post(get_store(), post_id)
        return render_template("post.html", post=post)

    # ===== Error handlers =====
    @app.errorhandler(404)
    def not_found(_error):
        return render_template("404.html"), 404

    @app.errorhandler(Exception)
    def handle_failure(error):
        if isinstance(error, NotFoundError):
            return not_found(error)
        if isinstance(error, HTTPException):
            return error

        status = getattr(error, "status", 500)
        message, error_id = log_and_sanitize_error(error, f"{request.method} {request.path}")
        return render_template("error.html", status=status, message=message, error_id=error_id), status

    return app


@click.command()
@click.option("--reset", is_flag=True, help="Wipe all stored posts before serving.")
@click.option("--host", default=None, help="Interface to bind (default from HOST).")
@click.option("--port", type=int, default=None, help="Port to listen on (default from PORT).")
@click.option("--debug", is_flag=True, help="Run with the Werkzeug debugger.")
def main(reset, host, port, debug):
    """Serve the blog."""
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    if reset:
        with app.app_context():
            count = app.extensions["kv_store"].clear()
        logger.info(f"Reset content database ({count} records removed)")

    host = host or app.config["HOST"]
    port = port or app.config["PORT"]
    logger.info(f"Server is listening on port {port}")
    try:
        app.run(host=host, port=port, debug=debug)
    finally:
        app.extensions["kv_store"].close(app)


# Local dev entrypoint
if __name__ == "__main__":
    main()
