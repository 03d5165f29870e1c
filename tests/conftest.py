import pytest

from markblog.app import create_app


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "DATA_DIR": str(tmp_path / "data"),
        "SQLALCHEMY_DATABASE_URI": None,
    })
    yield app
    app.extensions["kv_store"].close(app)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    """The app's store, with an app context pushed for direct calls."""
    with app.app_context():
        yield app.extensions["kv_store"]
