import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app import create_app, db


@pytest.fixture
def app():
    app = create_app('app.config.TestConfig')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session(app):
    return db.session


@pytest.fixture
def broken_storage(monkeypatch, session):
    """Make every query and commit fail as if the database were down."""

    def fail(*args, **kwargs):
        raise OperationalError('SELECT 1', {}, Exception('database is unavailable'))

    monkeypatch.setattr(Session, 'query', fail)
    monkeypatch.setattr(Session, 'commit', fail)
