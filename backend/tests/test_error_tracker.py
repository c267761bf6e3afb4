"""
Error tracker lifecycle and the JSON 500 path of the application error handler.
"""

import pytest
from flask import Blueprint

from cafe_pos import create_app
from cafe_pos.extensions import error_tracker


@pytest.fixture
def failing_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'UPLOAD_FOLDER': str(tmp_path),
        'ERROR_TRACKER_CAPACITY': 3,
    })

    boom = Blueprint("boom", __name__)

    @boom.get("/api/boom")
    def explode():
        raise RuntimeError("kaboom")

    app.register_blueprint(boom)
    return app


def test_record_and_query_newest_first(failing_app):
    with failing_app.app_context():
        for n in range(5):
            error_tracker.record_error(ValueError(f"bad {n}"), {"n": n})

        entries = error_tracker.query()
        assert [e["message"] for e in entries] == ["bad 4", "bad 3", "bad 2"]
        assert error_tracker.query(limit=1)[0]["context"] == {"n": 4}
        assert error_tracker.counts() == {"total": 5, "retained": 3, "by_type": {"ValueError": 5}}

        error_tracker.reset()
        assert error_tracker.query() == []
        assert error_tracker.counts()["total"] == 0


def test_unhandled_error_returns_json_500_and_is_tracked(failing_app):
    client = failing_app.test_client()

    response = client.get("/api/boom")

    assert response.status_code == 500
    assert response.get_json() == {"error": "Internal server error"}
    with failing_app.app_context():
        latest = error_tracker.query(limit=1)[0]
        assert latest["type"] == "RuntimeError"
        assert latest["message"] == "kaboom"
        assert latest["context"] == {"method": "GET", "path": "/api/boom"}
        assert "RuntimeError: kaboom" in latest["stack"]


def test_http_errors_keep_their_status(failing_app):
    response = failing_app.test_client().get("/api/does-not-exist")
    assert response.status_code == 404
    assert "error" in response.get_json()


def test_apps_do_not_share_entries(failing_app, app):
    with failing_app.app_context():
        error_tracker.record_error(RuntimeError("only here"))
    with app.app_context():
        assert all(e["message"] != "only here" for e in error_tracker.query())
