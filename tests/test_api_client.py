import json

import requests

from dial_a_service_api import DialAServiceAPI


def make_response(status_code, body=None, reason="OK", raw=None):
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    if raw is not None:
        response._content = raw
    elif body is None:
        response._content = b""
    else:
        response._content = json.dumps(body).encode("utf-8")
    return response


class FakeSession:
    """Records requests and answers them from a queue of responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, **kwargs):
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        response.url = kwargs["url"]
        return response


def test_login_keeps_the_token():
    session = FakeSession(
        make_response(200, {"access_token": "abc", "token_type": "bearer"}),
        make_response(200, {"user": {"id": 1}, "redirect_to": "/account"}),
    )
    api = DialAServiceAPI(base_url="http://api.local/", session=session)

    data, error = api.login("jane@example.com", "secret123")
    assert error is None
    assert api.api_key == "abc"
    assert session.calls[0]["url"] == "http://api.local/api/v1/auth/login"
    assert session.calls[0]["json"] == {"email": "jane@example.com", "password": "secret123"}
    assert "Authorization" not in session.calls[0]["headers"]

    data, error = api.me()
    assert data["redirect_to"] == "/account"
    assert session.calls[1]["headers"]["Authorization"] == "Bearer abc"


def test_errors_are_returned_not_raised():
    session = FakeSession(
        make_response(404, {"detail": "Job 9 not found"}, reason="Not Found"),
        make_response(422, {"detail": [{"msg": "Value error, Please select at least one skill"}]}, reason="Unprocessable"),
        make_response(500, raw=b"boom", reason="Server Error"),
        requests.ConnectionError("connection refused"),
    )
    api = DialAServiceAPI(base_url="http://api.local", api_key="tok", session=session)

    data, error = api.accept_job(9)
    assert data is None
    assert error == {"status_code": 404, "message": "Job 9 not found"}

    _, error = api.update_skills([])
    assert error["status_code"] == 422
    assert error["message"] == "Value error, Please select at least one skill"

    _, error = api.me()
    assert error == {"status_code": 500, "message": "boom"}

    _, error = api.me()
    assert error["status_code"] is None
    assert "connection refused" in error["message"]


def test_list_helpers_default_to_empty_lists():
    session = FakeSession(make_response(403, {"detail": "Insufficient permissions"}, reason="Forbidden"))
    api = DialAServiceAPI(base_url="http://api.local", session=session)
    jobs, error = api.available_jobs()
    assert jobs == []
    assert error["status_code"] == 403


def test_delete_and_query_parameters():
    session = FakeSession(
        make_response(204, reason="No Content"),
        make_response(200, {"date": "2026-03-04", "slots": [], "by_hour": {}}),
        make_response(200, []),
    )
    api = DialAServiceAPI(base_url="http://api.local", api_key="tok", session=session)

    assert api.delete_slot(3) == (True, None)
    assert session.calls[0]["method"] == "DELETE"
    assert session.calls[0]["url"].endswith("/api/v1/slots/3")

    api.list_slots("2026-03-04")
    assert session.calls[1]["params"] == {"date": "2026-03-04"}

    api.audit_logs(action="approve", user_id=None)
    assert session.calls[2]["params"] == {"action": "approve"}


def test_uploads_are_sent_as_multipart():
    session = FakeSession(make_response(201, {"id": 1, "id_url": "http://api.local/storage/provider-ids/id-1.jpg"}))
    api = DialAServiceAPI(base_url="http://api.local", api_key="tok", session=session)
    data, error = api.upload_id_document(b"\xff\xd8", filename="passport.jpg")
    assert error is None
    assert session.calls[0]["files"] == {"file": ("passport.jpg", b"\xff\xd8", "image/jpeg")}
    assert session.calls[0]["json"] is None
