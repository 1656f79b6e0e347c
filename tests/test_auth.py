import pytest
import requests

from core.auth import SIGN_IN_URL, AuthError, FirebaseAuthClient


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response


def test_sign_in_success():
    session = FakeSession(FakeResponse(200, {"localId": "u1", "email": "a@b.c", "idToken": "tok"}))
    user = FirebaseAuthClient("key", session=session).sign_in("a@b.c", "pw")
    assert user.uid == "u1"
    assert user.email == "a@b.c"
    assert user.id_token == "tok"
    url, kwargs = session.calls[0]
    assert url == SIGN_IN_URL
    assert kwargs["params"] == {"key": "key"}
    assert kwargs["json"] == {"email": "a@b.c", "password": "pw", "returnSecureToken": True}


def test_sign_in_rejected():
    session = FakeSession(FakeResponse(400, {"error": {"message": "INVALID_PASSWORD"}}))
    with pytest.raises(AuthError) as err:
        FirebaseAuthClient("key", session=session).sign_in("a@b.c", "bad")
    assert err.value.code == "INVALID_PASSWORD"
    assert str(err.value) == "Incorrect password."


def test_sign_in_error_code_with_detail_suffix():
    body = {"error": {"message": "TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled"}}
    with pytest.raises(AuthError) as err:
        FirebaseAuthClient("key", session=FakeSession(FakeResponse(400, body))).sign_in("a@b.c", "pw")
    assert err.value.code == "TOO_MANY_ATTEMPTS_TRY_LATER"


def test_sign_in_non_json_error():
    with pytest.raises(AuthError) as err:
        FirebaseAuthClient("key", session=FakeSession(FakeResponse(503, None))).sign_in("a@b.c", "pw")
    assert err.value.code == "UNKNOWN"


def test_sign_in_network_error():
    session = FakeSession(exc=requests.ConnectionError("offline"))
    with pytest.raises(AuthError) as err:
        FirebaseAuthClient("key", session=session).sign_in("a@b.c", "pw")
    assert err.value.code == "NETWORK"


@pytest.mark.parametrize("api_key,email,password,code", [(None, "a", "b", "NOT_CONFIGURED"), ("k", "", "b", "MISSING_CREDENTIALS")])
def test_sign_in_precondition_failures(api_key, email, password, code):
    session = FakeSession()
    with pytest.raises(AuthError) as err:
        FirebaseAuthClient(api_key, session=session).sign_in(email, password)
    assert err.value.code == code
    assert session.calls == []
