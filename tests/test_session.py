from deva.session import SessionData, Session, decode_session, encode_session


def test_round_trip():
    data = SessionData(access_token="tok", user_id="u1", user_email="a@b.c", is_logged_in=True)
    assert decode_session(encode_session(data)) == data


def test_each_encoding_uses_a_fresh_nonce():
    data = SessionData(access_token="tok", is_logged_in=True)
    assert encode_session(data) != encode_session(data)


def test_tampered_cookie_reads_as_empty_session():
    value = encode_session(SessionData(access_token="tok", is_logged_in=True))
    tampered = value[:-4] + ("AAAA" if not value.endswith("AAAA") else "BBBB")
    assert decode_session(tampered) == SessionData()


def test_wrong_secret_reads_as_empty_session():
    value = encode_session(SessionData(access_token="tok", is_logged_in=True), secret="one-secret")
    assert decode_session(value, secret="another-secret") == SessionData()


def test_garbage_reads_as_empty_session():
    assert decode_session("not-a-cookie") == SessionData()
    assert decode_session(None) == SessionData()


def test_session_requires_a_token():
    assert not Session(SessionData(is_logged_in=True)).is_authenticated
    assert Session(SessionData(access_token="tok", is_logged_in=True)).is_authenticated


def test_destroyed_session_cannot_log_in():
    session = Session()
    session.destroy()
    try:
        session.login("tok")
    except RuntimeError:
        pass
    else:
        raise AssertionError("login after destroy should fail")
