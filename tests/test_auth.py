from auth import (
    FORBIDDEN,
    GRANTED,
    MISCONFIGURED,
    MISSING_HEADER,
    authorize,
    cors_headers,
    extract_token,
    secured_cors_headers,
)

SECRET = "secret-token-123"


def test_denies_when_no_token_configured():
    for headers in ({"authorization": f"Bearer {SECRET}"}, {"authorization": SECRET}, {}):
        result = authorize(headers, None)
        assert not result.authorized
        assert result.reason == MISCONFIGURED
        assert result.status_code == 500
        assert "ADMIN_TOKEN not set" in result.message


def test_empty_secret_counts_as_unconfigured():
    assert authorize({"authorization": ""}, "").reason == MISCONFIGURED


def test_missing_header():
    result = authorize({}, SECRET)
    assert not result.authorized
    assert result.reason == MISSING_HEADER
    assert result.status_code == 401
    assert "Missing Authorization header" in result.message


def test_wrong_token():
    result = authorize({"authorization": "Bearer wrong-token"}, SECRET)
    assert not result.authorized
    assert result.reason == FORBIDDEN
    assert result.status_code == 403
    assert "Invalid admin token" in result.message


def test_bearer_token_granted():
    result = authorize({"authorization": f"Bearer {SECRET}"}, SECRET)
    assert result.authorized
    assert result.reason == GRANTED


def test_bare_token_granted():
    assert authorize({"Authorization": SECRET}, SECRET).authorized


def test_header_name_is_case_insensitive():
    assert authorize({"AUTHORIZATION": f"Bearer {SECRET}"}, SECRET).authorized
    assert authorize({"Authorization": f"Bearer {SECRET}"}, SECRET).authorized


def test_extract_token():
    assert extract_token("Bearer abc") == "abc"
    assert extract_token("bearer abc") == "abc"
    assert extract_token("abc") == "abc"
    assert extract_token("  abc  ") == "abc"


def test_cors_headers():
    assert cors_headers()["Access-Control-Allow-Origin"] == "*"
    assert "If-None-Match" in cors_headers()["Access-Control-Allow-Headers"]

    secured = secured_cors_headers("https://admin.example.com")
    assert secured["Access-Control-Allow-Origin"] == "https://admin.example.com"
    assert "Authorization" in secured["Access-Control-Allow-Headers"]
    assert secured["Access-Control-Allow-Methods"] == "POST, OPTIONS"
    assert secured_cors_headers("")["Access-Control-Allow-Origin"] == "*"
