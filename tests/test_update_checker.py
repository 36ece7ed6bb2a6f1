import pytest
import requests
import responses

from releaseplz.update_checker import (
    CURRENT_VERSION,
    LATEST_RELEASE_URL,
    UpdateCheckError,
    check_update,
    extract_version,
    get_latest_version,
)


def test_version_is_extracted():
    assert extract_version("release-plz-v0.2.37") == "0.2.37"


def test_version_is_not_extracted_without_prefix():
    assert extract_version("v0.2.37") is None


def test_latest_version_is_read_from_api():
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            LATEST_RELEASE_URL,
            json={"tag_name": "release-plz-v0.2.37"},
        )
        assert get_latest_version() == "0.2.37"
        assert rsps.calls[0].request.headers["User-Agent"] == "release-plz"


def test_unparsable_response_raises():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, LATEST_RELEASE_URL, json={"name": "x"})
        with pytest.raises(UpdateCheckError, match="can't parse response"):
            get_latest_version()


def test_tag_without_prefix_raises():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, LATEST_RELEASE_URL, json={"tag_name": "v0.2.37"})
        with pytest.raises(UpdateCheckError, match="tag name v0.2.37"):
            get_latest_version()


def test_connection_error_raises():
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            LATEST_RELEASE_URL,
            body=requests.ConnectionError("refused"),
        )
        with pytest.raises(UpdateCheckError, match="error while sending request"):
            get_latest_version()


def test_check_update_up_to_date(capsys):
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            LATEST_RELEASE_URL,
            json={"tag_name": f"release-plz-v{CURRENT_VERSION}"},
        )
        check_update()
    out = capsys.readouterr().out
    assert out == f"Your release-plz version ({CURRENT_VERSION}) is up to date\n"


def test_check_update_newer_available(capsys):
    newer = CURRENT_VERSION + "1"
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            LATEST_RELEASE_URL,
            json={"tag_name": f"release-plz-v{newer}"},
        )
        check_update()
    out = capsys.readouterr().out
    assert f"A newer version ({newer}) is available" in out


def test_check_update_wraps_errors():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, LATEST_RELEASE_URL, body="not json")
        with pytest.raises(UpdateCheckError, match="error while checking for updates"):
            check_update()