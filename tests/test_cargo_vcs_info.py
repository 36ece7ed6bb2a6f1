import json

import pytest

from releaseplz.cargo_vcs_info import read_sha1_from_cargo_vcs_info


def _write(tmp_path, content):
    path = tmp_path / ".cargo_vcs_info.json"
    path.write_text(content, encoding="utf-8")
    return path


def test_sha1_is_read(tmp_path):
    sha = "0123456789abcdef0123456789abcdef01234567"
    path = _write(tmp_path, json.dumps({"git": {"sha1": sha}, "path_in_vcs": ""}))
    assert read_sha1_from_cargo_vcs_info(path) == sha


def test_sha1_is_read_from_str_path(tmp_path):
    path = _write(tmp_path, json.dumps({"git": {"sha1": "abc"}}))
    assert read_sha1_from_cargo_vcs_info(str(path)) == "abc"


def test_missing_file_gives_none(tmp_path):
    assert read_sha1_from_cargo_vcs_info(tmp_path / "missing.json") is None


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        json.dumps({"path_in_vcs": ""}),
        json.dumps({"git": {}}),
        json.dumps({"git": {"sha1": 5}}),
        json.dumps([1, 2]),
    ],
)
def test_invalid_content_gives_none(tmp_path, content):
    assert read_sha1_from_cargo_vcs_info(_write(tmp_path, content)) is None