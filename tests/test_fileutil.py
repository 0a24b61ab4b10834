from pathlib import Path

import pytest
import requests
import responses

from groupbot import fileutil


def test_is_exist_for_existing_file(tmp_path):
    target = tmp_path / "a.txt"
    target.write_text("x")
    assert fileutil.is_exist(target) is True
    assert fileutil.is_not_exist(target) is False


def test_is_exist_for_directory(tmp_path):
    assert fileutil.is_exist(tmp_path) is True
    assert fileutil.is_not_exist(tmp_path) is False


def test_missing_path(tmp_path):
    missing = tmp_path / "nothing-here"
    assert fileutil.is_exist(missing) is False
    assert fileutil.is_not_exist(missing) is True


def test_pwd_follows_chdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    current = fileutil.pwd()
    assert "\\" not in current
    assert Path(current).resolve() == tmp_path.resolve()


def test_download_to_writes_body(tmp_path):
    target = tmp_path / "out.bin"
    payload = b"\x00\x01hello world\xff" * 100
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, "https://files.example.com/data.bin", body=payload)
        fileutil.download_to("https://files.example.com/data.bin", target, True)
    assert target.read_bytes() == payload


def test_download_to_without_cert_check(tmp_path):
    target = tmp_path / "page.html"
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, "https://files.example.com/page", body="<html></html>")
        fileutil.download_to("https://files.example.com/page", target, False)
    assert target.read_text() == "<html></html>"


def test_download_to_overwrites_existing(tmp_path):
    target = tmp_path / "out.txt"
    target.write_text("old contents that are longer")
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, "https://files.example.com/new", body="new")
        fileutil.download_to("https://files.example.com/new", target, True)
    assert target.read_text() == "new"


def test_download_to_network_error(tmp_path):
    target = tmp_path / "out.txt"
    with responses.RequestsMock():
        with pytest.raises(requests.exceptions.ConnectionError):
            fileutil.download_to("https://files.example.com/unreachable", target, True)