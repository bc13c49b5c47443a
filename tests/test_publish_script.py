"""
Tests for scripts/publish_product.py.
"""

import base64
import json

import pytest

from scripts import publish_product as script
from conftest import FakeContentStore, make_settings


@pytest.fixture
def product_file(tmp_path):
    path = tmp_path / "widget.json"
    path.write_text(json.dumps({"name": "Widget", "price": 3}), encoding="utf-8")
    return path


@pytest.fixture
def patched(monkeypatch):
    store = FakeContentStore()
    state = {"settings": make_settings(), "store": store}

    class StubClient:
        @staticmethod
        def from_settings(_settings):
            return store

    monkeypatch.setattr(script, "get_settings", lambda: state["settings"])
    monkeypatch.setattr(script, "GitHubContentsClient", StubClient)
    return state


def test_publishes_record_and_image(patched, product_file, tmp_path, capsys):
    image = tmp_path / "widget.jpg"
    image.write_bytes(b"\xff\xd8fake-jpeg")

    code = script.main(["--product_id", "w1", "--data", str(product_file), "--image", str(image)])

    assert code == 0
    store = patched["store"]
    assert [w["path"] for w in store.writes] == ["images/w1.jpg", "products/w1.json"]
    assert base64.b64decode(store.writes[0]["content"]) == b"\xff\xd8fake-jpeg"
    assert json.loads(base64.b64decode(store.writes[1]["content"])) == {"name": "Widget", "price": 3}
    assert "Published product" in capsys.readouterr().out


def test_requires_github_settings(patched, product_file, capsys):
    patched["settings"] = make_settings(github_token=None)
    code = script.main(["--product_id", "w1", "--data", str(product_file)])
    assert code == 2
    assert patched["store"].calls == []
    assert "GITHUB_TOKEN" in capsys.readouterr().err


def test_rejects_bad_repo(patched, product_file):
    patched["settings"] = make_settings(github_repo="nope")
    assert script.main(["--product_id", "w1", "--data", str(product_file)]) == 2


def test_reports_github_rejection(patched, product_file, capsys):
    patched["store"].fail_writes["products/w1.json"] = {"message": "conflict"}
    code = script.main(["--product_id", "w1", "--data", str(product_file)])
    assert code == 1
    assert "GitHub rejected the upload" in capsys.readouterr().err
