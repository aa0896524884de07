# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from story_lint.config import CacheDomain, LinterConfig, load_caches, load_config


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("concurrency: 4\ntimeout: 2.5", ".yaml", None),
        (json.dumps({"concurrency": 4, "timeout": 2.5}), ".json", None),
        ("concurrency: 0", ".yaml", ValidationError),
        ("unknown_option: 1", ".yml", ValidationError),
        ("not: a: mapping", ".yaml", ValueError),
        ("- just\n- a list", ".yaml", TypeError),
        ("{broken", ".json", ValueError),
        ("concurrency = 4", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, LinterConfig)
        assert cfg.concurrency == 4
        assert cfg.timeout == 2.5


def test_defaults_when_no_default_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = load_config(None)
    assert cfg.concurrency == 8
    assert cfg.video_size_limit == 4_000_000
    assert cfg.freshness_days == 30
    assert "Googlebot" in cfg.user_agent
    assert [c.id for c in cfg.caches] == ["google", "cloudflare", "bing"]


def test_default_file_is_picked_up(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("min_text_length: 5\n", encoding="utf-8")
    assert load_config(None).min_text_length == 5


def test_explicit_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_caches_accept_alias_and_reject_duplicates(tmp_path):
    cfg_path = write_file(
        tmp_path,
        "caches:\n  - id: mirror\n    cacheDomain: .Mirror.Example.\n",
        ".yaml",
    )
    cfg = load_config(cfg_path)
    assert cfg.caches == [CacheDomain(id="mirror", domain_suffix="mirror.example")]

    with pytest.raises(ValidationError):
        LinterConfig(caches=[{"id": "a", "cacheDomain": "x.test"}, {"id": "a", "cacheDomain": "y.test"}])


def test_load_caches_from_file(tmp_path):
    path = tmp_path / "caches.yaml"
    path.write_text("caches:\n  - {id: one, cacheDomain: one.test, name: One}\n", encoding="utf-8")
    assert load_caches(path) == [CacheDomain(id="one", domain_suffix="one.test")]
    assert [c.domain_suffix for c in load_caches()] == [
        "cdn.ampproject.org",
        "amp.cloudflare.com",
        "bing-amp.com",
    ]


def test_config_is_frozen():
    cfg = LinterConfig()
    with pytest.raises(ValidationError):
        cfg.concurrency = 2
