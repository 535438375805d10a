from __future__ import annotations

import json

from conftest import (
    KAKUYOMU_WORK,
    kakuyomu_chapter,
    kakuyomu_episode,
    kakuyomu_episode_url,
    kakuyomu_toc,
)
from novelpress import cli, config


def _serve(monkeypatch, fake_site):
    site = fake_site({
        KAKUYOMU_WORK: kakuyomu_toc(kakuyomu_episode(1, "始まり") + kakuyomu_episode(2, "続き")),
        kakuyomu_episode_url(1): kakuyomu_chapter("始まり", "<p>一行目</p><p class='blank'><br/></p>"),
        kakuyomu_episode_url(2): kakuyomu_chapter("続き", "<p>二行目</p>"),
    })
    monkeypatch.setattr(config.Settings, "make_fetcher", lambda self, **kwargs: site.fetcher())
    return site


def test_writes_json(monkeypatch, fake_site, tmp_path, capsys) -> None:
    _serve(monkeypatch, fake_site)
    code = cli.main([KAKUYOMU_WORK, "--out-dir", str(tmp_path), "--format", "json"])
    assert code == 0

    printed = capsys.readouterr().out.strip().splitlines()
    assert len(printed) == 1
    data = json.loads(open(printed[0], encoding="utf-8").read())
    assert data["title"] == "慎重勇者"
    assert [c["name"] for c in data["chapters"]] == ["始まり", "続き"]
    assert data["chapters"][0]["lines"] == [[{"text": "一行目"}], None]


def test_writes_epub(monkeypatch, fake_site, tmp_path, capsys) -> None:
    _serve(monkeypatch, fake_site)
    assert cli.main([KAKUYOMU_WORK, "--out-dir", str(tmp_path)]) == 0
    printed = capsys.readouterr().out.strip().splitlines()
    assert printed[0].endswith("(1部分-2部分) (完).epub")


def test_failures_set_exit_code(monkeypatch, fake_site, tmp_path, capsys) -> None:
    _serve(monkeypatch, fake_site)
    code = cli.main(["https://example.com/x", KAKUYOMU_WORK, "--out-dir", str(tmp_path), "--format", "txt"])
    assert code == 1
    # The recognised work is still written.
    assert len(capsys.readouterr().out.strip().splitlines()) == 1
