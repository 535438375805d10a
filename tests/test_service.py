from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import (
    KAKUYOMU_WORK,
    kakuyomu_chapter,
    kakuyomu_episode,
    kakuyomu_episode_url,
    kakuyomu_section,
    kakuyomu_toc,
)
from novelpress import main


@pytest.fixture
def client(fake_site, monkeypatch, tmp_path):
    toc = kakuyomu_toc(
        kakuyomu_section("一章")
        + kakuyomu_episode(1, "始まり")
        + kakuyomu_section("二章")
        + kakuyomu_episode(2, "終わり")
    )
    site = fake_site({
        KAKUYOMU_WORK: toc,
        kakuyomu_episode_url(1): kakuyomu_chapter("始まり", "<p><ruby>勇者<rt>ゆうしゃ</rt></ruby></p>"),
        kakuyomu_episode_url(2): kakuyomu_chapter("終わり", "<p>完</p>"),
    })
    monkeypatch.setattr(main.settings, "output_dir", tmp_path)
    monkeypatch.setattr(main, "JOBS", {})
    main.app.dependency_overrides[main.get_fetcher_factory] = lambda: site.fetcher
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def test_extract_single_chapter(client) -> None:
    response = client.post("/extract", json={"url": kakuyomu_episode_url(1)})
    assert response.status_code == 200
    assert response.json() == {
        "source": "kakuyomu",
        "lines": [[{"base": "勇者", "gloss": "ゆうしゃ"}]],
    }


def test_extract_requires_url(client) -> None:
    assert client.post("/extract", json={}).status_code == 400


def test_extract_unknown_site(client) -> None:
    response = client.post("/extract", json={"url": "https://example.com/novel"})
    assert response.status_code == 400


def test_extract_missing_page(client) -> None:
    response = client.post("/extract", json={"url": kakuyomu_episode_url(99)})
    assert response.status_code == 502


def test_novel_job_lifecycle(client) -> None:
    response = client.post("/novel", json={"url": KAKUYOMU_WORK})
    assert response.status_code == 200
    job_id = response.json()["job_id"]

    job = client.get(f"/jobs/{job_id}").json()
    assert job["status"] == "done"
    assert len(job["files"]) == 2

    catalog = client.get(f"/catalog/{job_id}").json()
    assert [s["name"] for s in catalog["sections"]] == ["一章", "二章"]
    assert catalog["status"] == "completed"

    download = client.get(f"/download/{job_id}/{job['files'][0]}")
    assert download.status_code == 200
    assert download.content[:2] == b"PK"


def test_novel_job_records_errors(client, fake_site) -> None:
    broken = fake_site({KAKUYOMU_WORK: kakuyomu_toc("")})
    main.app.dependency_overrides[main.get_fetcher_factory] = lambda: broken.fetcher
    job_id = client.post("/novel", json={"url": KAKUYOMU_WORK}).json()["job_id"]
    job = client.get(f"/jobs/{job_id}").json()
    assert job["status"] == "error"
    assert "chapters" in job["error"]
    assert client.get(f"/catalog/{job_id}").status_code == 409


def test_finished_job_keeps_the_work_on_disk(client, tmp_path) -> None:
    job_id = client.post("/novel", json={"url": KAKUYOMU_WORK}).json()["job_id"]
    assert "work" not in main.JOBS[job_id]
    assert (tmp_path / job_id / main.CATALOG_FILE).is_file()
    assert main.CATALOG_FILE not in client.get(f"/jobs/{job_id}").json()["files"]


def test_unexpected_failures_mark_the_job_as_failed(client) -> None:
    def broken_factory():
        raise RuntimeError("fetcher unavailable")

    main.app.dependency_overrides[main.get_fetcher_factory] = lambda: broken_factory
    job_id = client.post("/novel", json={"url": KAKUYOMU_WORK}).json()["job_id"]
    job = client.get(f"/jobs/{job_id}").json()
    assert job["status"] == "error"
    assert job["error"] == "fetcher unavailable"


def test_unknown_job_and_file(client) -> None:
    assert client.get("/jobs/nope").status_code == 404
    job_id = client.post("/novel", json={"url": KAKUYOMU_WORK}).json()["job_id"]
    assert client.get(f"/download/{job_id}/other.epub").status_code == 404
