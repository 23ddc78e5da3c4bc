from __future__ import annotations

import json

import immo_watch.cli.scrape as scrape_cli
from immo_watch.errors import UpstreamTimeoutError

from conftest import AGENCY_HTML, FakeRenderer, FakeStore


class SchemaStore(FakeStore):
    def __init__(self, db_url: str) -> None:
        super().__init__()
        self.db_url = db_url

    def init_schema(self) -> None:
        self.calls.append("init_schema")


def test_scrape_cli_prints_new_listings(monkeypatch, capsys):
    monkeypatch.setattr(scrape_cli, "PostgresSnapshotStore", SchemaStore)
    monkeypatch.setattr(scrape_cli, "SeleniumPageRenderer", lambda settings: FakeRenderer(AGENCY_HTML))

    assert scrape_cli.main(["--min-price", "1.000"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {"newListings": [{"url": "https://www.immobiliare.it/annunci/101/", "price": "€ 1.250"}]}


def test_scrape_cli_reports_failure(monkeypatch, capsys):
    monkeypatch.setattr(scrape_cli, "PostgresSnapshotStore", SchemaStore)
    monkeypatch.setattr(
        scrape_cli,
        "SeleniumPageRenderer",
        lambda settings: FakeRenderer(error=UpstreamTimeoutError("timed out", message="Timeout during scraping operation.")),
    )

    assert scrape_cli.main([]) == 1
    assert "Timeout during scraping operation." in capsys.readouterr().err
