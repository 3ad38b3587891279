# tests/test_cli.py

import json

import main as cli
from api import api_server
from scrapers.models import JobRecord


def test_serve_goes_through_api_launcher(monkeypatch):
    calls = []
    monkeypatch.setattr(api_server.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    assert cli.main(["serve", "--host", "127.0.0.1", "--port", "9001"]) == 0

    app, kwargs = calls[0]
    assert app == "api.api_server:app"
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9001
    assert kwargs["workers"] == 1


def test_scrape_prints_jobs_as_json(monkeypatch, capsys):
    job = JobRecord(title="Frontend Developer", company="Acme", description="", url="https://x/1", site="seek")
    monkeypatch.setattr(cli.MultiSiteOrchestrator, "run_sync", lambda self, terms, **kwargs: [job])

    assert cli.main(["scrape", "Frontend Developer", "--site", "seek"]) == 0

    printed = json.loads(capsys.readouterr().out)
    assert printed[0]["title"] == "Frontend Developer"


def test_unknown_site_exits_with_two(capsys):
    assert cli.main(["scrape", "Dev", "--site", "monster-jobs"]) == 2
