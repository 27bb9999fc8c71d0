import dataclasses
import json
from types import SimpleNamespace

import geocoder
import pytest
from sqlalchemy import create_engine, select
from typer.testing import CliRunner

from conftest import HOME, make_entry
from piaware2sql import app
from piaware2sql.config import SinkConfig, config
from piaware2sql.errors import FetchError
from piaware2sql.ingestion import FeedClient
from piaware2sql.models import Observation

runner = CliRunner()

DOCUMENT = json.dumps({
    'now': 1610912345.6,
    'messages': 1000,
    'aircraft': [make_entry(hex='a00001', flight='DAL100'), make_entry(hex='a00002', flight='AAL200')],
})


def _url(tmp_path, name: str) -> str:
    return f'sqlite:///{tmp_path / name}.db'


def _flights(url: str) -> list:
    engine = create_engine(url)
    try:
        with engine.connect() as connection:
            return connection.execute(
                select(Observation.flight).order_by(Observation.id)
            ).scalars().all()
    finally:
        engine.dispose()


@pytest.fixture
def geocoder_calls(monkeypatch) -> list:
    calls = []

    def fake_ip(location):
        calls.append(location)
        return SimpleNamespace(ok=True, latlng=[32.9, -97.0], city='Dallas', country='US')

    monkeypatch.setattr(geocoder, 'ip', fake_ip)
    return calls


@pytest.fixture
def settings(tmp_path, monkeypatch):
    settings = dataclasses.replace(
        config,
        primary=SinkConfig(name='sink1', url=_url(tmp_path, 'sink1')),
        secondary=SinkConfig(name='sink2', url=_url(tmp_path, 'sink2')),
        reference_location=(HOME.lat, HOME.lon),
        reference_location_setting=f'{HOME.lat},{HOME.lon}',
        create_tables=True,
    )
    monkeypatch.setattr(app, 'config', settings)
    monkeypatch.setattr(FeedClient, 'fetch', lambda self: DOCUMENT)
    return settings


def _use(monkeypatch, settings, **changes):
    changed = dataclasses.replace(settings, **changes)
    monkeypatch.setattr(app, 'config', changed)
    return changed


def test_run_once_writes_to_both_sinks(settings, geocoder_calls) -> None:
    result = runner.invoke(app.cli, ['run', '--once'])

    assert result.exit_code == 0, result.output
    assert _flights(settings.primary.url) == ['AAL200', 'DAL100']
    assert _flights(settings.secondary.url) == ['AAL200', 'DAL100']
    assert 'AAL200' in result.output
    assert 'DAL100' in result.output
    assert geocoder_calls == []


def test_run_once_quiet_prints_no_table(settings) -> None:
    result = runner.invoke(app.cli, ['run', '--once', '--quiet'])

    assert result.exit_code == 0, result.output
    assert 'AAL200' not in result.output
    assert len(_flights(settings.primary.url)) == 2


def test_run_refuses_unconfigured_sink(settings, monkeypatch) -> None:
    _use(monkeypatch, settings, secondary=SinkConfig(name='sink2'))

    result = runner.invoke(app.cli, ['run', '--once'])

    assert result.exit_code == 1


def test_run_refuses_malformed_reference_location(settings, monkeypatch, tmp_path, geocoder_calls) -> None:
    _use(monkeypatch, settings, reference_location=None, reference_location_setting='33.07;-97.1')

    result = runner.invoke(app.cli, ['run', '--once'])

    assert result.exit_code == 1
    assert geocoder_calls == []
    assert not (tmp_path / 'sink1.db').exists()


def test_malformed_reference_location_is_not_guessed(settings, caplog, geocoder_calls) -> None:
    broken = dataclasses.replace(settings, reference_location=None, reference_location_setting='north texas')

    assert app.resolve_reference_location(broken) is None
    assert geocoder_calls == []
    assert any('north texas' in r.getMessage() for r in caplog.records)


def test_blank_reference_location_is_auto_detected(settings, geocoder_calls) -> None:
    blank = dataclasses.replace(settings, reference_location=None, reference_location_setting='  ')

    assert app.resolve_reference_location(blank) == (32.9, -97.0)
    assert geocoder_calls == ['me']


def test_configured_reference_location_wins(settings, geocoder_calls) -> None:
    assert app.resolve_reference_location(settings) == (HOME.lat, HOME.lon)
    assert geocoder_calls == []


def test_check_reports_sinks_and_feed(settings) -> None:
    result = runner.invoke(app.cli, ['check'])

    assert result.exit_code == 0, result.output
    assert 'sink1: ok' in result.output
    assert 'sink2: ok' in result.output
    assert 'feed: ok (2 aircraft)' in result.output
    assert _flights(settings.primary.url) == []


def test_check_fails_when_feed_is_down(settings, monkeypatch) -> None:
    def unreachable(self):
        raise FetchError('connection refused')

    monkeypatch.setattr(FeedClient, 'fetch', unreachable)

    result = runner.invoke(app.cli, ['check'])

    assert result.exit_code == 1
    assert 'feed: FAILED (connection refused)' in result.output
