import pytest

from piaware2sql.config import SinkConfig, _parse_bool, _parse_location, load_config


def test_parse_location() -> None:
    assert _parse_location('33.076153, -97.10859') == (33.076153, -97.10859)


@pytest.mark.parametrize('value', ['', 'nowhere', '1,2,3', '33.0', '33.07;-97.1', 'inf,-97.1', '33.07,nan'])
def test_parse_location_invalid(value) -> None:
    assert _parse_location(value) is None


@pytest.mark.parametrize('value, expected', [('1', True), ('yes', True), ('0', False), (None, False)])
def test_parse_bool(value, expected) -> None:
    assert _parse_bool(value) is expected


def test_explicit_url_wins() -> None:
    sink = SinkConfig(name='sink1', url='sqlite:///dev.db', server='SQLDB')
    assert sink.sqlalchemy_url == 'sqlite:///dev.db'
    assert sink.is_sqlite


def test_integrated_auth_url() -> None:
    sink = SinkConfig(name='onprem', server='SQLDB', database='PiAwaredb', auth='integrated')
    url = sink.sqlalchemy_url

    assert url.drivername == 'mssql+pyodbc'
    assert url.host == 'SQLDB'
    assert url.database == 'PiAwaredb'
    assert url.username is None
    assert url.query['trusted_connection'] == 'yes'


def test_sql_auth_url() -> None:
    sink = SinkConfig(
        name='azure',
        server='piawaredbserver.database.windows.net',
        auth='sql',
        username='PiAware',
        password='secret',
    )
    url = sink.sqlalchemy_url

    assert url.username == 'PiAware'
    assert url.password == 'secret'
    assert 'trusted_connection' not in url.query
    assert not sink.is_sqlite


def test_unknown_auth_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        SinkConfig(name='sink1', server='SQLDB', auth='kerberos').sqlalchemy_url


def test_unconfigured_sink() -> None:
    sink = SinkConfig(name='sink1')
    assert not sink.is_configured
    with pytest.raises(ValueError):
        sink.sqlalchemy_url


def test_from_env(monkeypatch) -> None:
    monkeypatch.setenv('SINK2_SERVER', 'SQLDB')
    monkeypatch.setenv('SINK2_AUTH', 'SQL')
    monkeypatch.setenv('SINK2_USERNAME', 'PiAware')
    monkeypatch.delenv('SINK2_NAME', raising=False)
    monkeypatch.delenv('SINK2_URL', raising=False)

    sink = SinkConfig.from_env('SINK2', 'sink2')

    assert sink.name == 'sink2'
    assert sink.server == 'SQLDB'
    assert sink.auth == 'sql'
    assert sink.username == 'PiAware'


def test_load_config_keeps_reference_setting(monkeypatch) -> None:
    monkeypatch.setenv('REFERENCE_LOCATION', '33.07;-97.1')

    settings = load_config()

    assert settings.reference_location is None
    assert settings.reference_location_setting == '33.07;-97.1'
