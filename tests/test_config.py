import pytest

from tailorfinder.core import config


def test_get_settings_reads_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co/")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("PROVIDERS_TABLE", "tailors_v2")
    monkeypatch.setenv("REQUEST_TIMEOUT", "4")
    monkeypatch.setenv("LOCATION_TIMEOUT", "2.5")
    monkeypatch.setenv("SERVER_PORT", "9100")
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("RECORD_BACKEND", raising=False)

    settings = config.get_settings()

    assert settings.supabase_url == "https://example.supabase.co"
    assert settings.supabase_anon_key == "anon"
    assert settings.providers_table == "tailors_v2"
    assert settings.request_timeout == 4
    assert settings.location_timeout == 2.5
    assert settings.server_port == 9100
    assert settings.record_backend == "rest"


def test_port_env_wins_over_server_port(monkeypatch):
    monkeypatch.setenv("SERVER_PORT", "9100")
    monkeypatch.setenv("PORT", "8080")
    assert config.get_settings().server_port == 8080


def test_get_settings_warns_when_missing(monkeypatch, caplog):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    monkeypatch.delenv("RECORD_BACKEND", raising=False)

    with caplog.at_level("WARNING"):
        settings = config.get_settings()

    assert "SUPABASE_URL is not set" in " ".join(caplog.messages)
    assert "SUPABASE_ANON_KEY is not configured" in " ".join(caplog.messages)
    assert settings.supabase_url == ""
    assert settings.request_timeout == 10


def test_default_spatial_filters(monkeypatch):
    monkeypatch.delenv("SPATIAL_FILTERS", raising=False)
    filters = config.get_settings().spatial_filters
    assert [f.id for f in filters] == ["near-me", "within-5km", "within-10km"]
    assert filters[1].radius_km == 5.0
    assert filters[2].label == "Within 10 km"


def test_unknown_backend_raises(monkeypatch):
    monkeypatch.setenv("RECORD_BACKEND", "mongo")
    with pytest.raises(config.ConfigError):
        config.get_settings()


def test_postgres_backend_warns_without_database_url(monkeypatch, caplog):
    monkeypatch.setenv("RECORD_BACKEND", "postgres")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with caplog.at_level("WARNING"):
        settings = config.get_settings()
    assert settings.record_backend == "postgres"
    assert "DATABASE_URL is not set" in " ".join(caplog.messages)


@pytest.mark.parametrize(
    "raw",
    [
        "near-me:Near me",
        "near-me:Near me:abc",
        "near-me:Near me:0",
        "near-me:Near me:-1",
        "a:A:1,a:B:2",
    ],
)
def test_parse_spatial_filters_rejects_bad_entries(raw):
    with pytest.raises(config.ConfigError):
        config.parse_spatial_filters(raw)


def test_parse_spatial_filters_skips_blank_chunks():
    filters = config.parse_spatial_filters(" near-me:Near me:1.5 , ,within-5km::5")
    assert [(f.id, f.label, f.radius_km) for f in filters] == [
        ("near-me", "Near me", 1.5),
        ("within-5km", "within-5km", 5.0),
    ]
