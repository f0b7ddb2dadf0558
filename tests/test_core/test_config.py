from floodguard.core.config import Settings


def test_defaults():
    config = Settings(_env_file=None)

    assert config.cycle_interval_seconds == 600
    assert config.location_lat == 6.45
    assert config.location_lng == 3.39
    assert config.usgs_site == "01646500"
    assert config.alert_topic == "flood_alerts"
    assert config.model_dir == "./ai-model"


def test_environment_aliases(monkeypatch):
    monkeypatch.setenv("CYCLE_INTERVAL_SECONDS", "120")
    monkeypatch.setenv("MQTT_TOPIC_PREFIX", "lagos")
    monkeypatch.setenv("OWM_KEY", "abc")

    config = Settings(_env_file=None)

    assert config.cycle_interval_seconds == 120
    assert config.mqtt_topic_prefix == "lagos"
    assert config.owm_key == "abc"


def test_cors_origins_list():
    assert Settings(_env_file=None, CORS_ORIGINS="*").cors_origins_list == ["*"]
    assert Settings(
        _env_file=None, CORS_ORIGINS="http://a.test, http://b.test"
    ).cors_origins_list == ["http://a.test", "http://b.test"]
    assert Settings(
        _env_file=None, CORS_ORIGINS='["http://a.test"]'
    ).cors_origins_list == ["http://a.test"]
