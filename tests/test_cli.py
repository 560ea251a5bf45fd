from castweb import cli
from castweb.config import Settings


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("CASTWEB_ROOT", "/media")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("YTCAST_DEVICE", "tv")
    monkeypatch.setenv("SILENCE_HEALTH_LOGS", "0")
    s = Settings.from_env()
    assert (s.root, s.port, s.ytcast_device, s.silence_health) == ("/media", 9000, "tv", False)


def test_flags_override_env(monkeypatch):
    monkeypatch.setenv("YTCAST_DEVICE", "env-device")
    monkeypatch.delenv("CASTWEB_ROOT", raising=False)
    s, level = cli.parse_settings(["--root", "/srv", "--port", "8181", "--ytcast", "flag-device", "--log-level", "debug"])
    assert (s.root, s.port, s.ytcast_device, level) == ("/srv", 8181, "flag-device", "debug")


def test_positional_root(monkeypatch):
    monkeypatch.delenv("CASTWEB_ROOT", raising=False)
    s, _ = cli.parse_settings(["/videos"])
    assert s.root == "/videos"


def test_missing_root_exits_1(monkeypatch):
    monkeypatch.delenv("CASTWEB_ROOT", raising=False)
    assert cli.main([]) == 1


def test_non_directory_root_exits_1(tmp_path):
    f = tmp_path / "file"
    f.write_text("x")
    assert cli.main(["--root", str(f)]) == 1


def test_runs_uvicorn_with_settings(tmp_path, monkeypatch):
    seen = {}

    def fake_run(app, host, port, log_level):
        seen.update(app=app, host=host, port=port, log_level=log_level)
    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    assert cli.main(["--root", str(tmp_path), "--port", "8123", "--host", "127.0.0.1"]) == 0
    assert (seen["host"], seen["port"], seen["log_level"]) == ("127.0.0.1", 8123, "info")
    assert seen["app"].state.settings.root == str(tmp_path)
