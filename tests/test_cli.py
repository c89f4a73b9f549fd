import io
import json
from datetime import datetime, timezone

import pytest

from hawkeye import version
from hawkeye.cli import (
    MONITORS_FILE,
    DurationError,
    MonitorConfig,
    build_parser,
    format_change,
    get_config_dir,
    load_monitors,
    main,
    parse_duration,
    parse_headers,
    run_list,
    run_version,
    save_monitors,
)
from hawkeye.monitor import Change

URL_A = "https://example.com"
URL_B = "https://example.org"


@pytest.fixture(autouse=True)
def fake_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


# parse_duration


def test_parse_duration_zero():
    assert parse_duration("0") == 0


def test_parse_duration_units_agree():
    assert parse_duration("5m") == parse_duration("300s")
    assert parse_duration("1h") == parse_duration("60m")
    assert parse_duration("500ms") * 2 == parse_duration("1s")


def test_parse_duration_compound_and_fraction():
    assert parse_duration("1h30m") == parse_duration("90m")
    assert parse_duration("1.5h") == parse_duration("90m")


def test_parse_duration_sign():
    assert parse_duration("-1m") == -parse_duration("60s")
    assert parse_duration("+2s") == parse_duration("2s")


@pytest.mark.parametrize("text", ["", "5", "abc", "5x", ".s", "1h-", "-", "--5m"])
def test_parse_duration_rejects(text):
    with pytest.raises(DurationError):
        parse_duration(text)


def test_duration_error_is_value_error():
    with pytest.raises(ValueError):
        parse_duration("10 minutes")


# parse_headers


def test_parse_headers_trims_and_splits_once():
    out = io.StringIO()
    result = parse_headers(
        ["X-Test: test-value", "Content-Type:application/json", "X-Url: http://a"], out
    )
    assert result == {
        "X-Test": "test-value",
        "Content-Type": "application/json",
        "X-Url": "http://a",
    }
    assert out.getvalue() == ""


def test_parse_headers_warns_on_bad_entry():
    out = io.StringIO()
    result = parse_headers(["bad", "X-Test: ok"], out)
    assert result == {"X-Test": "ok"}
    assert "invalid header format: bad" in out.getvalue()


# MonitorConfig


def test_monitor_config_omits_empty_fields():
    config = MonitorConfig(url=URL_A, interval="5m")
    assert set(config.to_dict()) == {"url", "interval"}


def test_monitor_config_round_trip():
    config = MonitorConfig(
        url=URL_A,
        interval="1h",
        group="news",
        headers={"X-Test": "test-value"},
        ignore=[".ad"],
        created_at="2024-01-02T03:04:05Z",
        normalize_whitespace=True,
        ignore_timestamps=True,
    )
    assert MonitorConfig.from_dict(config.to_dict()) == config
    assert MonitorConfig.from_dict(json.loads(json.dumps(config.to_dict()))) == config


def test_monitor_config_from_dict_rejects_bad_types():
    with pytest.raises(ValueError):
        MonitorConfig.from_dict({"url": 5, "interval": "5m"})
    with pytest.raises(ValueError):
        MonitorConfig.from_dict({"url": URL_A, "ignore": "nav"})


# get_config_dir


def test_get_config_dir_uses_config_file_directory(tmp_path):
    assert get_config_dir(tmp_path / "settings.yaml") == tmp_path


def test_get_config_dir_defaults_to_home(fake_home):
    result = get_config_dir(None)
    assert result == fake_home / ".hawkeye"
    assert result.is_dir()


# save_monitors / load_monitors


def test_save_and_load_monitors(tmp_path):
    path = save_monitors(
        tmp_path, [URL_B, URL_A], {"X-Test": "1"}, "5m", "news", ["nav"], True, False
    )
    assert path == tmp_path / MONITORS_FILE
    loaded = load_monitors(path)
    assert set(loaded) == {URL_A, URL_B}
    entry = loaded[URL_A]
    assert entry.url == URL_A
    assert entry.interval == "5m"
    assert entry.group == "news"
    assert entry.headers == {"X-Test": "1"}
    assert entry.ignore == ["nav"]
    assert entry.normalize_whitespace is True
    assert entry.ignore_timestamps is False
    created = datetime.fromisoformat(entry.created_at.replace("Z", "+00:00"))
    assert created.tzinfo is not None
    assert list(json.loads(path.read_text(encoding="utf-8"))) == sorted([URL_A, URL_B])


def test_save_monitors_keeps_existing_entries(tmp_path):
    save_monitors(tmp_path, [URL_A], {}, "5m")
    save_monitors(tmp_path, [URL_B], {}, "1h")
    loaded = load_monitors(tmp_path / MONITORS_FILE)
    assert loaded[URL_A].interval == "5m"
    assert loaded[URL_B].interval == "1h"


def test_save_monitors_replaces_corrupted_file(tmp_path):
    (tmp_path / MONITORS_FILE).write_text("not json", encoding="utf-8")
    save_monitors(tmp_path, [URL_A], {}, "5m")
    assert set(load_monitors(tmp_path / MONITORS_FILE)) == {URL_A}


def test_load_monitors_rejects_non_object(tmp_path):
    path = tmp_path / MONITORS_FILE
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_monitors(path)


# format_change


def test_format_change_error_text():
    change = Change(url=URL_A, error="unexpected status code: 500")
    assert format_change(change, "text") == f"[ERROR] {URL_A}: unexpected status code: 500\n"


def test_format_change_json_matches_to_dict():
    change = Change(url=URL_A, has_changed=True, status_code=200, details="d")
    text = format_change(change, "json")
    assert text.endswith("\n")
    assert json.loads(text) == change.to_dict()


def test_format_change_ignores_unchanged():
    assert format_change(Change(url=URL_A), "text") == ""
    assert format_change(Change(url=URL_A), "json") == ""


def test_format_change_changed_text():
    change = Change(
        url=URL_A,
        timestamp=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        has_changed=True,
        status_code=200,
        content_type="text/plain",
        details="Content differs at position 5",
    )
    lines = format_change(change, "text").splitlines()
    assert lines[0] == f"[CHANGED] {URL_A} at 2024-01-02T03:04:05Z"
    assert "  Details: Content differs at position 5" in lines
    assert "  Content-Type: text/plain" in lines
    assert "  Status Code: 200" in lines


# run_list


def test_run_list_without_file(tmp_path):
    out = io.StringIO()
    run_list(tmp_path, "text", "", out)
    assert out.getvalue().strip() == "No monitors found. Use 'hawkeye watch' to add monitors."


def test_run_list_empty_file(tmp_path):
    (tmp_path / MONITORS_FILE).write_text("{}", encoding="utf-8")
    out = io.StringIO()
    run_list(tmp_path, "text", "", out)
    assert "No monitors found." in out.getvalue()


def test_run_list_parse_error(tmp_path):
    (tmp_path / MONITORS_FILE).write_text("nope", encoding="utf-8")
    out = io.StringIO()
    run_list(tmp_path, "text", "", out)
    assert out.getvalue().startswith("Error parsing config file:")


def test_run_list_text_with_groups(tmp_path):
    save_monitors(tmp_path, [URL_A], {"X-Test": "1"}, "5m", "alpha")
    save_monitors(tmp_path, [URL_B], {}, "1h", "beta")
    out = io.StringIO()
    run_list(tmp_path, "text", "", out)
    text = out.getvalue()
    assert f"Found 2 monitored URLs:" in text
    assert f"URL: {URL_A}" in text
    assert f"URL: {URL_B}" in text
    assert "  Headers: map[X-Test:1]" in text
    assert "Groups:" in text
    assert "  alpha: 1 URLs" in text


def test_run_list_group_filter(tmp_path):
    save_monitors(tmp_path, [URL_A], {}, "5m", "alpha")
    save_monitors(tmp_path, [URL_B], {}, "1h", "beta")
    out = io.StringIO()
    run_list(tmp_path, "text", "alpha", out)
    text = out.getvalue()
    assert URL_A in text
    assert URL_B not in text
    assert "Groups:" not in text


def test_run_list_json(tmp_path):
    save_monitors(tmp_path, [URL_A], {}, "5m")
    out = io.StringIO()
    run_list(tmp_path, "json", "", out)
    assert f'"url": "{URL_A}"' in out.getvalue()
    assert '"interval": "5m"' in out.getvalue()


# run_version


def test_run_version():
    out = io.StringIO()
    run_version(out)
    lines = out.getvalue().splitlines()
    assert lines[0] == f"Hawkeye v{version.VERSION}"
    assert f"Build Date: {version.BUILD_DATE}" in lines
    assert f"Git Commit: {version.GIT_COMMIT}" in lines


# parser and main


def test_build_parser_watch_defaults():
    args = build_parser().parse_args(["watch", URL_A])
    assert args.urls == [URL_A]
    assert args.interval == "5m"
    assert args.timeout == "30s"
    assert args.retry_interval == "10s"
    assert args.retries == 3
    assert args.format == "text"


def test_main_without_command_prints_help(capsys):
    assert main([]) == 0
    assert "hawkeye" in capsys.readouterr().out


def test_main_version(capsys):
    assert main(["version"]) == 0
    assert f"Hawkeye v{version.VERSION}" in capsys.readouterr().out


def test_main_watch_requires_url(capsys):
    assert main(["watch"]) == 1
    assert "Error: at least one URL is required" in capsys.readouterr().out


@pytest.mark.parametrize(
    "flags, message",
    [
        (["--interval", "bad"], "Invalid interval:"),
        (["--timeout", "bad"], "Invalid timeout:"),
        (["-R", "bad"], "Invalid retry interval:"),
    ],
)
def test_main_watch_invalid_durations(capsys, flags, message):
    assert main(["watch", URL_A, *flags]) == 1
    assert message in capsys.readouterr().out


def test_main_list_with_config_file(tmp_path, capsys):
    config_file = tmp_path / "hawkeye.yaml"
    config_file.write_text("", encoding="utf-8")
    save_monitors(tmp_path, [URL_A], {}, "5m")
    assert main(["list", "--config", str(config_file)]) == 0
    out = capsys.readouterr().out
    assert "Using config file:" in out
    assert f"URL: {URL_A}" in out


def test_main_list_uses_home_directory(fake_home, capsys):
    assert main(["list"]) == 0
    assert "No monitors found." in capsys.readouterr().out
    assert (fake_home / ".hawkeye").is_dir()