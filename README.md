# hawkeye

Watch one or more web pages and get told when their content changes.

hawkeye fetches each URL at a fixed interval, compares the new content with
what it saw the time before, and reports a change together with a short
excerpt around the first position where the two differ. Whitespace-only
differences, timestamps and patterns of your own can be filtered out before
the comparison so that noisy pages do not raise false alarms.

The first fetch of a page only records its content; changes are reported
from the second check on. A fetch that fails, or returns a status outside
the 2xx range, is retried; when every attempt fails an error is reported
instead of a change.

## Installation

```
pip install .
```

## Command line

Watch a page every five minutes:

```
hawkeye watch https://example.com --interval 5m
```

Several URLs may be given at once. Options for `watch`:

- `-i, --interval` — check interval such as `30s`, `5m`, `1h30m` (default `5m`)
- `-t, --timeout` — request timeout (default `30s`)
- `-H, --header` — extra request header as `key:value`; may be repeated
- `-r, --retries` — retry attempts after a failed fetch (default `3`)
- `-R, --retry-interval` — pause between retries (default `10s`)
- `-n, --normalize` — unify line endings and collapse runs of whitespace before comparing
- `-T, --ignore-timestamps` — replace ISO 8601, compact and Unix timestamps before comparing
- `-I, --ignore` — CSS selector to ignore; may be repeated (see below)
- `-g, --group` — put the watched URLs in a named group
- `-f, --format` — `text` (default) or `json`, one JSON object per line
- `-o, --output` — write reports to this file instead of the screen

Durations accept the units `ns`, `us`, `ms`, `s`, `m` and `h`, combined and
with fractions (`1.5h`, `2m30s`).

Each `watch` run adds or updates its URLs in `monitors.json` in the
configuration directory. List what has been saved with:

```
hawkeye list
hawkeye list --group news --format json
```

Show version, build and platform information:

```
hawkeye version
```

Press Ctrl+C (or send SIGTERM) to stop watching.

### Configuration directory

The configuration directory is `~/.hawkeye`, created when needed. If a
configuration file is in use — given with `--config`, or found in the home
directory as `.hawkeye.yaml`, `.hawkeye.yml`, `.hawkeye.json` or
`.hawkeye.toml` — its directory is used instead.

## Library

The simplest interface is `Watcher` in `hawkeye.api`. Durations are in
seconds.

```python
from hawkeye.api import Watcher

watcher = Watcher("https://example.com", 60).with_timeout(10)
for change in watcher:
    print(change.url, change.details)
```

Leaving the loop stops the watcher. `with_headers`, `with_retries` and
`with_ignore_selectors` adjust the other settings, and `with_stop_event`
ties the change stream to a `threading.Event`, ending it when the event is
set.

For finer control build a `Config` and a `Monitor` from `hawkeye.monitor`:

```python
from hawkeye.filters import ContentFilterList, new_regex_filter
from hawkeye.monitor import Config, DetectionMethod, Monitor

config = Config(
    url="https://example.com",
    interval=60,
    method=DetectionMethod.HASH,
    normalize_whitespace=True,
    ignore_timestamps=True,
    content_filters=ContentFilterList(
        [new_regex_filter(r"version: [0-9.]+", "version: X", "Ignore versions")]
    ),
)
monitor = Monitor(config)
for change in monitor.start():
    print(change.to_json())
```

`monitor.stop()` ends the stream after the check in progress. Changes can
be detected by content hash (`DetectionMethod.HASH`), by length
(`DetectionMethod.LENGTH`), or by your own function of the old and new
content returning `(changed, details)` (`DetectionMethod.CUSTOM` with
`custom_compare_fn`). `monitor.status` gives the time of the last check, the
current state and the number of checks.

Each `Change` carries `url`, `timestamp`, `has_changed`, `status_code`,
`content_type`, `error` and `details`; `to_dict()` and `to_json()` leave out
empty optional fields.

`Manager` in `hawkeye.manager` holds many monitors by URL, arranges them in
named groups, and merges their changes into one stream through `start()`,
`start_monitor(url)` or `start_group(name)`.

`hawkeye.filters` offers `new_timestamp_filter()`, `new_date_filter()`,
`create_default_filters()` and `RegexFilter`, whose replacement may refer to
groups as `$1` or `${name}`.

## What it does not do

- CSS selectors given with `--ignore` or `with_ignore_selectors` are stored
  but not applied; pages are compared as raw content.
- The configuration file is only used to locate the configuration
  directory; its contents are not read. `--verbose` is accepted but changes
  nothing.
- `hawkeye list` shows the saved monitor settings only; it does not show
  whether a monitor is running or what it last saw.
- Page content is kept in memory only, so each run starts with a fresh
  baseline. Reports go to the screen or a file; there are no e-mail or
  other notifications.