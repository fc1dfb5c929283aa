# ponghub

ponghub probes a list of HTTP services, records whether each one answered,
keeps a rolling history of those results in a JSON file and renders that
history as a static HTML status page from a Jinja2 template you provide.

Each run of the `ponghub` command:

1. reads the YAML configuration (`config.yaml` by default);
2. sends requests to every health and API endpoint of every service, making
   up to `retry` attempts per endpoint and stopping at the first success;
3. appends the outcome to the JSON log (`data/ponghub_log.json` by default),
   dropping entries older than `max_log_days`;
4. renders the HTML report (`data/index.html` by default) from the template
   (`templates/report.html` by default).

Run it from a cron job or a CI schedule to build up an uptime history.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Usage

From the directory that holds `config.yaml`, `templates/report.html` and an
existing `data/` directory:

```
ponghub
```

Every path can be changed:

```
ponghub --config config.yaml --log data/ponghub_log.json \
        --report data/index.html --template templates/report.html
```

Progress is logged at INFO level to standard error. The command exits with
status 0 on success and 1 if the configuration cannot be loaded, an endpoint
uses an unsupported method or an invalid `response_regex`, the log cannot be
read back or written, or the report cannot be rendered or written.

## Configuration

```yaml
timeout: 5          # read and defaulted; checks use each service's own value
retry: 2            # read and defaulted; checks use each service's own value
max_log_days: 30    # how long history is kept (default 30)

services:
  - name: "Example API"
    timeout: 10     # seconds per request (default 5)
    retry: 3        # attempts per endpoint (default 2)
    health:
      - url: "https://status.example.com/health"
    api:
      - url: "https://api.example.com/v1/ping"
        method: "POST"
        body: '{"ping": true}'
        status_code: 201
      - url: "https://api.example.com/v1/version"
        response_regex: '"version":\s*"\d+\.\d+'
```

Any `timeout`, `retry` or `max_log_days` that is missing or not positive is
replaced by the built-in default. A service's `timeout` and `retry` fall back
to these built-in defaults, not to the top-level values. At least one service
must be defined; otherwise `load_config` raises `ConfigError`.

### Endpoint fields

| Field            | Meaning                                                           |
|------------------|-------------------------------------------------------------------|
| `url`            | Address to request.                                               |
| `method`         | `GET`, `POST` or `PUT` (any case). Anything unrecognised is sent as `GET`; `DELETE`, `HEAD`, `PATCH`, `OPTIONS`, `TRACE` and `CONNECT` raise `UnsupportedMethodError`. |
| `body`           | Request body, sent as UTF-8.                                      |
| `status_code`    | Expected status code. Without it (and without `response_regex`), `200` counts as success. |
| `response_regex` | Pattern that must be found somewhere in the response body.        |

When both `status_code` and `response_regex` are given, a response must
satisfy both. When only `response_regex` is given, any status code is accepted
as long as the body matches.

## Results

Every endpoint and every service is reported as one of:

- `all` — every attempt succeeded;
- `part` — some attempts succeeded;
- `none` — nothing succeeded.

Because checking an endpoint stops at its first success, an endpoint is `all`
only when its first attempt succeeded, and `part` when it succeeded after one
or more failures. A service is `all` when every one of its endpoints is `all`,
`none` when none of them is, and `part` otherwise.

Timestamps are local time in RFC 3339 form with second precision.

### The log file

The log is a JSON object keyed by service name. Each service holds a
`service_history` list of `{"time", "online"}` entries and a `ports` object
mapping each URL to its own list of such entries. A URL that appears several
times in one service gets a single entry per run, its outcomes merged with
`merge_online_status`. A missing or unreadable log file starts a new log; a
log that is not valid JSON, or not shaped as above, raises `LogError`.
The directory holding the log must already exist.

### The report template

The package does not ship a report template; supply your own Jinja2 template
at `templates/report.html` or pass `--template`. It is rendered with
autoescaping and strict undefined variables, and sees:

- `results` — a list of `ServiceReport` ordered by service name, each with
  `name`, `history` (list of `ServiceHistory` with `status` and `time`),
  `ports` (URL to list of `PortHistory` with `url`, `time` and `status`) and
  `availability`, the share of recorded runs in which the service was `all`;
- `update_time` — the latest timestamp found in the log;
- the helpers `sub(a, b)`, `until(n)` (the list `0 … n-1`) and `mul(a, b)`.

## Using it as a library

```python
from ponghub.config import load_config
from ponghub.checker import check_services
from ponghub.result import output_results
from ponghub.report import generate_report

config = load_config("config.yaml")
results = check_services(config)
output_results(results, config.max_log_days, "data/ponghub_log.json")
generate_report("data/ponghub_log.json", "data/index.html", "templates/report.html")
```

- `ponghub.checker.check_port` and `check_services` accept an optional
  `requests.Session`; `PortResult.to_dict` and `CheckResult.to_dict` give
  JSON-ready mappings of the results.
- `ponghub.result.update_log(log_data, results, max_log_days, now)` returns an
  updated copy of in-memory log data without touching any file.
- `ponghub.report.build_report(log_data)` returns `(reports, update_time)`, and
  `render_report(log_data, template_path)` returns the rendered HTML as a
  string.
- `ponghub.status` defines the `TestResult` and `PortType` enums.

## What it does not do

ponghub runs one round of checks per invocation; it has no scheduler or daemon
mode and no web server. It writes the status page as a static file and does
not include a template for it.