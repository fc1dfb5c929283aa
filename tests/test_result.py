import json
from datetime import datetime, timedelta, timezone

import pytest

from ponghub.checker import CheckResult, PortResult
from ponghub.result import LogError, merge_online_status, output_results, update_log
from ponghub.status import TestResult

NOW = datetime(2024, 5, 10, 12, 0, 0, tzinfo=timezone.utc)
START = "2024-05-10T11:59:00Z"


def _port(url, online, start=START):
    return PortResult(
        url=url,
        method="GET",
        online=online,
        start_time=start,
        end_time=start,
        total_attempts=1,
        success_count=1 if online is TestResult.ALL else 0,
    )


def _check(name, online=TestResult.ALL, health=(), api=(), start=START):
    return CheckResult(
        name=name,
        online=online,
        start_time=start,
        end_time=start,
        total_attempts=1,
        success_count=1,
        health=list(health),
        api=list(api),
    )


@pytest.mark.parametrize(
    "statuses, expected",
    [
        ([], TestResult.NONE),
        ([TestResult.ALL, TestResult.ALL], TestResult.ALL),
        ([TestResult.NONE, TestResult.NONE], TestResult.NONE),
        ([TestResult.ALL, TestResult.NONE], TestResult.PART),
        ([TestResult.PART], TestResult.PART),
        ([TestResult.NONE, TestResult.PART], TestResult.NONE),
        ([TestResult.ALL, TestResult.PART], TestResult.ALL),
        ([TestResult.UNKNOWN], TestResult.PART),
    ],
)
def test_merge_online_status(statuses, expected):
    assert merge_online_status(statuses) is expected


def test_update_log_creates_new_service():
    url = "http://svc.example.com/health"
    result = _check("web", health=[_port(url, TestResult.ALL)])
    updated = update_log({}, [result], 30, NOW)
    assert updated == {
        "web": {
            "service_history": [{"time": START, "online": "all"}],
            "ports": {url: [{"time": START, "online": "all"}]},
        }
    }


def test_update_log_appends_to_existing_history():
    existing = {
        "web": {
            "service_history": [{"time": "2024-05-09T12:00:00Z", "online": "none"}],
            "ports": {},
        }
    }
    updated = update_log(existing, [_check("web")], 30, NOW)
    assert updated["web"]["service_history"] == [
        {"time": "2024-05-09T12:00:00Z", "online": "none"},
        {"time": START, "online": "all"},
    ]


def test_update_log_drops_expired_and_malformed_entries():
    old = (NOW - timedelta(days=31)).strftime("%Y-%m-%dT%H:%M:%SZ")
    edge = (NOW - timedelta(days=30)).strftime("%Y-%m-%dT%H:%M:%SZ")
    past_edge = (NOW - timedelta(days=30, seconds=1)).strftime("%Y-%m-%dT%H:%M:%SZ")
    existing = {
        "web": {
            "service_history": [
                {"time": old, "online": "all"},
                {"time": edge, "online": "all"},
                {"time": past_edge, "online": "all"},
                {"time": "yesterday", "online": "all"},
                "not a mapping",
            ],
            "ports": {"http://gone.example.com": [{"time": old, "online": "all"}]},
        }
    }
    updated = update_log(existing, [_check("web")], 30, NOW)
    times = [entry["time"] for entry in updated["web"]["service_history"]]
    assert times == [edge, START]
    assert updated["web"]["ports"]["http://gone.example.com"] == []


def test_update_log_accepts_offsets_and_fractions():
    existing = {
        "web": {
            "service_history": [
                {"time": "2024-05-10T13:00:00+02:00", "online": "part"},
                {"time": "2024-05-10T10:00:00.123456789Z", "online": "part"},
                {"time": "2024-05-10T10:00:00", "online": "part"},
            ],
            "ports": {},
        }
    }
    updated = update_log(existing, [_check("web")], 1, NOW)
    times = [entry["time"] for entry in updated["web"]["service_history"]]
    assert times == [
        "2024-05-10T13:00:00+02:00",
        "2024-05-10T10:00:00.123456789Z",
        START,
    ]


def test_update_log_merges_same_url_across_health_and_api():
    url = "http://svc.example.com/"
    later = "2024-05-10T11:59:30Z"
    result = _check(
        "web",
        health=[_port(url, TestResult.ALL)],
        api=[_port(url, TestResult.NONE, start=later)],
    )
    updated = update_log({}, [result], 30, NOW)
    assert updated["web"]["ports"] == {url: [{"time": START, "online": "part"}]}


def test_update_log_converts_values_to_text():
    existing = {
        "web": {
            "service_history": [],
            "ports": {
                "http://svc.example.com/": [
                    {"time": START, "online": "all", "count": 3, "flag": True}
                ]
            },
        }
    }
    updated = update_log(existing, [_check("web")], 30, NOW)
    entry = updated["web"]["ports"]["http://svc.example.com/"][0]
    assert entry["count"] == "3"
    assert entry["flag"] == "true"


def test_update_log_leaves_input_and_other_services_alone():
    other = {"service_history": [{"time": "1999-01-01T00:00:00Z", "online": "none"}]}
    existing = {"other": other, "web": {"service_history": [], "ports": {}}}
    snapshot = json.loads(json.dumps(existing))
    updated = update_log(existing, [_check("web")], 30, NOW)
    assert existing == snapshot
    assert updated["other"] == other
    assert len(updated["web"]["service_history"]) == 1


def test_output_results_writes_and_appends(tmp_path):
    log_path = tmp_path / "log.json"
    url = "http://svc.example.com/health"
    recent = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    result = _check("web", health=[_port(url, TestResult.ALL, recent)], start=recent)

    first = output_results([result], 30, str(log_path))
    assert json.loads(log_path.read_text(encoding="utf-8")) == first

    output_results([result], 30, str(log_path))
    stored = json.loads(log_path.read_text(encoding="utf-8"))
    assert len(stored["web"]["service_history"]) == 2
    assert len(stored["web"]["ports"][url]) == 2


def test_output_results_rejects_corrupt_log(tmp_path):
    log_path = tmp_path / "log.json"
    log_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(LogError):
        output_results([_check("web")], 30, str(log_path))


def test_output_results_rejects_wrong_structure(tmp_path):
    log_path = tmp_path / "log.json"
    log_path.write_text('{"web": [1, 2]}', encoding="utf-8")
    with pytest.raises(LogError):
        output_results([_check("web")], 30, str(log_path))


def test_output_results_fails_when_directory_is_missing(tmp_path):
    log_path = tmp_path / "missing" / "log.json"
    with pytest.raises(LogError):
        output_results([_check("web")], 30, str(log_path))
    assert not log_path.exists()