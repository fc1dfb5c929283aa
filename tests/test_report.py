import json

import pytest

from ponghub.report import (
    PortHistory,
    ReportError,
    ServiceHistory,
    build_report,
    generate_report,
    render_report,
)

LOG = {
    "web": {
        "service_history": [
            {"time": "2024-05-01T10:00:00Z", "online": "all"},
            {"time": "2024-05-02T10:00:00Z", "online": "none"},
        ],
        "ports": {
            "http://web.example.com/": [
                {"time": "2024-05-03T10:00:00Z", "online": "part"}
            ],
            "http://web.example.com/empty": [],
            "http://web.example.com/bad": "oops",
        },
    },
    "api": {
        "service_history": [{"time": "2024-05-01T09:00:00Z", "online": "all"}],
        "ports": {},
    },
}


def _template(tmp_path, text):
    path = tmp_path / "report.html"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_build_report_collects_history_and_ports():
    reports, latest = build_report(LOG)
    assert [report.name for report in reports] == ["api", "web"]
    web = reports[1]
    assert web.history == [
        ServiceHistory(status="all", time="2024-05-01T10:00:00Z"),
        ServiceHistory(status="none", time="2024-05-02T10:00:00Z"),
    ]
    assert web.ports == {
        "http://web.example.com/": [
            PortHistory(url="http://web.example.com/", time="2024-05-03T10:00:00Z", status="part")
        ]
    }
    assert latest == "2024-05-03T10:00:00Z"


def test_build_report_availability():
    reports, _ = build_report(LOG)
    by_name = {report.name: report for report in reports}
    assert by_name["web"].availability == 0.5
    assert by_name["api"].availability == 1.0


def test_build_report_tolerates_odd_entries():
    log = {"odd": {"service_history": ["text", {"online": 3}]}, "empty": None}
    reports, latest = build_report(log)
    odd = {report.name: report for report in reports}["odd"]
    assert odd.history == [ServiceHistory("", ""), ServiceHistory("", "")]
    assert odd.availability == 0.0
    assert latest == ""


def test_build_report_empty():
    assert build_report({}) == ([], "")


def test_build_report_rejects_bad_structure():
    with pytest.raises(ReportError):
        build_report({"web": [1, 2]})
    with pytest.raises(ReportError):
        build_report([1, 2])


def test_render_report_lists_services(tmp_path):
    path = _template(tmp_path, "{% for r in results %}{{ r.name }}|{% endfor %}{{ update_time }}")
    assert render_report(LOG, path) == "api|web|2024-05-03T10:00:00Z"


def test_render_report_helpers(tmp_path):
    path = _template(tmp_path, "{{ sub(5, 2) }} {{ until(3)|join(',') }} {{ mul(0.5, 100) }}")
    assert render_report({}, path) == "3 0,1,2 50.0"


def test_render_report_escapes_html(tmp_path):
    path = _template(tmp_path, "{% for r in results %}{{ r.name }}{% endfor %}")
    html = render_report({"<b>": {}}, path)
    assert html == "&lt;b&gt;"


def test_render_report_errors(tmp_path):
    with pytest.raises(ReportError):
        render_report({}, str(tmp_path / "missing.html"))
    with pytest.raises(ReportError):
        render_report({}, _template(tmp_path, "{{ undefined_name }}"))


def test_generate_report_writes_file(tmp_path):
    log_path = tmp_path / "log.json"
    log_path.write_text(json.dumps(LOG), encoding="utf-8")
    out_path = tmp_path / "index.html"
    template = _template(tmp_path, "{% for r in results %}{{ r.name }};{% endfor %}")
    generate_report(str(log_path), str(out_path), template)
    assert out_path.read_text(encoding="utf-8") == "api;web;"


def test_generate_report_missing_or_bad_log(tmp_path):
    template = _template(tmp_path, "x")
    out_path = tmp_path / "index.html"
    with pytest.raises(ReportError):
        generate_report(str(tmp_path / "none.json"), str(out_path), template)
    bad = tmp_path / "bad.json"
    bad.write_text("{oops", encoding="utf-8")
    with pytest.raises(ReportError):
        generate_report(str(bad), str(out_path), template)
    assert not out_path.exists()