import json
import logging

import pytest

from utils.utils import (PerformanceMonitor, create_performance_report, format_duration,
                         save_results, setup_logging)


def test_monitor_records_operations():
    monitor = PerformanceMonitor()
    for _ in range(3):
        with monitor.start_operation("digest"):
            pass
    with monitor.start_operation("sign"):
        pass

    summary = monitor.get_summary()
    assert summary['total_operations'] == 4
    assert summary['operations']['digest']['count'] == 3
    assert summary['operations']['sign']['failures'] == 0


def test_monitor_marks_failures_and_propagates():
    monitor = PerformanceMonitor()
    with pytest.raises(RuntimeError):
        with monitor.start_operation("prove"):
            raise RuntimeError("boom")

    assert monitor.get_summary()['operations']['prove']['failures'] == 1


def test_empty_summary():
    assert PerformanceMonitor().get_summary()['total_operations'] == 0


def test_performance_report():
    monitor = PerformanceMonitor()
    with monitor.start_operation("transcode"):
        pass
    report = create_performance_report(monitor)
    assert "TRANSCODE:" in report
    assert "Executions: 1" in report


def test_save_results(tmp_path):
    path = tmp_path / "results" / "run.json"
    save_results({'credential': {'message_hash': 2 ** 200},
                  'integrity_checks': {'signature_valid': True}}, path)

    data = json.loads(path.read_text())
    assert data['data']['credential']['message_hash'] == str(2 ** 200)
    summary = (path.parent / "run_summary.txt").read_text()
    assert "signature_valid: PASSED" in summary


@pytest.mark.parametrize("seconds, expected", [
    (0.0123, "12.3ms"),
    (5, "5.00s"),
    (125, "2m 5.0s"),
    (3725, "1h 2m 5.0s"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    root = logging.getLogger()
    saved = root.handlers[:]
    try:
        setup_logging("DEBUG", log_file)
        logging.getLogger("credential.test").info("hello")
        for handler in root.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in saved:
            root.addHandler(handler)
