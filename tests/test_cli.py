import time

import numpy as np
import pytest

import prime_threads
from prime_threads import ConfigError, SieveConfig, VerificationError, main, run, verify


@pytest.mark.parametrize("kwargs", [
    {"limit": 100, "workers": 0},
    {"limit": 100, "workers": -3},
    {"limit": 4, "workers": 2},
    {"limit": prime_threads.MAX_LIMIT + 1, "workers": 2},
])
def test_config_rejects_bad_values(kwargs):
    with pytest.raises(ConfigError):
        SieveConfig(**kwargs)


def test_config_upper_bound():
    assert SieveConfig(limit=100, workers=4).upper_bound == 102


def test_run_writes_report(tmp_path):
    out = tmp_path / "primes.txt"
    elapsed, stats = run(SieveConfig(limit=100, workers=4, output=str(out), verify=True))
    assert elapsed >= 0
    assert stats.count == 25
    lines = out.read_text().splitlines()
    assert lines[0].startswith("Execution Time - ")
    assert lines[1:3] == ["Primes Found - 25", "Sum of all Primes - 1060"]
    assert lines[-1] == "97"


def test_verify_reports_mismatch():
    table = np.zeros(32, dtype=bool)
    with pytest.raises(VerificationError, match="differ"):
        verify(table, 30)


def test_main_end_to_end(tmp_path, capsys):
    out = tmp_path / "primes.txt"
    main(["--limit", "30", "--workers", "4", "--output", str(out)])
    assert "Done" in capsys.readouterr().out
    lines = out.read_text().splitlines()
    assert lines[1:3] == ["Primes Found - 10", "Sum of all Primes - 129"]
    assert lines[4:] == ["2", "3", "5", "7", "11", "13", "17", "19", "23", "29"]


@pytest.mark.parametrize("argv", [
    ["--limit", "3"],
    ["--limit", "100", "--workers", "0"],
])
def test_main_rejects_bad_config(tmp_path, argv):
    out = tmp_path / "primes.txt"
    with pytest.raises(SystemExit) as exc:
        main(argv + ["--output", str(out)])
    assert exc.value.code == 2
    assert not out.exists()


def test_run_times_only_the_parallel_phase(tmp_path, monkeypatch):
    real_merge = prime_threads.merge
    real_aggregate = prime_threads.aggregate

    def slow_merge(*args):
        time.sleep(0.3)
        return real_merge(*args)

    def slow_aggregate(*args):
        time.sleep(0.3)
        return real_aggregate(*args)

    monkeypatch.setattr(prime_threads, "merge", slow_merge)
    monkeypatch.setattr(prime_threads, "aggregate", slow_aggregate)

    out = tmp_path / "primes.txt"
    elapsed, stats = run(SieveConfig(limit=100, workers=2, output=str(out)))
    assert elapsed < 0.3
    assert stats.count == 25
