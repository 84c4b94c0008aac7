import pytest

from fosdecisions.dbs import DatasetLayout
from fosdecisions.dbs.adapters import DecisionIndexStore
from fosdecisions.models import BackfillState, DecisionRecord, PipelineOptions, WindowStatus
from fosdecisions.services.backfill_service import BackfillService, day_ranges, month_ranges
from fosdecisions.services.report import StageReport


class StageRecorder:
    """Stage runner that records calls and fails on demand."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on or set()
        self.calls = []

    def __call__(self, stage, options):
        self.calls.append((stage, options.start_date, options.end_date, options.append))
        if (stage, options.start_date) in self.fail_on:
            raise RuntimeError(f"{stage} crashed")
        return StageReport(stage=stage)


def make_runner(tmp_path, recorder, **kwargs):
    sleeps = []
    runner = BackfillService(
        run_stage=recorder,
        layout=DatasetLayout.at(tmp_path / "fos"),
        base_options=PipelineOptions(),
        sleep=sleeps.append,
        **kwargs,
    )
    return runner, sleeps


def test_month_ranges_clip_to_bounds():
    assert month_ranges("2024-01-15", "2024-03-10") == [
        ("2024-01-15", "2024-01-31"),
        ("2024-02-01", "2024-02-29"),
        ("2024-03-01", "2024-03-10"),
    ]


def test_day_ranges():
    assert day_ranges("2024-01-01", "2024-01-10", 4) == [
        ("2024-01-01", "2024-01-04"),
        ("2024-01-05", "2024-01-08"),
        ("2024-01-09", "2024-01-10"),
    ]


@pytest.mark.parametrize("start, end", [("2024-02-01", "2024-01-01"), ("garbage", "2024-01-01")])
def test_invalid_ranges(start, end):
    with pytest.raises(ValueError):
        month_ranges(start, end)


def test_invalid_window_days():
    with pytest.raises(ValueError):
        day_ranges("2024-01-01", "2024-01-10", 0)


def test_runs_discover_then_parse_per_window(tmp_path):
    recorder = StageRecorder()
    runner, _ = make_runner(tmp_path, recorder)

    state = runner.run(start_date="2024-01-01", end_date="2024-02-29")

    assert recorder.calls == [
        ("discover", "2024-01-01", "2024-01-31", True),
        ("parse", "2024-01-01", "2024-01-31", False),
        ("discover", "2024-02-01", "2024-02-29", True),
        ("parse", "2024-02-01", "2024-02-29", False),
    ]
    assert [w.status for w in state.windows] == [WindowStatus.done, WindowStatus.done]
    assert all(w.attempts == 1 for w in state.windows)


def test_resume_skips_done_windows(tmp_path):
    recorder = StageRecorder()
    runner, _ = make_runner(tmp_path, recorder)
    runner.run(start_date="2024-01-01", end_date="2024-02-29")
    recorder.calls.clear()

    runner.run(start_date="2024-01-01", end_date="2024-02-29")
    assert recorder.calls == []

    runner.run(start_date="2024-01-01", end_date="2024-02-29", force=True)
    assert len(recorder.calls) == 4


def test_state_is_persisted(tmp_path):
    runner, _ = make_runner(tmp_path, StageRecorder())
    runner.run(start_date="2024-01-01", end_date="2024-01-31")

    saved = BackfillState.load(tmp_path / "fos" / "state" / "backfill.json")
    assert saved.windows[0].status == WindowStatus.done
    assert saved.config["start_date"] == "2024-01-01"


def test_changed_window_set_rebuilds_state(tmp_path):
    recorder = StageRecorder()
    runner, _ = make_runner(tmp_path, recorder)
    runner.run(start_date="2024-01-01", end_date="2024-01-31")
    recorder.calls.clear()

    state = runner.run(start_date="2024-01-01", end_date="2024-01-31", window_days=10)

    assert len(state.windows) == 4
    assert len(recorder.calls) == 8


def test_failed_window_is_retried_then_marked(tmp_path):
    recorder = StageRecorder(fail_on={("discover", "2024-01-01")})
    runner, sleeps = make_runner(tmp_path, recorder, retries=2, retry_delay_ms=5000)

    state = runner.run(start_date="2024-01-01", end_date="2024-02-29")

    first, second = state.windows
    assert first.status == WindowStatus.failed
    assert first.last_error == "discover crashed"
    assert sleeps == [5.0, 5.0]
    assert recorder.calls.count(("discover", "2024-01-01", "2024-01-31", True)) == 3
    assert ("parse", "2024-01-01", "2024-01-31", False) not in recorder.calls
    assert second.status == WindowStatus.done


def test_stop_on_error_leaves_later_windows_pending(tmp_path):
    recorder = StageRecorder(fail_on={("parse", "2024-01-01")})
    runner, _ = make_runner(tmp_path, recorder, retries=0, stop_on_error=True)

    state = runner.run(start_date="2024-01-01", end_date="2024-02-29")

    assert [w.status for w in state.windows] == [WindowStatus.failed, WindowStatus.pending]


def test_index_is_deduped_after_window(tmp_path):
    layout = DatasetLayout.at(tmp_path / "fos")
    store = DecisionIndexStore(layout.index_path)
    row = DecisionRecord(decision_reference="DRN1", pdf_url="https://www.example.test/a.pdf")
    store.write([row, row, row])

    runner, _ = make_runner(tmp_path, StageRecorder())
    runner.run(start_date="2024-01-01", end_date="2024-01-31")

    assert len(store.read()) == 1
