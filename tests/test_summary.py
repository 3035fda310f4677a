import pandas as pd

from core.data import empty_records
from core.metrics_summary import SUMMARY_COLUMNS, compute_summary, compute_summary_payload


def summary_row(summary: pd.DataFrame, module: str) -> dict:
    return summary[summary["module"] == module].iloc[0].to_dict()


def test_summary_counts_per_module(sample_records: pd.DataFrame) -> None:
    summary = compute_summary(sample_records)

    assert list(summary.columns) == SUMMARY_COLUMNS
    assert summary["module"].tolist() == ["A", "B"]
    assert summary_row(summary, "A") == {
        "module": "A",
        "closed": 1,
        "open": 1,
        "on_hold": 0,
        "pending": 0,
        "total": 2,
    }
    assert summary_row(summary, "B")["pending"] == 1
    assert summary_row(summary, "B")["total"] == 1


def test_unbucketed_statuses_only_count_toward_total(sample_records: pd.DataFrame) -> None:
    records = sample_records.copy()
    records.loc[0, "status"] = "closed"
    records.loc[1, "status"] = "OnHold"

    row = summary_row(compute_summary(records), "A")

    assert row["closed"] == 0
    assert row["on_hold"] == 0
    assert row["total"] == 2


def test_on_hold_bucket_needs_the_space(sample_records: pd.DataFrame) -> None:
    records = sample_records.copy()
    records.loc[1, "status"] = "On Hold"

    assert summary_row(compute_summary(records), "A")["on_hold"] == 1


def test_summary_of_nothing_is_empty() -> None:
    summary = compute_summary(empty_records())

    assert summary.empty
    assert list(summary.columns) == SUMMARY_COLUMNS


def test_summary_payload_has_table_kpis_and_chart(sample_records: pd.DataFrame) -> None:
    payload = compute_summary_payload({"records": sample_records})

    assert payload["kpis"] == {
        "closed": 1,
        "open": 1,
        "on_hold": 0,
        "pending": 1,
        "total": 3,
        "modules": 2,
    }
    assert [row["module"] for row in payload["table"]] == ["A", "B"]
    spec = payload["charts"]["status_by_module"]
    mark = spec["mark"]
    assert (mark["type"] if isinstance(mark, dict) else mark) == "bar"
    assert spec["encoding"]["color"]["field"] == "status"


def test_summary_payload_without_records() -> None:
    payload = compute_summary_payload({"records": empty_records()})

    assert payload["table"] == []
    assert payload["charts"] == {}
    assert payload["kpis"]["total"] == 0
