from __future__ import annotations

import pandas as pd
import pytest

from adaptdash.analysis.filters import Filters, apply_filters
from adaptdash.app.errors import ConfigError, ImporterError
from adaptdash.app.logging import get_load_id
from adaptdash.ingest.importer import SurveyImporter
from adaptdash.ingest.lexicon import SWEDISH


HEADER = [f"Question {i}" for i in range(34)]


def _csv(*rows):
    return "\n".join(",".join(r) for r in (HEADER,) + rows)


def test_import_csv_file(tmp_path, make_cells):
    path = tmp_path / "survey.csv"
    path.write_text(_csv(make_cells(currently_teaching="Yes", support_q1="4", challenge_q1="2")), encoding="utf-8-sig")

    result = SurveyImporter().import_csv(path)

    assert result.n_rows == 1
    assert result.source == str(path)
    assert result.warnings == []
    assert result.load_id == get_load_id()
    assert result.records[0].support_adaptation_index == 4.0


def test_import_csv_missing_file(tmp_path):
    with pytest.raises(ImporterError, match="Failed to read CSV"):
        SurveyImporter().import_csv(tmp_path / "nope.csv")


def test_import_empty_csv(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ImporterError, match="empty or invalid"):
        SurveyImporter().import_csv(path)


def test_import_excel(tmp_path, make_cells):
    cells = make_cells(currently_teaching="Yes", support_q1=5, support_q2=3, group_size=21, years_teaching="6-10 years")
    df = pd.DataFrame([HEADER, cells, [None] * 34])
    path = tmp_path / "survey.xlsx"
    df.to_excel(path, header=False, index=False)

    result = SurveyImporter().import_excel(path)

    assert result.n_rows == 1
    record = result.records[0]
    assert record.support_adaptation_index == 4.0
    assert record.group_size == 21.0
    assert record.years_teaching_category == "6-10"


def test_import_bytes_dispatches_on_suffix(make_cells):
    data = _csv(make_cells(school_type="Public")).encode("utf-8")
    result = SurveyImporter().import_bytes(data, "upload.csv")
    assert result.records[0].school_type == "Public"

    with pytest.raises(ImporterError, match="Unsupported file type"):
        SurveyImporter().import_bytes(data, "upload.pdf")


def test_import_bytes_bad_excel():
    with pytest.raises(ImporterError, match="Failed to read Excel"):
        SurveyImporter().import_bytes(b"not a workbook", "upload.xlsx")


def test_header_mode_locates_columns():
    text = "\n".join([
        "School type,Timestamp,Group size,Years teaching",
        "Public,2024/1/1 1:00:00 em CET,22,More than 30 years",
    ])
    result = SurveyImporter(column_mode="header").load_text(text)

    record = result.records[0]
    assert record.school_type == "Public"
    assert record.timestamp == "2024-01-01 13:00:00 CET"
    assert record.group_size == 22.0
    assert record.years_teaching_category == "30+"
    assert "Column not found: Consent" in result.warnings
    assert result.column_mode == "header"


def test_lexicon_is_applied(make_cells):
    text = _csv(make_cells(years_teaching="Över 30 år"))
    assert SurveyImporter(lexicon=SWEDISH).load_text(text).records[0].years_teaching_category == "30+"


def test_invalid_column_mode():
    with pytest.raises(ConfigError):
        SurveyImporter(column_mode="guess")


def test_each_load_gets_a_new_id(make_cells):
    importer = SurveyImporter()
    text = _csv(make_cells())
    assert importer.load_text(text).load_id != importer.load_text(text).load_id


def test_cp1252_file_loads_with_warning(make_cells):
    text = _csv(make_cells(currently_teaching="Yes", item_digital_tools="Instämmer helt", school_type="Grundskola"))
    result = SurveyImporter(lexicon=SWEDISH).import_bytes(text.encode("cp1252"), "survey.csv")

    assert result.n_rows == 1
    assert result.records[0].item_digital_tools == "Instämmer helt"
    assert SWEDISH.agreement_score(result.records[0].item_digital_tools) == 5.0
    assert result.warnings == ["File is not valid UTF-8; read as cp1252"]


def test_undecodable_bytes_with_explicit_encoding_are_replaced(tmp_path, make_cells):
    path = tmp_path / "survey.csv"
    path.write_bytes(_csv(make_cells(school_type="Public")).encode("ascii") + b"\xff\n")

    result = SurveyImporter().import_csv(path, encoding="ascii")

    assert result.records[0].school_type == "Public"
    assert any("undecodable bytes were replaced" in w for w in result.warnings)


def test_unknown_encoding_name(make_cells):
    with pytest.raises(ImporterError, match="Unknown encoding"):
        SurveyImporter().import_bytes(_csv(make_cells()).encode(), "survey.csv", encoding="no-such-codec")


def test_full_and_short_rows_through_default_filters(make_cells):
    header = ",".join(f"col{i}" for i in range(34))
    full = ",".join(make_cells(currently_teaching="Yes", support_q1="5", challenge_q1="4", group_size="22"))
    short = "2024/1/1 1:00:00 fm CET,Yes,Yes,3,3,3,3,3,3,2"
    not_teaching = ",".join(make_cells(currently_teaching="No", support_q1="1"))

    result = SurveyImporter().load_text("\n".join([header, full, short, not_teaching]))
    kept = apply_filters(result.records, Filters.default())

    assert result.n_rows == 3
    assert len(kept) == 2
    assert [r.support_adaptation_index for r in kept] == [5.0, 3.0]
    assert [r.challenge_adaptation_index for r in kept] == [4.0, 2.0]
    assert kept[1].group_size is None
