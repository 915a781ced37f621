import numpy as np
import pytest

from hrm_app.engine.errors import InvalidReading, NoValidSamples, NoValidTemperatureData
from hrm_app.engine.extraction import extract_samples, fill_missing_values
from hrm_app.engine.models import TabularReading


def _reading(columns, rows, temperature_field="Temperature"):
    return TabularReading(
        temperature_field=temperature_field,
        field_names=[temperature_field] + list(columns),
        rows=rows,
    )


def test_invalid_temperature_rows_are_dropped_before_columns():
    rows = [
        {"Temperature": "60.0", "A": "100"},
        {"Temperature": "", "A": "999"},
        {"Temperature": "oops", "A": "999"},
        {"Temperature": 60.5, "A": 90.0},
        {"Temperature": "61.0", "A": "80"},
    ]
    extraction = extract_samples(_reading(["A"], rows))

    assert np.allclose(extraction.temperatures, [60.0, 60.5, 61.0])
    assert len(extraction.samples) == 1
    sample = extraction.samples[0]
    assert sample.name == "A"
    assert np.allclose(sample.fluorescence, [100.0, 90.0, 80.0])
    assert sample.visible is True
    assert sample.normalized is None and sample.derivative is None
    assert sample.tm is None and sample.difference is None


def test_missing_cells_are_forward_then_backward_filled():
    rows = [
        {"Temperature": 60.0, "A": None},
        {"Temperature": 61.0, "A": "5"},
        {"Temperature": 62.0, "A": "n/a"},
        {"Temperature": 63.0, "A": "7"},
        {"Temperature": 64.0, "A": "8"},
    ]
    extraction = extract_samples(_reading(["A"], rows))
    assert extraction.warnings == []
    assert np.allclose(extraction.samples[0].fluorescence, [5.0, 5.0, 5.0, 7.0, 8.0])


def test_fill_missing_values_handles_empty_column():
    assert np.array_equal(fill_missing_values([None, None, None]), np.zeros(3))
    assert np.allclose(fill_missing_values([None, 2.0, None, 4.0, None]), [2.0, 2.0, 2.0, 4.0, 4.0])


def test_coverage_gate_is_exclusive_at_half():
    rows = [
        {"Temperature": 60.0, "half": 1.0, "more": 1.0},
        {"Temperature": 61.0, "half": 2.0, "more": 2.0},
        {"Temperature": 62.0, "half": None, "more": 3.0},
        {"Temperature": 63.0, "half": None, "more": None},
    ]
    extraction = extract_samples(_reading(["half", "more"], rows))

    assert [s.name for s in extraction.samples] == ["more"]
    assert len(extraction.warnings) == 1
    assert "half" in extraction.warnings[0]
    assert "50.0%" in extraction.warnings[0]
    for sample in extraction.samples:
        assert sample.fluorescence.shape == extraction.temperatures.shape


def test_non_finite_cells_count_as_missing():
    rows = [
        {"Temperature": 60.0, "A": float("nan")},
        {"Temperature": 61.0, "A": float("inf")},
        {"Temperature": 62.0, "A": 3.0},
    ]
    with pytest.raises(NoValidSamples):
        extract_samples(_reading(["A"], rows))


def test_no_valid_temperature_rows_raises():
    rows = [{"Temperature": "abc", "A": 1.0}, {"Temperature": None, "A": 2.0}]
    with pytest.raises(NoValidTemperatureData):
        extract_samples(_reading(["A"], rows))


def test_all_columns_dropped_raises():
    rows = [{"Temperature": 60.0, "A": "x"}, {"Temperature": 61.0, "A": "y"}]
    with pytest.raises(NoValidSamples):
        extract_samples(_reading(["A"], rows))


def test_reading_without_sample_columns_is_rejected():
    with pytest.raises(InvalidReading):
        extract_samples(_reading([], [{"Temperature": 60.0}]))
    with pytest.raises(InvalidReading):
        extract_samples(
            TabularReading(temperature_field="Temp", field_names=["A"], rows=[{"A": 1.0}])
        )


def test_duplicate_field_names_get_ordinal_suffix():
    rows = [{"Temperature": 60.0, "A": 1.0}, {"Temperature": 61.0, "A": 2.0}]
    extraction = extract_samples(_reading(["A", "A"], rows))
    assert [s.name for s in extraction.samples] == ["A", "A_2"]
