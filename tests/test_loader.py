"""
Tests for CSV loading and value coercion.
"""

import pytest

from forest_trainer.data.loader import Dataset, coerce_value, load_dataset
from forest_trainer.errors import DatasetIOError, FormatError


@pytest.mark.parametrize('raw, expected', [
    ('70', 70.0),
    (' 1.8 ', 1.8),
    ('-3e2', -300.0),
    ('abc', 'abc'),
    ('', ''),
    ('   ', ''),
    ('NaN', 'NaN'),
    ('1_000', '1_000'),
    ('12kg', '12kg'),
])
def test_coerce_value(raw, expected):
    assert coerce_value(raw) == expected
    assert type(coerce_value(raw)) is type(expected)


def test_coerce_value_keeps_infinity_as_number():
    value = coerce_value('inf')
    assert isinstance(value, float)
    assert value == float('inf')


def test_load_dataset_coerces_numbers_and_keeps_text(write_csv):
    path = write_csv('Weight,Height,ALM\n70,1.8,55.2\nabc,1.6,50.0\n60,1.7,NaN\n')

    dataset = load_dataset(path)

    assert isinstance(dataset, Dataset)
    assert dataset.header == ('Weight', 'Height', 'ALM')
    assert len(dataset) == 3
    records = list(dataset.records())
    assert records[0] == {'Weight': 70.0, 'Height': 1.8, 'ALM': 55.2}
    assert records[1]['Weight'] == 'abc'
    assert records[2]['ALM'] == 'NaN'


def test_load_dataset_preserves_header_order_and_trims(write_csv):
    path = write_csv(' b , a ,"c, quoted"\n 1 , 2 ,"  x "\n')

    dataset = load_dataset(path)

    assert dataset.header == ('b', 'a', 'c, quoted')
    record = next(dataset.records())
    assert list(record) == ['b', 'a', 'c, quoted']
    assert record['b'] == 1.0
    assert record['c, quoted'] == 'x'


def test_records_are_read_only(write_csv):
    dataset = load_dataset(write_csv('a,b\n1,2\n'))
    record = next(dataset.records())

    with pytest.raises(TypeError):
        record['a'] = 5


def test_frame_accessor_returns_copy(write_csv):
    dataset = load_dataset(write_csv('a,b\n1,2\n'))

    frame = dataset.frame
    frame.loc[0, 'a'] = 99.0

    assert next(dataset.records())['a'] == 1.0


def test_short_row_raises_format_error(write_csv):
    with pytest.raises(FormatError, match='Row 2'):
        load_dataset(write_csv('a,b,c\n1,2,3\n4,5\n'))


def test_empty_fields_stay_empty_text(write_csv):
    dataset = load_dataset(write_csv('a,b,c\n1,,3\n'))

    assert next(dataset.records())['b'] == ''


def test_blank_lines_are_skipped(write_csv):
    dataset = load_dataset(write_csv('a,b\n\n1,2\n\n3,4\n'))

    assert len(dataset) == 2


def test_missing_file_raises_io_error(tmp_path):
    with pytest.raises(DatasetIOError) as excinfo:
        load_dataset(tmp_path / 'missing.csv')
    assert isinstance(excinfo.value, IOError)


def test_empty_file_raises_format_error(write_csv):
    with pytest.raises(FormatError):
        load_dataset(write_csv(''))


def test_header_only_raises_format_error(write_csv):
    with pytest.raises(FormatError, match='No data rows'):
        load_dataset(write_csv('a,b,c\n'))


def test_too_many_fields_raises_format_error(write_csv):
    with pytest.raises(FormatError):
        load_dataset(write_csv('a,b\n1,2\n3,4,5,6\n'))


def test_every_row_one_field_wider_than_header_raises_format_error(write_csv):
    with pytest.raises(FormatError):
        load_dataset(write_csv('a,b,t\nX,1,2,3\nY,4,5,6\n'))


def test_duplicate_header_names_raise_format_error(write_csv):
    with pytest.raises(FormatError, match='Duplicate'):
        load_dataset(write_csv('a,b,a\n1,2,3\n'))
