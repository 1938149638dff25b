"""
Dataset loading for forest training.

Reads a comma-separated file with a header row into a ``Dataset``. Every
field that is a non-empty string and fully parses as a number is coerced to
``float``; everything else is kept as the original text so that invalid data
stays visible to the feature extractor instead of being silently nulled.

Usage:
    dataset = load_dataset('top10_combined_df.csv')
    dataset.header        # ('Weight', 'Height', ..., 'ALM')
    for record in dataset.records():
        record['Weight']  # 70.0 or 'abc'
"""

import logging
import math
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Sequence, Tuple, Union

import pandas as pd

from ..errors import DatasetIOError, FormatError

logger = logging.getLogger(__name__)

Value = Union[float, str]
Record = Mapping[str, Value]


def coerce_value(raw: str) -> Value:
    """
    Parse a raw field into a number or keep it as text.

    Args:
        raw: Field text as read from the file

    Returns:
        ``float`` when the trimmed text is a complete numeric literal,
        otherwise the trimmed text itself. ``'NaN'`` is not a number.
    """
    text = raw.strip()
    if not text or '_' in text:
        return text
    try:
        number = float(text)
    except ValueError:
        return text
    if math.isnan(number):
        return text
    return number


class Dataset:
    """
    Ordered, read-only collection of records sharing one header.

    Backed by a ``pandas.DataFrame`` of coerced values. Accessors hand out
    copies so the loaded data cannot be changed after the fact.
    """

    def __init__(self, frame: pd.DataFrame, source: str = ''):
        self._frame = frame
        self.source = source

    @property
    def header(self) -> Tuple[str, ...]:
        return tuple(self._frame.columns)

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return f"Dataset(source={self.source!r}, rows={len(self)}, columns={len(self.header)})"

    def records(self) -> Iterator[Record]:
        """Iterate over rows as immutable column -> value mappings."""
        header = self.header
        for row in self._frame.itertuples(index=False, name=None):
            yield MappingProxyType(dict(zip(header, row)))

    def select(self, columns: Sequence[str]) -> pd.DataFrame:
        """Return a copy of the given columns, in the given order."""
        return self._frame.loc[:, list(columns)].copy()

    def column(self, name: str) -> pd.Series:
        return self._frame[name].copy()

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()


def load_dataset(source: Union[str, Path]) -> Dataset:
    """
    Load training data from a CSV file.

    Args:
        source: Path to the CSV file

    Returns:
        Dataset with at least one record

    Raises:
        DatasetIOError: The file cannot be opened or read
        FormatError: The file has no header, no data rows, or broken rows
    """
    logger.info(f"Loading training data from: {source}")

    # header=None keeps pandas from turning a surplus leading field into the index;
    # every line is then held to the width of the header line
    try:
        raw = pd.read_csv(
            source,
            header=None,
            index_col=False,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            skip_blank_lines=True,
            encoding='utf-8-sig',
        )
    except pd.errors.EmptyDataError as e:
        raise FormatError(f"No header found in {source}") from e
    except pd.errors.ParserError as e:
        raise FormatError(f"Malformed CSV in {source}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise DatasetIOError(f"Cannot read training data {source}: {e}") from e

    header = [str(c).strip() for c in raw.iloc[0]]
    body = raw.iloc[1:].reset_index(drop=True)
    if body.empty:
        raise FormatError(f"No data rows found in {source}")

    duplicates = sorted({c for c in header if header.count(c) > 1})
    if duplicates:
        raise FormatError(f"Duplicate column names in {source}: {', '.join(duplicates)}")

    # missing fields are the only NaN cells, keep_default_na=False leaves '' alone
    short_rows = body.index[body.isna().any(axis=1)]
    if len(short_rows):
        raise FormatError(
            f"Row {short_rows[0] + 1} in {source} has fewer fields than the header ({len(header)})"
        )

    body.columns = header
    frame = body.map(coerce_value)

    logger.info(f"Loaded {len(frame)} records with {len(frame.columns)} columns")
    return Dataset(frame, source=str(source))
