"""Profile loading.

Supports:
- Delimited text (tab, comma or space) with a header row, sample names in
  the first column and one locus per remaining column
- Gzipped/compressed files (.gz, .xz)
- JSON objects mapping sample name to a list of alleles
"""

import csv
import gzip
import json
import lzma
from collections import OrderedDict

import pandas as pd
from rich.console import Console

from alleletree.core.errors import ProfileError

console = Console(stderr=True)

DELIMITERS = {'\t', ',', ' '}


def _compression(path):
    path = str(path)
    if path.endswith('.gz'):
        return 'gzip'
    if path.endswith('.xz'):
        return 'xz'
    return None


def _open_text(path):
    compression = _compression(path)
    if compression == 'gzip':
        return gzip.open(path, 'rt', newline='')
    if compression == 'xz':
        return lzma.open(path, 'rt', newline='')
    return open(path, newline='')


def check_field_counts(profile_file, delimiter='\t'):
    """Check that every row has as many fields as the header.

    pandas pads short rows with empty cells, which would read as missing
    alleles, so row lengths are checked on the raw text first. Blank lines
    are ignored, as pandas does.

    Raises:
        ProfileError: Naming the first sample whose row is too short or too long.
    """
    with _open_text(profile_file) as fh:
        reader = csv.reader(fh, delimiter=delimiter)
        header = next(reader, None)
        if header is None:
            return
        for row in reader:
            if not row:
                continue
            if len(row) != len(header):
                raise ProfileError(
                    f"Sample {row[0]!r} on line {reader.line_num} of {profile_file} has "
                    f"{len(row)} fields but the header has {len(header)}. "
                    f"All profiles must cover the same loci."
                )


def read_profiles(profile_file, delimiter='\t'):
    """Read a delimited allele profile file into an ordered mapping.

    Parameters:
        profile_file (str or Path): Path to the profile file. The first row is
            a header; the first column holds sample names.
        delimiter (str): Column separator, one of tab, comma or space.

    Returns:
        OrderedDict: sample name -> list of allele strings. Empty cells are
        kept as empty strings (missing alleles).

    Notes:
        - Columns whose header starts with '#' (other than the first) are
          treated as metadata and dropped.
        - Rows with more or fewer fields than the header, and duplicate
          sample names, are reported as a ProfileError.
    """
    if delimiter not in DELIMITERS:
        raise ValueError(f"Unsupported delimiter {delimiter!r}; use tab, ',' or ' '")

    check_field_counts(profile_file, delimiter)

    df = pd.read_csv(
        profile_file,
        sep=delimiter,
        dtype=str,
        na_filter=False,
        compression=_compression(profile_file),
    )
    if df.shape[0] == 0:
        raise ProfileError(f'No profiles found in {profile_file}')

    keep = [c for i, c in enumerate(df.columns) if i == 0 or not str(c).startswith('#')]
    df = df[keep]

    names = df.iloc[:, 0]
    if names.duplicated().any():
        dupes = sorted(set(names[names.duplicated()]))
        raise ProfileError(f"Duplicate sample names in {profile_file}: {', '.join(dupes)}")

    profiles = OrderedDict()
    for name, row in zip(names, df.iloc[:, 1:].itertuples(index=False, name=None)):
        profiles[name] = list(row)

    console.print(f'  Loaded {len(profiles)} profiles with {df.shape[1] - 1} loci')
    return profiles


def read_profile_json(profile_file):
    """Read a JSON object of sample name -> allele list."""
    with open(profile_file) as fh:
        data = json.load(fh, object_pairs_hook=OrderedDict)
    if not isinstance(data, dict):
        raise ProfileError(f'{profile_file} must contain a JSON object of sample -> alleles')
    return data


__all__ = ['check_field_counts', 'read_profiles', 'read_profile_json']
