"""
Property tests for storage key derivation and download tokens.
"""

from hypothesis import given
from hypothesis import strategies as st

from ephemera.domain.file_storage.value_objects import DownloadToken, StorageKey

from .strategies import filenames, hostile_filenames, long_filenames


@given(st.one_of(filenames, hostile_filenames))
def test_sanitized_name_is_a_single_safe_segment(name):
    safe = StorageKey.sanitize(name)

    assert safe
    assert "/" not in safe
    assert "\\" not in safe
    assert safe.strip(".")


@given(st.one_of(filenames, hostile_filenames))
def test_derived_key_stays_under_file_directory(name):
    key = StorageKey.derive("abc123", name).value

    prefix, file_id, leaf = key.split("/")
    assert (prefix, file_id) == ("uploads", "abc123")
    assert leaf not in ("", ".", "..")


@given(long_filenames)
def test_sanitized_name_fits_filesystem_segment_limit(name):
    safe = StorageKey.sanitize(name)

    assert len(safe.encode("utf-8")) <= StorageKey.MAX_NAME_BYTES
    assert safe.strip(".")


@given(st.integers(min_value=1, max_value=30))
def test_generated_tokens_are_well_formed_and_distinct(count):
    tokens = {DownloadToken.generate().value for _ in range(count)}

    assert len(tokens) == count
    assert all(DownloadToken.is_well_formed(token) for token in tokens)
