"""Tests for block fingerprinting."""

import hashlib

from common.hashing import compute_fingerprint, is_valid_fingerprint, verify_fingerprint


def test_fingerprint_is_deterministic():
    data = b'hello block' * 100
    assert compute_fingerprint(data) == compute_fingerprint(bytes(data))


def test_fingerprint_is_sha256_hex():
    assert compute_fingerprint(b'abc') == hashlib.sha256(b'abc').hexdigest()
    assert len(compute_fingerprint(b'abc')) == 64


def test_distinct_samples_have_distinct_fingerprints():
    samples = [bytes([i]) * (i + 1) for i in range(256)] + [b'']
    fingerprints = {compute_fingerprint(s) for s in samples}
    assert len(fingerprints) == len(samples)


def test_empty_input_has_fingerprint():
    assert compute_fingerprint(b'') == hashlib.sha256(b'').hexdigest()


def test_verify_fingerprint():
    fp = compute_fingerprint(b'payload')
    assert verify_fingerprint(b'payload', fp)
    assert not verify_fingerprint(b'payloaD', fp)


def test_is_valid_fingerprint():
    assert is_valid_fingerprint(compute_fingerprint(b'x'))
    assert not is_valid_fingerprint('abc')
    assert not is_valid_fingerprint('g' * 64)
    assert not is_valid_fingerprint('A' * 64)
    assert not is_valid_fingerprint(None)
