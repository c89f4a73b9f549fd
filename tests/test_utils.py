import pytest

from hawkeye.utils import byte_slice_equal, calculate_sha256, calculate_sha512


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"", "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"),
        (b"hello world", "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"),
    ],
)
def test_calculate_sha256(data, expected):
    assert calculate_sha256(data) == expected


def test_calculate_sha512_empty():
    assert calculate_sha512(b"") == (
        "cf83e1357eefb8bdf1542850d66d8007d620e4050b5715dc83f4a921d36ce9ce"
        "47d0d13c5d85f2b0ff8318d2877eec2f63b931bd47417a81a538327af927da3e"
    )


def test_calculate_sha512_shape_and_determinism():
    digest = calculate_sha512(b"hello world")
    assert len(digest) == 128
    assert digest == calculate_sha512(b"hello world")
    assert digest != calculate_sha512(b"hello world!")


@pytest.mark.parametrize(
    "a, b, expected",
    [
        (b"", b"", True),
        (bytes([1, 2, 3]), bytes([1, 2, 3]), True),
        (bytes([1, 2, 3]), bytes([1, 2]), False),
        (bytes([1, 2, 3]), bytes([1, 2, 4]), False),
        (bytes([1, 2, 3, 4, 5]), bytes([1, 2, 3, 5, 5]), False),
        (None, None, True),
        (None, b"", True),
    ],
)
def test_byte_slice_equal(a, b, expected):
    assert byte_slice_equal(a, b) is expected