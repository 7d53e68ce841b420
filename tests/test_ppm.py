from io import BytesIO

import pytest

from ppmdecode import ppm
from ppmdecode.errors import (
    BadDimensions,
    InvalidMagic,
    PPMFormatError,
    TruncatedPixelData,
    UnexpectedEndOfInput,
    UnsupportedMaxVal,
)


def make_ppm(width: int, height: int, pixels: bytes | None = None, comments: tuple = ()) -> bytes:
    header = b"P6\n"
    for comment in comments:
        header += b"#" + comment + b"\n"
    header += f"{width} {height}\n255\n".encode("ascii")
    if pixels is None:
        pixels = bytes(i % 256 for i in range(width * height * 3))
    return header + pixels


def test_decode_single_black_pixel():
    image = ppm.decode(BytesIO(b"P6\n1 1\n255\n" + bytes([0, 0, 0])))
    assert image.bounds == (0, 0, 1, 1)
    assert image.pixel_at(0, 0) == (0, 0, 0, 255)


def test_decode_two_by_two_row_major():
    data = b"P6\n2 2\n255\n" + bytes([0, 0, 0, 1, 1, 1, 2, 2, 2, 3, 3, 3])
    image = ppm.decode(BytesIO(data))
    assert image.pixel_at(0, 0) == (0, 0, 0, 255)
    assert image.pixel_at(1, 0) == (1, 1, 1, 255)
    assert image.pixel_at(0, 1) == (2, 2, 2, 255)
    assert image.pixel_at(1, 1) == (3, 3, 3, 255)
    assert image.pix == bytearray([0, 0, 0, 255, 1, 1, 1, 255, 2, 2, 2, 255, 3, 3, 3, 255])


@pytest.mark.parametrize("width, height", [(0, 0), (1, 1), (3, 2), (2, 3), (7, 5), (0, 4)])
def test_decode_bounds_and_buffer_length(width, height):
    image = ppm.decode(BytesIO(make_ppm(width, height)))
    assert image.bounds == (0, 0, width, height)
    assert len(image.pix) == width * height * 4
    assert all(px[3] == 255 for px in image.iter_pixels())


def test_decode_with_comments():
    image = ppm.decode(BytesIO(make_ppm(2, 1, comments=(b"", b" made by hand"))))
    assert (image.width, image.height) == (2, 1)


def test_decode_rejects_bad_comment_byte():
    data = b"P6\n%a\n2 2\n255\n" + bytes(12)
    with pytest.raises(BadDimensions):
        ppm.decode(BytesIO(data))


def test_decode_rejects_truncated_pixels():
    with pytest.raises(TruncatedPixelData):
        ppm.decode(BytesIO(b"P6\n1 1\n255\n\x00\x00"))


def test_decode_rejects_other_maxval():
    with pytest.raises(UnsupportedMaxVal):
        ppm.decode(BytesIO(b"P6\n1 1\n15\n\x00\x00\x00"))


@pytest.mark.parametrize("data", [b"6P\n1 1\n255\n\x00\x00\x00", b"P3\n1 1\n255\n1 2 3\n", b"P5\n1 1\n255\n\x00"])
def test_decode_rejects_bad_magic(data):
    with pytest.raises(InvalidMagic):
        ppm.decode(BytesIO(data))


def test_decode_leaves_trailing_bytes_unread():
    stream = BytesIO(make_ppm(2, 2) + b"next")
    ppm.decode(stream)
    assert stream.read() == b"next"


def test_decode_is_repeatable():
    data = make_ppm(4, 3)
    first = ppm.decode(BytesIO(data))
    second = ppm.decode(BytesIO(data))
    assert first == second
    assert first.pix is not second.pix


def test_decode_matches_pillow():
    Image = pytest.importorskip("PIL.Image")
    data = make_ppm(5, 4, comments=(b" pillow",))
    expected = Image.open(BytesIO(data)).convert("RGBA")
    image = ppm.decode(BytesIO(data))
    assert bytes(image.pix) == expected.tobytes()
    assert image.to_pillow_image().tobytes() == expected.tobytes()


def test_read_ppm(tmp_path):
    path = tmp_path / "im1.ppm"
    path.write_bytes(make_ppm(3, 3))
    image = ppm.read_ppm(path)
    assert image.bounds == (0, 0, 3, 3)


def test_decode_config():
    stream = BytesIO(make_ppm(4, 3, comments=(b" probe",)))
    config = ppm.decode_config(stream)
    assert config == ppm.ImageConfig(4, 3, "RGBA")
    assert stream.read(4) == b"255\n"


def test_decode_config_ignores_maxval_and_pixels():
    config = ppm.decode_config(BytesIO(b"P6\n640 480\n7\n"))
    assert (config.width, config.height, config.color_model) == (640, 480, "RGBA")


@pytest.mark.parametrize("data", [b"", b"P", b"P6", b"P6\n", b"P6\n# still arriving", b"P6\n12", b"P6\n12 "])
def test_decode_config_reports_end_of_input(data):
    with pytest.raises(UnexpectedEndOfInput) as info:
        ppm.decode_config(BytesIO(data))
    assert info.value.at_eof
    assert isinstance(info.value.__cause__, PPMFormatError)


@pytest.mark.parametrize(
    "data, error",
    [
        (b"P7\n1 1\n", InvalidMagic),
        (b"6P\n", InvalidMagic),
        (b"P6\nab cd\n", BadDimensions),
        (b"P6\n\n1 1\n", BadDimensions),
    ],
)
def test_decode_config_reports_invalid_content(data, error):
    with pytest.raises(error) as info:
        ppm.decode_config(BytesIO(data))
    assert not isinstance(info.value, UnexpectedEndOfInput)


@pytest.mark.parametrize("data", [b"", b"P6", b"P6\n", b"P6\n# more soon", b"P6\n2 2\n", b"P6\n2 2\n  "])
def test_decode_reports_end_of_input_in_header(data):
    with pytest.raises(UnexpectedEndOfInput) as info:
        ppm.decode(BytesIO(data))
    assert info.value.stage in ("magic", "dimensions", "maxval")
    assert isinstance(info.value.__cause__, PPMFormatError)


def test_decode_huge_declared_size_fails_as_truncated():
    with pytest.raises(TruncatedPixelData):
        ppm.decode(BytesIO(b"P6\n1000000 1000000\n255\n\x00\x00\x00"))


def test_decode_overlong_dimension_is_a_format_error():
    with pytest.raises(BadDimensions):
        ppm.decode(BytesIO(b"P6\n" + b"1" * 5000 + b" 1\n255\n"))
