import pytest

from image_converter.image_engine.models import (
    ConversionError,
    ConversionOutcome,
    ConversionRequest,
    ConvertedImage,
    SourceImage,
    UnsupportedFormatError,
    check_format,
)


def test_check_format_normalizes() -> None:
    assert check_format("JPEG") == "jpeg"
    assert check_format("jpg") == "jpeg"
    assert check_format(" webp ") == "webp"


@pytest.mark.parametrize("fmt", ["gif", "", "tiff"])
def test_check_format_rejects_unknown(fmt: str) -> None:
    with pytest.raises(UnsupportedFormatError):
        check_format(fmt)
    # Callers that only know about ValueError still catch it.
    with pytest.raises(ValueError):
        check_format(fmt)
    with pytest.raises(ConversionError):
        check_format(fmt)


def test_source_ids_are_unique() -> None:
    a = SourceImage(b"same", "image/png")
    b = SourceImage(b"same", "image/png")
    assert a.source_id != b.source_id
    assert a.size == 4
    assert a.subtype == "png"


def test_outcome_carries_request_parameters() -> None:
    source = SourceImage(b"abc", "image/jpeg")
    request = ConversionRequest(source=source, format="avif", quality=0.35, seq=7)
    converted = ConvertedImage(b"12345", request, 10, 20)
    outcome = ConversionOutcome(request, converted=converted)

    assert outcome.seq == 7
    assert converted.format == "avif"
    assert converted.size == 5
    assert request.params() == (source.source_id, "avif", 0.35)
