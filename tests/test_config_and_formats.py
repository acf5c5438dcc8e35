import pytest

from image_converter.config import DEFAULT_MAX_BYTES, DEFAULT_MAX_DIMENSION, Settings
from image_converter.errors import UnsupportedFormatError
from image_converter.formats import FORMAT_POLICIES, TargetFormat


def test_settings_defaults():
    settings = Settings.from_env({})
    assert settings.max_dimension == DEFAULT_MAX_DIMENSION == 10000
    assert settings.max_bytes == DEFAULT_MAX_BYTES == 15 * 1024 * 1024
    assert settings.max_workers >= 1
    assert settings.port == 5000
    assert settings.debug is False


def test_settings_from_env():
    settings = Settings.from_env({
        "IMAGE_MAX_DIMENSION": "5000",
        "IMAGE_MAX_BYTES": "2048",
        "CONVERTER_MAX_WORKERS": "3",
        "CONVERSION_TIMEOUT": "2.5",
        "LOG_LEVEL": "debug",
        "FLASK_SECRET_KEY": "s3cret",
        "PORT": "8080",
        "FLASK_ENV": "development",
    })
    assert settings.max_dimension == 5000
    assert settings.max_bytes == 2048
    assert settings.max_workers == 3
    assert settings.conversion_timeout == 2.5
    assert settings.log_level == "DEBUG"
    assert settings.secret_key == "s3cret"
    assert settings.port == 8080
    assert settings.debug is True


@pytest.mark.parametrize("name, value", [
    ("IMAGE_MAX_DIMENSION", "big"),
    ("IMAGE_MAX_BYTES", "0"),
    ("CONVERSION_TIMEOUT", "-1"),
])
def test_settings_reject_bad_values(name, value):
    with pytest.raises(ValueError, match=name):
        Settings.from_env({name: value})


@pytest.mark.parametrize("token, expected", [
    ("jpeg", TargetFormat.JPEG),
    ("jpg", TargetFormat.JPEG),
    (" PNG ", TargetFormat.PNG),
    ("Ico", TargetFormat.ICO),
    ("avif", TargetFormat.AVIF),
])
def test_parse_target_format(token, expected):
    assert TargetFormat.parse(token) is expected


@pytest.mark.parametrize("token", ["bmp", "", None, "tiff"])
def test_parse_rejects_unknown_formats(token):
    with pytest.raises(UnsupportedFormatError) as excinfo:
        TargetFormat.parse(token)
    assert "jpeg, png, webp, gif, avif, ico" in excinfo.value.message


def test_policies_cover_every_target():
    assert set(FORMAT_POLICIES) == set(TargetFormat)
    assert FORMAT_POLICIES[TargetFormat.ICO].mime_type == "image/x-icon"


def test_policies_are_read_only():
    with pytest.raises(TypeError):
        FORMAT_POLICIES[TargetFormat.PNG] = FORMAT_POLICIES[TargetFormat.JPEG]


def test_lossless_policy_ignores_quality():
    kwargs = FORMAT_POLICIES[TargetFormat.PNG].save_kwargs()
    assert kwargs == {"format": "PNG", "compress_level": 9}


def test_lossy_policies():
    assert FORMAT_POLICIES[TargetFormat.JPEG].save_kwargs() == {
        "format": "JPEG", "quality": 90, "optimize": True,
    }
    assert FORMAT_POLICIES[TargetFormat.WEBP].save_kwargs() == {"format": "WEBP", "quality": 85}
    assert FORMAT_POLICIES[TargetFormat.AVIF].save_kwargs() == {"format": "AVIF", "quality": 80}
    assert FORMAT_POLICIES[TargetFormat.GIF].save_kwargs() == {"format": "GIF"}
