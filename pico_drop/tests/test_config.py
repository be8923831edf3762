import fnmatch
import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from pico_drop import config
from pico_drop.app.errors import ConfigError
from pico_drop.config import Settings
from pico_drop.main import create_app, main, parse_args


def test_settings_from_env():
    settings = Settings.from_env({"PICO_UPLOADS": "/srv/uploads"})

    assert settings.uploads_dir == Path("/srv/uploads")
    assert settings.keep_digits is False
    assert settings.max_upload_bytes == 5_000_000
    assert settings.static_dir == config.STATIC_DIR


@pytest.mark.parametrize("environ", [{}, {"PICO_UPLOADS": ""}, {"PICO_UPLOADS": "   "}])
def test_settings_require_uploads_dir(environ):
    with pytest.raises(ConfigError):
        Settings.from_env(environ)


@pytest.mark.parametrize("value, expected", [
    ("1", True), ("true", True), ("YES", True), ("on", True),
    ("0", False), ("false", False), ("", False), ("maybe", False),
])
def test_keep_digits_flag(value, expected):
    settings = Settings.from_env({"PICO_UPLOADS": "/srv/uploads", "PICO_KEEP_DIGITS": value})
    assert settings.keep_digits is expected


def test_settings_are_immutable():
    settings = Settings(uploads_dir=Path("/srv/uploads"))
    with pytest.raises(AttributeError):
        settings.uploads_dir = Path("/tmp")


def test_parse_args_defaults():
    args = parse_args([])
    assert args.port == 8000
    assert args.host == "127.0.0.1"


def test_parse_args_port_and_host():
    args = parse_args(["9000", "--host", "0.0.0.0"])
    assert args.port == 9000
    assert args.host == "0.0.0.0"


def test_parse_args_rejects_non_integer_port():
    with pytest.raises(SystemExit):
        parse_args(["eighty"])


def test_main_fails_without_uploads_dir(monkeypatch):
    monkeypatch.delenv("PICO_UPLOADS", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 1


def test_static_assets_ship_inside_the_package():
    """The web page is served from the installed package, not the checkout."""
    package_dir = Path(config.__file__).resolve().parent
    assert config.STATIC_DIR == package_dir / "static"
    for name in ("index.html", "main.js", "style.css"):
        assert (config.STATIC_DIR / name).is_file()


def test_static_assets_are_declared_as_package_data():
    tomllib = pytest.importorskip("tomllib")
    pyproject = Path(config.__file__).resolve().parent.parent / "pyproject.toml"
    if not pyproject.is_file():
        pytest.skip("not running from a source checkout")

    with pyproject.open("rb") as f:
        package_data = tomllib.load(f)["tool"]["setuptools"]["package-data"]["pico_drop"]

    for asset in config.STATIC_DIR.iterdir():
        relative = f"static/{asset.name}"
        assert any(fnmatch.fnmatch(relative, pattern) for pattern in package_data), relative


def test_create_app_from_installed_static_dir(tmp_path):
    settings = Settings(uploads_dir=tmp_path)
    app = create_app(settings)
    assert settings.static_dir == config.STATIC_DIR
    assert any(getattr(route, "path", None) == "/static" for route in app.routes)
