import pytest

from conftest import write
from website_builder.config import DEFAULT_CONFIG, BuildConfig, load_config
from website_builder.errors import ConfigurationError, ParseError


def test_defaults(tmp_path):
    config = BuildConfig.resolve(tmp_path)
    root = tmp_path.resolve()

    assert config.workdir == root
    assert config.target == root / "build"
    assert config.content == root / "content"
    assert config.layouts == root / "layouts"
    assert config.structure == root / "structure"
    assert config.assets_target == "assets"
    assert config.sass_target == "assets/css"
    assert config.clean is True
    assert config.minify is False
    assert config.site == {}


def test_file_values_and_overrides(tmp_path):
    write(
        tmp_path / "website.yaml",
        "target: public\nlayouts: src/layouts\nminify: true\nsite:\n  name: Example\n",
    )

    config = BuildConfig.resolve(tmp_path, target="dist", layouts=None)

    assert config.target == tmp_path.resolve() / "dist"
    assert config.layouts == tmp_path.resolve() / "src" / "layouts"
    assert config.minify is True
    assert config.site == {"name": "Example"}


def test_load_config_ignores_non_mapping_files(tmp_path):
    write(tmp_path / "website.yaml", "- a\n- b\n")

    assert load_config(tmp_path) == DEFAULT_CONFIG


def test_invalid_yaml_is_parse_error(tmp_path):
    write(tmp_path / "website.yaml", "target: [oops\n")

    with pytest.raises(ParseError):
        BuildConfig.resolve(tmp_path)


@pytest.mark.parametrize(
    "content",
    ["colour: blue\n", "site: just a string\n"],
)
def test_invalid_settings_are_configuration_errors(tmp_path, content):
    write(tmp_path / "website.yaml", content)

    with pytest.raises(ConfigurationError):
        BuildConfig.resolve(tmp_path)


def test_missing_workdir_is_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        BuildConfig.resolve(tmp_path / "nope")


def test_require_dir(tmp_path):
    config = BuildConfig.resolve(tmp_path)
    (tmp_path / "content").mkdir()

    assert config.require_dir(config.content, "content") == config.content
    with pytest.raises(ConfigurationError) as excinfo:
        config.require_dir(config.layouts, "layouts")
    assert "Could not find layouts folder" in str(excinfo.value)
