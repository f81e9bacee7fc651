import pytest

from smithlint.config import SmithConfig, load_config
from smithlint.errors import ConfigError
from smithlint.rules import BUILTIN_RULES, load_rules


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
	for key in ("SMITH_CONFIG", "SMITH_MAX_IMPORTS", "SMITH_DERIVED_DATA", "SMITH_BUILD_TIMEOUT"):
		monkeypatch.delenv(key, raising=False)
	monkeypatch.chdir(tmp_path)


def test_defaults_without_file():
	config = load_config()
	assert config == SmithConfig()
	assert config.max_imports == 10
	assert config.build_timeout == 120


def test_yaml_file(tmp_path):
	path = tmp_path / "smith.yaml"
	path.write_text(
		"max_imports: 12\n"
		"disabled_rules: [date_init]\n"
		"extra_rules:\n"
		"  - name: no_print\n"
		"    category: anti_pattern\n"
		"    pattern: 'print\\('\n"
		"    message: Use Logger instead of print\n"
		"    severity: warning\n"
	)
	config = load_config(str(path))
	assert config.max_imports == 12

	rules = load_rules(config)
	names = [r.name for r in rules]
	assert "date_init" not in names
	assert names[-1] == "no_print"
	assert len(rules) == len(BUILTIN_RULES)


def test_json_file_and_default_location(tmp_path):
	(tmp_path / ".smith.yaml").write_text('{"hang_timeout": 15}')
	assert load_config().hang_timeout == 15


def test_env_overrides(tmp_path, monkeypatch):
	monkeypatch.setenv("SMITH_CONFIG", str(tmp_path / "env.yaml"))
	(tmp_path / "env.yaml").write_text("max_imports: 5\nbuild_timeout: 60\n")
	monkeypatch.setenv("SMITH_BUILD_TIMEOUT", "300")
	monkeypatch.setenv("SMITH_DERIVED_DATA", str(tmp_path / "dd"))

	config = load_config()
	assert config.max_imports == 5
	assert config.build_timeout == 300
	assert config.derived_data_dir == tmp_path / "dd"


@pytest.mark.parametrize(
	"content",
	[
		"max_imports: [unclosed",
		"- just\n- a list\n",
		"max_imports: lots\n",
		"extra_rules:\n  - name: broken\n    category: anti_pattern\n    pattern: '(unclosed'\n    message: never compiles\n",
	],
)
def test_bad_config_raises(tmp_path, content):
	path = tmp_path / "bad.yaml"
	path.write_text(content)
	with pytest.raises(ConfigError):
		load_config(str(path))


def test_missing_explicit_file(tmp_path):
	with pytest.raises(ConfigError):
		load_config(str(tmp_path / "absent.yaml"))
