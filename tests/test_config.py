"""Tests for mmdlsp.config — SettingsResolver and client/project settings."""
from __future__ import annotations


class TestSettingsResolver:
    def test_defaults(self):
        from mmdlsp.config import SettingsResolver, Settings
        s = SettingsResolver().resolve()
        assert s == Settings()
        assert s.debounce == 0.5
        assert s.indent_width == 4
        assert s.validator == 'structural'

    def test_project_config_file(self, tmp_path):
        from mmdlsp.config import SettingsResolver
        (tmp_path / '.mmdlsp.toml').write_text(
            'debounce = 0.25\nindent_width = 2\nvalidator = "command"\n'
            'validator_command = ["node", "validate.js"]\n'
        )
        s = SettingsResolver(workspace_root=str(tmp_path)).resolve()
        assert s.debounce == 0.25
        assert s.indent_width == 2
        assert s.validator == 'command'
        assert s.validator_command == ['node', 'validate.js']

    def test_project_config_file_missing_falls_through(self, tmp_path):
        from mmdlsp.config import SettingsResolver, Settings
        assert SettingsResolver(workspace_root=str(tmp_path)).resolve() == Settings()

    def test_broken_project_file_is_ignored(self, tmp_path):
        from mmdlsp.config import SettingsResolver, Settings
        (tmp_path / '.mmdlsp.toml').write_text('debounce = = 1\n')
        assert SettingsResolver(workspace_root=str(tmp_path)).resolve() == Settings()

    def test_client_values_win_over_project_file(self, tmp_path):
        from mmdlsp.config import SettingsResolver
        (tmp_path / '.mmdlsp.toml').write_text('debounce = 0.25\nindent_width = 2\n')
        r = SettingsResolver(workspace_root=str(tmp_path))
        r.set_client_values({'debounce': 1.0})
        s = r.resolve()
        assert s.debounce == 1.0
        assert s.indent_width == 2

    def test_clearing_client_values_restores_project_file(self, tmp_path):
        from mmdlsp.config import SettingsResolver
        (tmp_path / '.mmdlsp.toml').write_text('debounce = 0.25\n')
        r = SettingsResolver(workspace_root=str(tmp_path))
        r.set_client_values({'debounce': 1.0})
        r.set_client_values({})
        assert r.resolve().debounce == 0.25

    def test_invalid_project_value_ignored_per_field(self, tmp_path):
        from mmdlsp.config import SettingsResolver
        (tmp_path / '.mmdlsp.toml').write_text('debounce = "soon"\nindent_width = 3\n')
        s = SettingsResolver(workspace_root=str(tmp_path)).resolve()
        assert s.debounce == 0.5
        assert s.indent_width == 3


class TestClientValues:
    def test_camel_case_keys(self):
        from mmdlsp.config import client_values
        values = client_values({'debounce': 0.1, 'indentWidth': 2, 'logLevel': 'debug'})
        assert values == {'debounce': 0.1, 'indent_width': 2, 'log_level': 'debug'}

    def test_nested_mermaid_section(self):
        from mmdlsp.config import client_values
        values = client_values({'mermaid': {'validator': 'command', 'validatorCommand': 'node v.js'}})
        assert values == {'validator': 'command', 'validator_command': ['node', 'v.js']}

    def test_invalid_values_are_dropped(self):
        from mmdlsp.config import client_values
        values = client_values({'debounce': -1, 'indentWidth': True, 'validator': 'antlr'})
        assert values == {}

    def test_none_options(self):
        from mmdlsp.config import client_values
        assert client_values(None) == {}


class TestMakeValidator:
    def test_structural_by_default(self):
        from mmdlsp.config import Settings
        from mmdlsp.validator import StructuralValidator, make_validator
        assert isinstance(make_validator(Settings()), StructuralValidator)

    def test_command_validator(self):
        from mmdlsp.config import Settings
        from mmdlsp.validator import CommandValidator, make_validator
        v = make_validator(Settings(validator='command', validator_command=['mmdc-validate', '-q'],
                                    validator_timeout=3.0))
        assert isinstance(v, CommandValidator)
        assert v.argv == ['mmdc-validate', '-q']
        assert v.timeout == 3.0
