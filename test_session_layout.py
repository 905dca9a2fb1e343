#!/usr/bin/env python3
"""
Session Layout Tests

Tests layout normalization, template substitution, pre-command cascading
and loading of .ghwt-session files.
"""

import json
import shutil
import sys
import tempfile
import unittest
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent))

from ghwt.core.errors import ConfigError, LayoutError
from ghwt.terminal.layout import (DEFAULT_TAB_NAME, SessionConfig, TabConfig, TemplateVars, WindowConfig,
                                  cascade_pre_commands, normalize, substitute_variables, window_root)
from ghwt.terminal.session_config import find_session_config, load_session_config, validate_session_config


class TestNormalize(unittest.TestCase):
    """Test conversion to tab form"""

    def test_legacy_windows_wrapped_in_default_tab(self):
        windows = [WindowConfig("editor", panes=["vim"]), WindowConfig("shell")]
        layout = normalize(SessionConfig(name="s", pre=["source .env"], windows=windows))

        self.assertEqual(len(layout.tabs), 1)
        self.assertEqual(layout.tabs[0].name, DEFAULT_TAB_NAME)
        self.assertEqual(layout.tabs[0].windows, windows)
        self.assertEqual(layout.tabs[0].pre, [])
        self.assertEqual(layout.pre, ["source .env"])

    def test_tabs_kept_in_order(self):
        tabs = [TabConfig("a", [WindowConfig("w1")]), TabConfig("b", [WindowConfig("w2")])]
        layout = normalize(SessionConfig(name="s", tabs=tabs))
        self.assertEqual([t.name for t in layout.tabs], ["a", "b"])

    def test_empty_tab_rejected(self):
        with self.assertRaises(LayoutError):
            normalize(SessionConfig(name="s", tabs=[TabConfig("empty")]))

    def test_no_windows_or_tabs_rejected(self):
        with self.assertRaises(LayoutError):
            normalize(SessionConfig(name="s"))


class TestTemplateVariables(unittest.TestCase):
    """Test template substitution"""

    def setUp(self):
        self.variables = TemplateVars(worktree_path="/w/acme/branch/x", project="acme", branch="x")

    def test_single_brace(self):
        result = substitute_variables("cd {worktree_path} && echo {project}:{branch}", self.variables)
        self.assertEqual(result, "cd /w/acme/branch/x && echo acme:x")

    def test_double_brace(self):
        self.assertEqual(substitute_variables("{{project}}", self.variables), "acme")

    def test_unknown_placeholder_left_alone(self):
        self.assertEqual(substitute_variables("{other} ${HOME}", self.variables), "{other} ${HOME}")

    def test_from_session_name(self):
        variables = TemplateVars.from_session_name("acme-feat-x", "/w")
        self.assertEqual((variables.project, variables.branch), ("acme", "feat-x"))


class TestCascade(unittest.TestCase):
    """Test pre-command ordering and window roots"""

    def test_session_then_tab_then_window(self):
        window = WindowConfig("w", pre=["3"])
        tab = TabConfig("t", [window], pre=["2"])
        layout = normalize(SessionConfig(name="s", pre=["1"], tabs=[tab]))

        self.assertEqual(cascade_pre_commands(layout, tab, window), ["1", "2", "3"])

    def test_window_root(self):
        self.assertEqual(window_root("/w/x", WindowConfig("w")), "/w/x")
        self.assertEqual(window_root("/w/x", WindowConfig("w", root="web")), "/w/x/web")


class TestValidateSessionConfig(unittest.TestCase):
    """Test session config validation"""

    def test_valid_tabs_config(self):
        data = {
            "name": "dev",
            "pre": ["echo hi"],
            "tabs": [{"name": "main", "windows": [{"name": "editor", "panes": ["vim", "git status"]}]}],
            "zellij_ui": {"mode": "compact"},
        }
        self.assertEqual(validate_session_config(data), [])

    def test_missing_name(self):
        errors = validate_session_config({"windows": [{"name": "w"}]})
        self.assertIn("session: required field 'name' missing", errors)

    def test_both_forms_rejected(self):
        errors = validate_session_config({
            "name": "s",
            "tabs": [{"name": "t", "windows": [{"name": "w"}]}],
            "windows": [{"name": "w"}],
        })
        self.assertIn("session: define either 'tabs' or 'windows', not both", errors)

    def test_neither_form_rejected(self):
        errors = validate_session_config({"name": "s"})
        self.assertIn("session: must have either 'tabs' or 'windows' defined", errors)

    def test_empty_tab_rejected(self):
        errors = validate_session_config({"name": "s", "tabs": [{"name": "t", "windows": []}]})
        self.assertIn("tabs[0].windows: a tab must have at least one window", errors)

    def test_unknown_fields_rejected(self):
        errors = validate_session_config({"name": "s", "windows": [{"name": "w", "layout": "tiled"}]})
        self.assertIn("windows[0]: unknown field 'layout'", errors)

    def test_bad_types(self):
        errors = validate_session_config({"name": "s", "windows": [{"name": "w", "panes": "vim"}]})
        self.assertIn("windows[0].panes: must be a list of strings", errors)

    def test_bad_zellij_mode(self):
        errors = validate_session_config({"name": "s", "windows": [{"name": "w"}], "zellij_ui": {"mode": "tiny"}})
        self.assertEqual(len(errors), 1)
        self.assertTrue(errors[0].startswith("zellij_ui.mode"))

    def test_non_mapping(self):
        self.assertEqual(validate_session_config(["a"]), ["session config must be a mapping"])


class TestSessionConfigFiles(unittest.TestCase):
    """Test finding and loading session config files"""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.config_dir = Path(self.test_dir)
        self.project_dir = self.config_dir / "acme"
        self.project_dir.mkdir()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_find_prefers_yaml(self):
        (self.project_dir / ".ghwt-session.json").write_text("{}")
        (self.project_dir / ".ghwt-session.yml").write_text("")
        (self.project_dir / ".ghwt-session.yaml").write_text("")

        self.assertEqual(find_session_config("acme", self.config_dir).name, ".ghwt-session.yaml")

    def test_find_falls_back_to_json(self):
        (self.project_dir / ".ghwt-session.json").write_text("{}")
        self.assertEqual(find_session_config("acme", self.config_dir).name, ".ghwt-session.json")

    def test_find_missing(self):
        self.assertIsNone(find_session_config("acme", self.config_dir))
        self.assertIsNone(find_session_config("ghost", self.config_dir))

    def test_load_yaml(self):
        path = self.project_dir / ".ghwt-session.yaml"
        path.write_text(
            "name: dev\n"
            "windows:\n"
            "  - name: editor\n"
            "    root: web\n"
            "    panes:\n"
            "      - vim\n"
        )

        config = load_session_config(path)

        self.assertEqual(config.name, "dev")
        self.assertIsNone(config.tabs)
        self.assertEqual(config.windows[0].root, "web")
        self.assertEqual(config.windows[0].panes, ["vim"])
        self.assertEqual(config.zellij_ui.mode, "full")

    def test_load_json_tabs(self):
        path = self.project_dir / ".ghwt-session.json"
        path.write_text(json.dumps({
            "name": "dev",
            "tabs": [{"name": "code", "pre": ["nvm use"], "windows": [{"name": "w"}]}],
            "zellij_ui": {"mode": "none"},
        }))

        config = load_session_config(path)

        self.assertEqual(config.tabs[0].pre, ["nvm use"])
        self.assertEqual(config.zellij_ui.mode, "none")

    def test_load_invalid_lists_errors(self):
        path = self.project_dir / ".ghwt-session.json"
        path.write_text(json.dumps({"name": "dev"}))

        with self.assertRaises(ConfigError) as ctx:
            load_session_config(path)
        self.assertIn("must have either 'tabs' or 'windows'", str(ctx.exception))
        self.assertEqual(len(ctx.exception.errors), 1)

    def test_load_unparsable_yaml(self):
        path = self.project_dir / ".ghwt-session.yaml"
        path.write_text("name: [unclosed\n")

        with self.assertRaises(ConfigError):
            load_session_config(path)

    def test_load_missing_file(self):
        with self.assertRaises(ConfigError):
            load_session_config(self.project_dir / ".ghwt-session.yaml")


if __name__ == '__main__':
    unittest.main()
