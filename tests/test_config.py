import unittest

from cromatizate.config import AppConfig


def test_missing_file_uses_defaults(tmp_path):
    cfg = AppConfig(config_path=str(tmp_path / "absent.yaml"))
    assert cfg.get("server.port") == 8008
    assert cfg.get("interactions.recommendation_window") == 100
    assert cfg.get("interactions.ontology_window") == 50
    assert cfg.get("security.cors.enabled") is False


def test_yaml_layers_over_defaults(tmp_path):
    path = tmp_path / "c.yaml"
    path.write_text("server:\n  port: 9000\ninteractions:\n  ontology_window: 5\n", encoding="utf-8")
    cfg = AppConfig(config_path=str(path))
    assert cfg.get("server.port") == 9000
    assert cfg.get("server.host") == "127.0.0.1"
    assert cfg.get("interactions.ontology_window") == 5
    assert cfg.get("interactions.recommendation_window") == 100


def test_broken_yaml_falls_back(tmp_path):
    path = tmp_path / "c.yaml"
    path.write_text("server: [unclosed\n", encoding="utf-8")
    assert AppConfig(config_path=str(path)).get("server.port") == 8008


def test_env_selects_config_file(tmp_path, monkeypatch):
    path = tmp_path / "env.yaml"
    path.write_text("storage:\n  db_path: elsewhere.db\n", encoding="utf-8")
    monkeypatch.setenv("CROMATIZATE_CONFIG", str(path))
    assert AppConfig().get("storage.db_path") == "elsewhere.db"


def test_reload_picks_up_changes(tmp_path):
    path = tmp_path / "c.yaml"
    path.write_text("server:\n  port: 9000\n", encoding="utf-8")
    cfg = AppConfig(config_path=str(path))
    path.write_text("server:\n  port: 9001\n", encoding="utf-8")
    cfg.reload()
    assert cfg.get("server.port") == 9001


class TestValidation(unittest.TestCase):
    def setUp(self):
        self.cfg = AppConfig(config_path="/nonexistent/cromatizate.yaml")

    def test_defaults_are_valid(self):
        self.assertTrue(self.cfg.validate_config()["valid"])

    def test_external_host_without_permission_is_invalid(self):
        self.cfg.config["server"]["host"] = "0.0.0.0"
        result = self.cfg.validate_config()
        self.assertFalse(result["valid"])
        self.assertTrue(any("0.0.0.0" in e for e in result["errors"]))

    def test_bad_window_is_invalid(self):
        self.cfg.config["interactions"]["ontology_window"] = 0
        self.assertFalse(self.cfg.validate_config()["valid"])

    def test_sanitized_config_hides_token(self):
        sanitized = self.cfg.get_sanitized_config()
        self.assertEqual(sanitized["security"]["default_token"], "[REDACTED]")
        self.assertNotEqual(self.cfg.get("security.default_token"), "[REDACTED]")

    def test_unknown_key_returns_default(self):
        self.assertEqual(self.cfg.get("server.nope", "fallback"), "fallback")


if __name__ == "__main__":
    unittest.main()
