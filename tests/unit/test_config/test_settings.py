"""Tests for layered configuration loading."""
import json
import logging

import pytest

from measure_app.config.defaults import DEFAULT_CONFIG
from measure_app.config.settings import Config, load_config, save_config


@pytest.fixture
def workdir(tmp_path, clean_env):
    """Run from an empty directory so no stray .env file is picked up."""
    clean_env.chdir(tmp_path)
    return tmp_path


def write_config(directory, data):
    path = directory / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


class TestLoadConfig:

    def test_defaults_when_file_missing(self, workdir):
        cfg = load_config(str(workdir / "missing.json"))

        assert cfg.reference_object == "quarter"
        assert cfg.default_pixels_per_cm == 37.8
        assert cfg.match_mode == "substring"
        assert cfg.detection_confidence_threshold == 0.5
        assert cfg.use_metric is True
        assert cfg.extra == {}

    def test_file_values_override_defaults(self, workdir):
        path = write_config(workdir, {
            "reference_object": "credit_card",
            "default_pixels_per_cm": 40,
            "reference_synonyms": {"a4_paper": ["book"]},
            "use_metric": False,
        })

        cfg = load_config(path)

        assert cfg.reference_object == "credit_card"
        assert cfg.default_pixels_per_cm == 40
        assert cfg.reference_synonyms == {"a4_paper": ["book"]}
        assert cfg.use_metric is False

    def test_malformed_json_falls_back(self, workdir, caplog):
        path = workdir / "config.json"
        path.write_text("{not json", encoding="utf-8")

        with caplog.at_level(logging.ERROR):
            cfg = load_config(str(path))

        assert cfg.to_dict() == Config().to_dict()
        assert "Failed to parse" in caplog.text

    def test_non_object_json_falls_back(self, workdir):
        path = write_config(workdir, [1, 2, 3])

        assert load_config(path).reference_object == "quarter"

    @pytest.mark.parametrize("key,value", [
        ("default_pixels_per_cm", 0),
        ("default_pixels_per_cm", -5),
        ("default_pixels_per_cm", "big"),
        ("detection_confidence_threshold", 1.5),
        ("detection_iou_threshold", True),
        ("max_inference_size", 8),
    ])
    def test_invalid_numbers_replaced_by_defaults(self, workdir, key, value):
        cfg = load_config(write_config(workdir, {key: value}))

        assert getattr(cfg, key) == DEFAULT_CONFIG[key]

    def test_invalid_strings_and_modes(self, workdir):
        cfg = load_config(write_config(workdir, {
            "match_mode": "fuzzy",
            "reference_object": "   ",
            "preferred_model": " yolo12s.pt ",
            "log_level": "verbose",
            "reference_synonyms": {"a4_paper": "book"},
        }))

        assert cfg.match_mode == "substring"
        assert cfg.reference_object == "quarter"
        assert cfg.preferred_model == "yolo12s.pt"
        assert cfg.log_level == "INFO"
        assert cfg.reference_synonyms == {}

    @pytest.mark.parametrize("value,expected", [
        ("false", False),
        ("YES", True),
        (0, True),
        ("sometimes", True),
        (None, True),
    ])
    def test_boolean_settings_coerced(self, workdir, value, expected):
        cfg = load_config(write_config(workdir, {"use_metric": value}))

        assert cfg.use_metric is expected

    def test_string_debug_flag(self, workdir):
        cfg = load_config(write_config(workdir, {"debug": "off", "log_to_file": "1",
                                                 "structured_logging": [True]}))

        assert cfg.debug is False
        assert cfg.log_level == "INFO"
        assert cfg.log_to_file is True
        assert cfg.structured_logging is False

    def test_log_level_normalized_and_debug_forces_debug(self, workdir):
        assert load_config(write_config(workdir, {"log_level": "warning"})).log_level == "WARNING"
        assert load_config(write_config(workdir, {"debug": True})).log_level == "DEBUG"

    def test_extra_keys_preserved(self, workdir):
        cfg = load_config(write_config(workdir, {"custom_setting": 42}))

        assert cfg.extra == {"custom_setting": 42}
        assert cfg.get("custom_setting") == 42
        assert cfg.get("reference_object") == "quarter"
        assert cfg.get("missing", "fallback") == "fallback"

    def test_environment_overrides_file(self, workdir):
        path = write_config(workdir, {"reference_object": "coin", "default_pixels_per_cm": 40})
        workdir_env = workdir / "test.env"
        workdir_env.write_text("MEASURE_REFERENCE_OBJECT=credit_card\n", encoding="utf-8")

        cfg = load_config(path, env_file=str(workdir_env))

        assert cfg.reference_object == "credit_card"
        assert cfg.default_pixels_per_cm == 40

    def test_process_environment(self, workdir, clean_env):
        clean_env.setenv("MEASURE_DEFAULT_PPCM", "50")
        clean_env.setenv("MEASURE_CONFIDENCE", "0.7")
        clean_env.setenv("MEASURE_DEBUG", "true")

        cfg = load_config(str(workdir / "missing.json"))

        assert cfg.default_pixels_per_cm == 50.0
        assert cfg.detection_confidence_threshold == 0.7
        assert cfg.debug is True
        assert cfg.log_level == "DEBUG"

    def test_invalid_environment_ignored(self, workdir, clean_env, caplog):
        clean_env.setenv("MEASURE_DEFAULT_PPCM", "-1")

        with caplog.at_level(logging.WARNING):
            cfg = load_config(str(workdir / "missing.json"))

        assert cfg.default_pixels_per_cm == 37.8
        assert "MEASURE_DEFAULT_PPCM" in caplog.text


class TestSaveConfig:

    def test_save_and_reload(self, workdir):
        cfg = Config(reference_object="a4_paper", use_metric=False, extra={"note": "desk"})
        path = workdir / "nested" / "config.json"

        save_config(cfg, str(path))
        reloaded = load_config(str(path))

        assert reloaded.reference_object == "a4_paper"
        assert reloaded.use_metric is False
        assert reloaded.extra == {"note": "desk"}

    def test_to_dict_flattens_extra(self):
        data = Config(extra={"note": "desk"}).to_dict()

        assert data["note"] == "desk"
        assert "extra" not in data
