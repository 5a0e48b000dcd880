"""
Tests for VectorizerConfig loading and fallbacks
"""

import logging

import pytest

from codebase_vectorizer.config.settings import (
    CONFIG_RELATIVE_PATH, DEFAULT_DEBOUNCE_MS, DEFAULT_EXCLUDE, VectorizerConfig, load_config,
)

from conftest import write_file


class TestDefaults:

    def test_default_values(self):
        config = VectorizerConfig()
        assert config.enabled and config.auto_index
        assert config.debounce_ms == DEFAULT_DEBOUNCE_MS
        assert config.chunk_max_chars == 1500
        assert config.get_enabled_indexes() == ['code', 'docs']
        assert config.exclude == DEFAULT_EXCLUDE

    def test_is_excluded(self):
        config = VectorizerConfig()
        assert config.is_excluded("node_modules/react/index.js")
        assert config.is_excluded("packages/app/node_modules/x.js")
        assert config.is_excluded(".git/config")
        assert not config.is_excluded("src/build_tools.py")

    def test_validation(self):
        with pytest.raises(ValueError):
            VectorizerConfig(debounce_ms=-1)
        with pytest.raises(ValueError):
            VectorizerConfig(chunk_max_chars=0)


class TestFromDict:

    def test_partial_section_keeps_defaults(self):
        config = VectorizerConfig.from_dict({
            'debounce_ms': 500,
            'indexes': {'config': {'enabled': True}},
        })
        assert config.debounce_ms == 500
        assert config.get_enabled_indexes() == ['code', 'docs', 'config']
        assert config.embedding_model == "all-MiniLM-L6-v2"

    def test_custom_index(self):
        config = VectorizerConfig.from_dict({
            'indexes': {'notes': {'pattern': "notes/**/*.md", 'ignore': "notes/drafts/**"}},
        })
        notes = config.get_index('notes')
        assert notes.enabled
        assert notes.pattern == "notes/**/*.md"
        assert notes.ignore == ["notes/drafts/**"]

    def test_non_mapping_rejected(self):
        with pytest.raises(ValueError):
            VectorizerConfig.from_dict(["not", "a", "mapping"])


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, project):
        config = load_config(str(project))
        assert config.to_dict() == VectorizerConfig().to_dict()

    def test_reads_vectorizer_section(self, project):
        write_file(project, CONFIG_RELATIVE_PATH, (
            "vectorizer:\n"
            "  auto_index: false\n"
            "  state_dir: .cache/vectors\n"
            "  exclude: [dist]\n"
        ))
        config = load_config(str(project))
        assert config.auto_index is False
        assert config.state_dir == ".cache/vectors"
        assert config.exclude == ["dist"]

    def test_malformed_yaml_falls_back(self, project, caplog):
        write_file(project, CONFIG_RELATIVE_PATH, "vectorizer: [unclosed\n  - : :")
        with caplog.at_level(logging.WARNING):
            config = load_config(str(project))
        assert config.debounce_ms == DEFAULT_DEBOUNCE_MS
        assert "Using defaults" in caplog.text

    def test_invalid_values_fall_back(self, project):
        write_file(project, CONFIG_RELATIVE_PATH, "vectorizer:\n  debounce_ms: -5\n")
        assert load_config(str(project)).debounce_ms == DEFAULT_DEBOUNCE_MS

    def test_env_overrides(self, project, monkeypatch):
        monkeypatch.setenv("VECTORIZER_EMBEDDING_MODEL", "paraphrase-MiniLM-L3-v2")
        monkeypatch.setenv("VECTORIZER_DEVICE", "cpu")
        config = load_config(str(project))
        assert config.embedding_model == "paraphrase-MiniLM-L3-v2"
        assert config.device == "cpu"

    def test_save_then_load(self, project):
        config = VectorizerConfig(debounce_ms=750)
        config.save_to_file(str(project / CONFIG_RELATIVE_PATH))
        assert load_config(str(project)).debounce_ms == 750
