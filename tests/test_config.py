"""Tests for Settings configuration model."""

from pathlib import Path

from meligy.config import Settings


class TestDefaults:
    def test_default_models(self):
        s = Settings()
        assert s.gemini_text_model == "gemini-2.0-flash"
        assert s.gemini_image_model == "gemini-2.0-flash-exp"

    def test_default_daily_limit(self):
        s = Settings()
        assert s.daily_message_limit == 25

    def test_default_context_window(self):
        s = Settings()
        assert s.context_window_size == 6

    def test_default_database_path(self):
        s = Settings()
        assert s.database_path == Path("data/meligy.db")

    def test_api_key_empty_by_default(self):
        s = Settings()
        assert s.gemini_api_key == ""


class TestModelUrl:
    def test_builds_generate_content_url(self):
        s = Settings(gemini_api_base="https://example.test/v1beta")
        assert (
            s.model_url("gemini-2.0-flash")
            == "https://example.test/v1beta/models/gemini-2.0-flash:generateContent"
        )

    def test_strips_trailing_slash(self):
        s = Settings(gemini_api_base="https://example.test/v1beta/")
        assert s.model_url("m") == "https://example.test/v1beta/models/m:generateContent"
