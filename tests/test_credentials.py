"""
Tests for API key handling and the media store.
"""
import asyncio

import pytest


class TestEnvCredentialProvider:
    def test_reads_gemini_key_from_env(self, monkeypatch):
        from media_agent.pipeline.credentials import EnvCredentialProvider

        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        provider = EnvCredentialProvider()
        assert provider.has_credential()
        assert provider.get_api_key() == "env-key"

    def test_falls_back_to_google_api_key(self, monkeypatch):
        from media_agent.pipeline.credentials import EnvCredentialProvider

        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
        assert EnvCredentialProvider().get_api_key() == "google-key"

    def test_blank_keys_do_not_count(self, monkeypatch):
        from media_agent.pipeline.credentials import ENV_KEYS, EnvCredentialProvider

        for name in ENV_KEYS:
            monkeypatch.setenv(name, "   ")
        assert not EnvCredentialProvider().has_credential()

    def test_request_reloads_dotenv_and_flags(self, monkeypatch, tmp_path):
        from media_agent.pipeline.credentials import ENV_KEYS, EnvCredentialProvider

        for name in ENV_KEYS:
            monkeypatch.delenv(name, raising=False)
        dotenv = tmp_path / ".env"
        dotenv.write_text("GEMINI_API_KEY=from-dotenv\n")

        provider = EnvCredentialProvider(dotenv_path=str(dotenv))
        assert not provider.has_credential()

        asyncio.run(provider.request_credential())

        assert provider.requested
        assert provider.get_api_key() == "from-dotenv"
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    def test_set_api_key_overrides_env_and_clears_request(self, monkeypatch, tmp_path):
        from media_agent.pipeline.credentials import EnvCredentialProvider

        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        provider = EnvCredentialProvider(dotenv_path=str(tmp_path / "missing.env"))
        asyncio.run(provider.request_credential())

        provider.set_api_key("  chosen  ")

        assert provider.get_api_key() == "chosen"
        assert not provider.requested

    def test_set_api_key_rejects_blank(self):
        from media_agent.pipeline.credentials import EnvCredentialProvider

        with pytest.raises(ValueError):
            EnvCredentialProvider().set_api_key("")

    def test_satisfies_protocol(self):
        from media_agent.pipeline.credentials import CredentialProvider, EnvCredentialProvider

        assert isinstance(EnvCredentialProvider(), CredentialProvider)


class TestMediaStore:
    def test_put_get_discard(self):
        from media_agent.pipeline.storage import MediaStore

        store = MediaStore(url_prefix="/media")
        url = store.put(b"abc", "video/mp4")
        media_id = url.rsplit("/", 1)[-1]

        assert store.get(media_id).data == b"abc"
        store.discard(url)
        assert store.get(media_id) is None

    def test_discard_ignores_foreign_urls(self):
        from media_agent.pipeline.storage import MediaStore

        store = MediaStore(url_prefix="/media")
        store.put(b"abc")
        store.discard("data:image/png;base64,AAAA")
        assert len(store) == 1
