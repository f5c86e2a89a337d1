"""Tests for the composite adapter registry and its two backends."""

from __future__ import annotations

import pytest

from flexphoto.core import adapter_registry
from flexphoto.core.adapters import DescribeThenGenerateAdapter, RemoteJobAdapter
from flexphoto.core.composite_adapters import AdapterRegistry, CompositeAdapterBase
from flexphoto.core.provider import ProviderError


def _describe_reply(response_factory, text: str):
    return response_factory(200, {"choices": [{"message": {"content": text}}]})


def _generate_reply(response_factory, b64: str):
    return response_factory(200, {"data": [{"b64_json": b64}]})


class TestAdapterRegistry:
    """Tests for registration and lookup."""

    def test_builtin_adapters_registered(self):
        available = adapter_registry.list_available()
        assert "describe-then-generate" in available
        assert "remote-job" in available

    def test_instantiate_returns_adapter(self, test_config, fake_session):
        adapter = adapter_registry.instantiate("remote-job", test_config, fake_session)
        assert isinstance(adapter, RemoteJobAdapter)
        assert adapter.session is fake_session

    def test_unknown_adapter_raises_key_error(self, test_config):
        with pytest.raises(KeyError, match="not found"):
            adapter_registry.instantiate("carrier-pigeon", test_config)

    def test_register_overwrites(self):
        registry = AdapterRegistry()
        registry.register(RemoteJobAdapter)
        registry.register(RemoteJobAdapter)
        assert registry.list_available() == ["remote-job"]

    def test_base_is_abstract(self, test_config):
        with pytest.raises(TypeError):
            CompositeAdapterBase(test_config)

    def test_adapter_info(self, test_config, fake_session):
        info = DescribeThenGenerateAdapter(test_config, fake_session).get_adapter_info()
        assert info["name"] == "describe-then-generate"
        assert info["description"]


class TestDescribeThenGenerate:
    """The two calls run in order and the description reaches the second."""

    def test_description_appended_to_generation_prompt(
        self, test_config, fake_session, stored_pair, png_b64, response_factory
    ):
        text = "Person 1: curly red hair, green coat.\nPerson 2: round glasses."
        fake_session.add("POST", "/chat/completions", _describe_reply(response_factory, text))
        fake_session.add(
            "POST", "/images/generations", _generate_reply(response_factory, png_b64)
        )

        adapter = DescribeThenGenerateAdapter(test_config, fake_session)
        generated = adapter.compose_and_save(stored_pair, "Playing chess in the park")

        prompt = fake_session.calls_to("/images/generations")[0].json["prompt"]
        assert text in prompt
        assert "WHAT THEY'RE DOING:\nPlaying chess in the park" in prompt
        endpoints = [call.url.rsplit("/", 1)[-1] for call in fake_session.calls]
        assert endpoints == ["completions", "generations"]
        assert generated.name.startswith("polaroid-")
        assert generated.path.exists()

    def test_describe_failure_skips_generation(
        self, test_config, fake_session, stored_pair, response_factory
    ):
        fake_session.add(
            "POST",
            "/chat/completions",
            response_factory(500, {"error": {"message": "vision down"}}),
        )

        adapter = DescribeThenGenerateAdapter(test_config, fake_session)
        with pytest.raises(ProviderError, match="vision down"):
            adapter.compose_and_save(stored_pair, "Dancing")

        assert fake_session.calls_to("/images/generations") == []
        assert list(test_config.outputs_dir.iterdir()) == []

    def test_empty_description_still_generates(
        self, test_config, fake_session, stored_pair, png_b64, response_factory
    ):
        fake_session.add("POST", "/chat/completions", _describe_reply(response_factory, ""))
        fake_session.add(
            "POST", "/images/generations", _generate_reply(response_factory, png_b64)
        )

        adapter = DescribeThenGenerateAdapter(test_config, fake_session)
        adapter.compose_and_save(stored_pair, "Dancing")

        assert len(fake_session.calls_to("/images/generations")) == 1


class TestRemoteJob:
    def test_downloaded_bytes_saved(
        self, test_config, fake_session, stored_pair, png_bytes, response_factory
    ):
        prediction = {"id": "j", "status": "succeeded", "output": "https://cdn.example/j.png"}
        fake_session.add("POST", "/predictions", response_factory(201, prediction))
        fake_session.add("GET", "/j.png", response_factory(200, content=png_bytes))

        adapter = RemoteJobAdapter(test_config, fake_session)
        generated = adapter.compose_and_save(stored_pair, "Surfing")

        assert generated.path.read_bytes() == png_bytes
        assert generated.public_path.startswith("/outputs/polaroid-")
        prompt = fake_session.calls[0].json["input"]["prompt"]
        assert "WHAT THEY'RE DOING:\nSurfing" in prompt
