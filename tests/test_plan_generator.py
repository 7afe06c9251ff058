"""
Tests for scene plan generation and plan resolution.
"""
import json
import sys
import types

import pytest

from postreel.errors import PlanUnavailable
from postreel.models import RenderRequest
from postreel.plan_generator import generate_scene_plan, parse_plan_response, resolve_plan


def _install_fake_anthropic(monkeypatch, reply=None, error=None):
    """Replace the anthropic module with a client returning `reply`."""
    calls = {}

    class FakeMessages:
        def create(self, **kwargs):
            calls["create"] = kwargs
            if error:
                raise error
            block = types.SimpleNamespace(text=reply)
            return types.SimpleNamespace(content=[block])

    class FakeClient:
        def __init__(self, **kwargs):
            calls["client"] = kwargs
            self.messages = FakeMessages()

    monkeypatch.setitem(sys.modules, "anthropic", types.SimpleNamespace(Anthropic=FakeClient))
    return calls


class TestParsePlanResponse:
    """Tests for parse_plan_response()."""

    def test_plain_json(self, sample_plan_data):
        plan = parse_plan_response(json.dumps(sample_plan_data))
        assert len(plan.scenes) == 3

    def test_markdown_fences_stripped(self, sample_plan_data):
        raw = "```json\n" + json.dumps(sample_plan_data) + "\n```"
        assert parse_plan_response(raw).visual_style == "bold"

    def test_invalid_json(self):
        with pytest.raises(PlanUnavailable, match="JSON"):
            parse_plan_response("here is your plan!")

    def test_no_scenes(self):
        with pytest.raises(PlanUnavailable, match="no scenes"):
            parse_plan_response('{"scenes": []}')

    def test_bad_scene_duration(self):
        with pytest.raises(PlanUnavailable):
            parse_plan_response('{"scenes": [{"sceneId": 1, "duration": -2}]}')

    def test_not_an_object(self):
        with pytest.raises(PlanUnavailable):
            parse_plan_response("[1, 2, 3]")


class TestGenerateScenePlan:
    """Tests for generate_scene_plan() with a fake client."""

    def test_missing_key(self):
        with pytest.raises(PlanUnavailable, match="ANTHROPIC_API_KEY"):
            generate_scene_plan("Test", "YouTube")

    def test_success(self, monkeypatch, sample_plan_data):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        calls = _install_fake_anthropic(monkeypatch, reply=json.dumps(sample_plan_data))

        config = {"planner": {"model": "test-model", "timeout": 5, "max_retries": 1}}
        plan = generate_scene_plan("5 AI tools", "TikTok", config)

        assert len(plan.scenes) == 3
        assert calls["client"]["timeout"] == 5.0
        assert calls["client"]["max_retries"] == 1
        assert calls["create"]["model"] == "test-model"
        prompt = calls["create"]["messages"][0]["content"]
        assert "vertical TikTok" in prompt
        assert "5 AI tools" in prompt

    def test_api_error(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        _install_fake_anthropic(monkeypatch, error=ConnectionError("down"))
        with pytest.raises(PlanUnavailable, match="down"):
            generate_scene_plan("Test", "YouTube")


class TestResolvePlan:
    """Tests for resolve_plan()."""

    def test_supplied_plan_wins(self, sample_plan):
        request = RenderRequest(platform="YouTube", prompt="x", scene_plan=sample_plan)
        assert resolve_plan(request) is sample_plan

    def test_falls_back_without_key(self):
        plan = resolve_plan(RenderRequest(platform="YouTube", prompt="Test"))
        assert plan.scenes[0].script == "Test"
        assert plan.scenes[-1].script == "Thanks for watching!"

    def test_falls_back_on_bad_reply(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        _install_fake_anthropic(monkeypatch, reply="not json")
        plan = resolve_plan(RenderRequest(platform="YouTube", prompt="Test"))
        assert plan.scenes[0].script == "Test"

    def test_generated_plan_used(self, monkeypatch, sample_plan_data):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        _install_fake_anthropic(monkeypatch, reply=json.dumps(sample_plan_data))
        plan = resolve_plan(RenderRequest(platform="YouTube", prompt="Test"))
        assert plan.scenes[0].script == "Five AI tools"

    def test_disabled_planner_skips_client(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        calls = _install_fake_anthropic(monkeypatch, reply="{}")
        resolve_plan(RenderRequest(platform="YouTube", prompt="Test"),
                     {"planner": {"enabled": False}})
        assert calls == {}

    def test_empty_supplied_plan_ignored(self):
        from postreel.models import ScenePlan
        request = RenderRequest(platform="YouTube", prompt="Test", scene_plan=ScenePlan())
        assert len(resolve_plan(request).scenes) >= 3


class TestMalformedReplies:
    """Replies with the wrong JSON types fall back instead of crashing."""

    @pytest.mark.parametrize("scenes", [["intro", "outro"], [1, 2, 3], [None]])
    def test_non_object_scenes(self, scenes):
        with pytest.raises(PlanUnavailable, match="JSON object"):
            parse_plan_response(json.dumps({"scenes": scenes}))

    def test_non_object_scenes_fall_back(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        _install_fake_anthropic(monkeypatch, reply='{"scenes": ["intro", "outro"]}')
        plan = resolve_plan(RenderRequest(platform="YouTube", prompt="Test"))
        assert plan.scenes[0].script == "Test"
        assert plan.scenes[-1].script == "Thanks for watching!"

    @pytest.mark.parametrize("visual_style", [["bold", "sleek"], {"name": "bold"}, 3])
    def test_non_string_visual_style_ignored(self, monkeypatch, visual_style):
        from postreel.pipeline import build_session

        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        reply = {
            "scenes": [{"sceneId": 1, "duration": 1, "script": "Hi",
                        "visualStyle": visual_style}],
            "visualStyle": visual_style,
        }
        _install_fake_anthropic(monkeypatch, reply=json.dumps(reply))

        session = build_session(RenderRequest(platform="YouTube", prompt="Test"), {})
        assert session.compositor.plan.visual_style == "default"
        assert session.compositor.plan.scenes[0].visual_style is None
        assert session.compositor.style.visual_style == "cinematic"
