"""
Tests for plan, style override and request parsing.
"""
import pytest

from postreel.errors import PlatformNotConnected
from postreel.models import (
    EncodedArtifact,
    RenderRequest,
    Scene,
    ScenePlan,
    StyleProfile,
    default_connection_policy,
)


class TestScene:
    """Tests for Scene.from_dict()."""

    def test_camel_case_keys(self):
        scene = Scene.from_dict({
            "sceneId": 4, "duration": "2.5", "script": "Hi",
            "visualDescription": "Body", "transition": "slide",
        })
        assert scene.scene_id == 4
        assert scene.duration == 2.5
        assert scene.visual_description == "Body"
        assert scene.transition == "slide"

    def test_missing_id_defaults_to_ordinal(self):
        scene = Scene.from_dict({"duration": 1}, index=2)
        assert scene.scene_id == 3

    def test_text_key_used_when_script_missing(self):
        assert Scene.from_dict({"duration": 1, "text": "Hello"}).script == "Hello"

    @pytest.mark.parametrize("duration", [0, -1, "abc", None, float("nan")])
    def test_invalid_duration_rejected(self, duration):
        with pytest.raises(ValueError):
            Scene.from_dict({"sceneId": 1, "duration": duration})


class TestScenePlan:
    """Tests for ScenePlan parsing and totals."""

    def test_from_dict(self, sample_plan_data):
        plan = ScenePlan.from_dict(sample_plan_data)
        assert len(plan.scenes) == 3
        assert plan.total_duration == 3.5
        assert plan.visual_style == "bold"
        assert plan.music_track == "upbeat electronic"

    def test_total_falls_back_to_scene_sum(self, sample_plan_data):
        del sample_plan_data["totalDuration"]
        plan = ScenePlan.from_dict(sample_plan_data)
        assert plan.total_duration == pytest.approx(3.5)

    def test_to_dict_keeps_producer_shape(self, sample_plan_data):
        out = ScenePlan.from_dict(sample_plan_data).to_dict()
        assert out["totalDuration"] == 3.5
        assert out["scenes"][1]["visualDescription"] == "An assistant in your editor"

    def test_scenes_must_be_list(self):
        with pytest.raises(ValueError):
            ScenePlan.from_dict({"scenes": "nope"})


class TestStyleProfile:
    """Tests for StyleProfile.from_dict()."""

    def test_empty_is_none(self):
        assert StyleProfile.from_dict(None) is None
        assert StyleProfile.from_dict({}) is None

    def test_fields(self):
        profile = StyleProfile.from_dict({
            "visualStyle": "sleek",
            "colorPalette": ["#111111", "#222222", "#eeeeee"],
            "textAnimations": ["fade-in"],
            "cameraMovements": ["pan"],
            "pacing": "slow",
        })
        assert profile.visual_style == "sleek"
        assert profile.color_palette[-1] == "#eeeeee"
        assert profile.camera_movements == ["pan"]


class TestRenderRequest:
    """Tests for request validation and connection gating."""

    def test_from_dict(self, sample_plan_data):
        request = RenderRequest.from_dict({
            "platform": "TikTok",
            "prompt": "5 AI tools",
            "scenePlan": sample_plan_data,
            "styleOverride": {"visualStyle": "bold"},
        })
        assert request.has_plan
        assert request.style_override.visual_style == "bold"

    def test_empty_prompt_without_plan_rejected(self):
        with pytest.raises(ValueError, match="prompt"):
            RenderRequest(platform="YouTube", prompt="   ").validate()

    def test_empty_prompt_with_plan_allowed(self, sample_plan):
        RenderRequest(platform="YouTube", scene_plan=sample_plan).validate()

    def test_missing_platform_rejected(self):
        with pytest.raises(ValueError, match="platform"):
            RenderRequest(platform="", prompt="x").validate()

    def test_snapchat_requires_connection(self):
        policy = default_connection_policy([])
        with pytest.raises(PlatformNotConnected) as exc:
            RenderRequest(platform="Snapchat", prompt="x").validate(policy)
        assert "Snapchat" in str(exc.value)

    def test_connected_snapchat_allowed(self):
        policy = default_connection_policy(["Snapchat"])
        RenderRequest(platform="Snapchat", prompt="x").validate(policy)

    def test_other_platforms_assumed_connected(self):
        policy = default_connection_policy([])
        for platform in ("YouTube", "TikTok", "Instagram"):
            assert policy(platform)

    def test_no_check_without_policy(self):
        RenderRequest(platform="Snapchat", prompt="x").validate()


class TestEncodedArtifact:
    """Tests for the playback handle lifecycle."""

    def test_release_revokes_handle(self, temp_dir):
        path = temp_dir / "clip.webm"
        path.write_bytes(b"data")
        artifact = EncodedArtifact(b"data", "video/webm", "clip.webm", path)

        assert artifact.url.startswith("file://")
        artifact.release()
        assert artifact.released
        assert not path.exists()
        with pytest.raises(ValueError):
            artifact.url
        artifact.release()

    def test_context_manager_releases(self, temp_dir):
        path = temp_dir / "clip.webm"
        path.write_bytes(b"data")
        with EncodedArtifact(b"data", "video/webm", "clip.webm", path) as artifact:
            saved = artifact.save(temp_dir / "out" / artifact.filename)
        assert not path.exists()
        assert saved.read_bytes() == b"data"


class TestStableHash:
    """Tests for stable_hash()."""

    def test_known_value(self):
        import hashlib
        from postreel.hashing import stable_hash

        expected = int.from_bytes(hashlib.sha256(b"1").digest()[:8], "big")
        assert stable_hash(1) == expected
        assert stable_hash("1") == expected


class TestWrongJsonTypes:
    """Non-object JSON is a ValueError, non-string style fields are dropped."""

    def test_scene_must_be_object(self):
        with pytest.raises(ValueError, match="Scene 2"):
            Scene.from_dict("intro", index=1)

    def test_plan_must_be_object(self):
        with pytest.raises(ValueError):
            ScenePlan.from_dict(["not", "a", "plan"])

    def test_plan_scenes_must_be_objects(self):
        with pytest.raises(ValueError):
            ScenePlan.from_dict({"scenes": [1, 2, 3]})

    def test_style_override_must_be_object(self):
        with pytest.raises(ValueError):
            StyleProfile.from_dict("bold")

    def test_request_must_be_object(self):
        with pytest.raises(ValueError):
            RenderRequest.from_dict(["YouTube"])

    def test_request_with_bad_scene_plan(self):
        with pytest.raises(ValueError):
            RenderRequest.from_dict({"platform": "YouTube", "scenePlan": ["intro"]})

    def test_non_string_style_fields_dropped(self):
        profile = StyleProfile.from_dict({
            "visualStyle": ["bold"],
            "colorPalette": "#ffffff",
            "textAnimations": ["scale-in", 7],
            "customFont": {"path": "x.ttf"},
        })
        assert profile.visual_style is None
        assert profile.color_palette == []
        assert profile.text_animations == ["scale-in"]
        assert profile.custom_font is None

    def test_plan_visual_style_falls_back(self):
        plan = ScenePlan.from_dict({
            "scenes": [{"duration": 1}], "visualStyle": {"a": 1}, "style": "sleek",
        })
        assert plan.visual_style == "sleek"
