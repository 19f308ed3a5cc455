"""
Scripted Classifier Tests
=========================

Tests del replay de poses grabadas (YAML) usado en modo headless.
"""
import pytest
import yaml

from catcher.inference.predictions import ClassPrediction
from catcher.inference.scripted import ScriptedClassifier


def write_yaml(tmp_path, data):
    path = tmp_path / "poses.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


@pytest.mark.unit
class TestScriptedClassifier:

    def test_replays_samples_in_order(self):
        classifier = ScriptedClassifier([
            [("Left", 0.9), ("Right", 0.1)],
            [("Right", 0.8)],
        ])

        assert classifier.classify(None) == [ClassPrediction("Left", 0.9), ClassPrediction("Right", 0.1)]
        assert classifier.classify(None) == [ClassPrediction("Right", 0.8)]
        assert classifier.exhausted
        assert classifier.classify(None) == [], "Agotado sin loop → no-detection"

    def test_loop(self):
        classifier = ScriptedClassifier([[("Left", 0.9)]], loop=True)

        for _ in range(3):
            assert classifier.classify(None) == [ClassPrediction("Left", 0.9)]
        assert not classifier.exhausted

    def test_labels_in_first_seen_order(self):
        classifier = ScriptedClassifier([
            [("Center", 0.9), ("Left", 0.1)],
            [("Right", 0.8), ("Center", 0.2)],
        ])

        assert classifier.labels == ["Center", "Left", "Right"]

    def test_rewind(self):
        classifier = ScriptedClassifier([[("Left", 0.9)]])
        classifier.classify(None)

        classifier.rewind()

        assert not classifier.exhausted
        assert classifier.classify(None) == [ClassPrediction("Left", 0.9)]

    def test_empty_script(self):
        classifier = ScriptedClassifier([])

        assert classifier.classify(None) == []
        assert classifier.labels == []


@pytest.mark.unit
class TestScriptedClassifierYaml:

    def test_from_yaml_formats(self, tmp_path):
        path = write_yaml(tmp_path, {
            "loop": False,
            "frames": [
                {"Left": 0.9, "Right": 0.1},
                {"sample": {"Center": 0.8}, "repeat": 2},
                None,
                {},
            ],
        })

        classifier = ScriptedClassifier.from_yaml(path)

        assert len(classifier) == 5
        assert classifier.classify(None) == [ClassPrediction("Left", 0.9), ClassPrediction("Right", 0.1)]
        assert classifier.classify(None) == [ClassPrediction("Center", 0.8)]
        assert classifier.classify(None) == [ClassPrediction("Center", 0.8)]
        assert classifier.classify(None) == []
        assert classifier.classify(None) == []
        assert classifier.exhausted

    def test_malformed_entries_dropped(self, tmp_path):
        path = write_yaml(tmp_path, {"frames": [{"Left": "high", "Right": 0.7}]})

        classifier = ScriptedClassifier.from_yaml(path)

        assert classifier.classify(None) == [ClassPrediction("Right", 0.7)]

    def test_loop_flag_from_yaml(self, tmp_path):
        path = write_yaml(tmp_path, {"loop": True, "frames": [{"Left": 0.9}]})

        assert ScriptedClassifier.from_yaml(path).loop is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ScriptedClassifier.from_yaml(str(tmp_path / "missing.yaml"))

    def test_missing_frames_key(self, tmp_path):
        path = write_yaml(tmp_path, {"poses": []})

        with pytest.raises(ValueError, match="frames"):
            ScriptedClassifier.from_yaml(path)

    def test_demo_script_parses(self):
        from pathlib import Path

        demo = Path(__file__).resolve().parents[2] / "config" / "catcher" / "poses_demo.yaml"
        classifier = ScriptedClassifier.from_yaml(str(demo))

        assert set(classifier.labels) == {"Left", "Center", "Right"}
        assert len(classifier) > 0
