# ABOUTME: Tests pipeline configuration defaults and YAML overrides.
# ABOUTME: Ensures segment geometry is derived from the configured constants.

import tempfile
import unittest
from pathlib import Path

from src.video_analytics.config import PipelineConfig, load_pipeline_config


class PipelineConfigTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.config_dir = Path(self.tmpdir.name)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def _write_yaml(self, text: str) -> Path:
        path = self.config_dir / "pipeline.yaml"
        path.write_text(text.strip() + "\n", encoding="utf-8")
        return path

    def test_defaults_match_twenty_second_segments(self) -> None:
        config = PipelineConfig()
        self.assertEqual(20, config.segment_size_seconds)
        self.assertEqual(25, config.top_selection)
        self.assertAlmostEqual(1 / 6, config.midpoint_offset_minutes)
        self.assertAlmostEqual(0.5, config.segment_midpoint(1))

    def test_yaml_overrides_keep_unspecified_defaults(self) -> None:
        path = self._write_yaml(
            """
pipeline:
  top_selection: 10
"""
        )
        config = load_pipeline_config(path)
        self.assertEqual(10, config.top_selection)
        self.assertEqual(60, config.seconds_in_minute)

    def test_unknown_key_is_rejected(self) -> None:
        path = self._write_yaml(
            """
pipeline:
  segment_length: 30
"""
        )
        with self.assertRaises(ValueError):
            load_pipeline_config(path)

    def test_negative_top_selection_is_rejected(self) -> None:
        path = self._write_yaml(
            """
pipeline:
  top_selection: -3
"""
        )
        with self.assertRaises(ValueError):
            load_pipeline_config(path)

    def test_shipped_config_loads(self) -> None:
        shipped = Path(__file__).resolve().parents[1] / "configs" / "video_analytics.yaml"
        self.assertEqual(PipelineConfig(), load_pipeline_config(shipped))


if __name__ == "__main__":
    unittest.main()
