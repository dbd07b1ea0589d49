from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from patch_digest.core.config import DigestConfig, load_digest_config
from patch_digest.core.lexicon import load_lexicon


class DigestConfigTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = Path(self._tmp.name) / "patch_digest.yaml"
        self.path.write_text(
            "digest:\n  section_walk_limit: 9\n  cache_capacity: 2\n",
            encoding="utf-8",
        )

    def test_yaml_values_override_defaults(self):
        cfg = load_digest_config(self.path)
        self.assertEqual(cfg.section_walk_limit, 9)
        self.assertEqual(cfg.cache_capacity, 2)
        self.assertEqual(cfg.item_walk_limit, DigestConfig().item_walk_limit)

    def test_environment_overrides_yaml(self):
        with patch.dict(os.environ, {"DIGEST_SECTION_WALK_LIMIT": "7"}):
            cfg = load_digest_config(self.path)
        self.assertEqual(cfg.section_walk_limit, 7)
        self.assertEqual(cfg.cache_capacity, 2)

    def test_missing_file_falls_back_to_defaults(self):
        cfg = load_digest_config(Path(self._tmp.name) / "absent.yaml")
        self.assertEqual(cfg.bug_fix_limit, DigestConfig().bug_fix_limit)

    def test_default_limits(self):
        cfg = DigestConfig()
        self.assertEqual(
            (cfg.section_walk_limit, cfg.item_walk_limit, cfg.champion_block_limit),
            (20, 30, 15),
        )
        self.assertEqual((cfg.pattern_scan_limit, cfg.context_scan_limit, cfg.bug_fix_limit), (15, 20, 15))


class LexiconFileTests(unittest.TestCase):
    def test_custom_lexicon_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "lexicon.yaml"
            path.write_text("champions:\n  - Ashe\nitems:\n  - Infinity Edge\n", encoding="utf-8")
            lexicon = load_lexicon(path)
        self.assertEqual(list(lexicon.champions), ["Ashe"])
        self.assertEqual(lexicon.items.identify("Buy Infinity Edge now"), "Infinity Edge")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
