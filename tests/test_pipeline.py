from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from patch_digest.core.cache import PatchContentCache
from patch_digest.core.diagnostics import ExtractionDiagnostics, write_extraction_log
from patch_digest.core.formatting import format_details, format_summary, split_message
from patch_digest.core.models import ChangeRecord, PatchContent
from patch_digest.core.pipelines import extract_overview, extract_patch_content, extract_title

from _fixtures import LEXICON, SETTINGS, soup

ASHE_PAGE = (
    "<h1>Patch 14.1 Notes</h1>"
    "<p>Welcome to Patch 14.1, a small balance update for everyone.</p>"
    "<h2>Champion Changes</h2>"
    "<h3>Ashe</h3><p>Base AD: 60 → 65</p>"
)


def _extract(html: str, version: str = "14.1", **kwargs) -> PatchContent:
    return extract_patch_content(soup(html), version, lexicon=LEXICON, settings=SETTINGS, **kwargs)


class PatchPipelineTests(unittest.TestCase):
    def test_single_champion_page(self):
        content = _extract(ASHE_PAGE)
        self.assertEqual(content.version, "14.1")
        self.assertEqual(content.title, "Patch 14.1 Notes")
        self.assertEqual(content.character_changes, (ChangeRecord("Ashe", ("Base AD: 60 → 65",)),))
        self.assertEqual(content.item_changes, ())
        self.assertEqual(content.bug_fixes, ())
        self.assertEqual(content.system_changes, ())
        self.assertTrue(content.overview.startswith("Welcome to Patch 14.1"))

    def test_page_without_champions(self):
        content = _extract(
            "<h1>Patch 14.2 Notes</h1>"
            "<p>Welcome to Patch 14.2, the preseason is finally here.</p>"
            "<h2>Jungle</h2><ul><li>Scuttle crab now spawns at 3:00 instead of 3:30</li></ul>",
            version="14.2",
        )
        self.assertEqual(content.character_changes, ())
        self.assertTrue(content.overview.startswith("Welcome"))
        self.assertEqual(content.system_changes, ("Scuttle crab now spawns at 3:00 instead of 3:30",))
        self.assertTrue(content.has_content())

    def test_extraction_is_repeatable_and_leaves_tree_untouched(self):
        doc = soup(ASHE_PAGE)
        before = str(doc)
        first = extract_patch_content(doc, "14.1", lexicon=LEXICON, settings=SETTINGS)
        second = extract_patch_content(doc, "14.1", lexicon=LEXICON, settings=SETTINGS)
        self.assertEqual(first, second)
        self.assertEqual(str(doc), before)

    def test_missing_document_raises(self):
        with self.assertRaises(ValueError):
            extract_patch_content(None, "14.1", lexicon=LEXICON, settings=SETTINGS)

    def test_title_falls_back_to_version(self):
        self.assertEqual(extract_title(soup("<p>nothing here</p>"), "14.3"), "Patch 14.3 Notes")

    def test_overview_keeps_first_paragraphs(self):
        doc = soup(
            "<div class='article-intro'>"
            "<p>First paragraph of the introduction text.</p>"
            "<p>Second paragraph of the introduction text.</p>"
            "<p>tiny</p>"
            "</div>"
        )
        self.assertEqual(
            extract_overview(doc, max_paragraphs=3),
            "First paragraph of the introduction text.\n\nSecond paragraph of the introduction text.",
        )
        self.assertIsNone(extract_overview(soup("<p>short</p>")))

    def test_diagnostics_are_recorded(self):
        diagnostics = ExtractionDiagnostics()
        _extract(ASHE_PAGE, url="https://example.test/patch-14-1", diagnostics=diagnostics)
        self.assertEqual(diagnostics.version, "14.1")
        self.assertEqual(diagnostics.champion_strategy, "structured_scan")
        self.assertIsNone(diagnostics.item_strategy)
        self.assertEqual(diagnostics.champions, ["Ashe"])
        self.assertGreaterEqual(diagnostics.duration_ms, 0.0)

        with tempfile.TemporaryDirectory() as tmp:
            path = write_extraction_log(diagnostics, Path(tmp) / "logs")
            rows = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["url"], "https://example.test/patch-14-1")
        self.assertEqual(rows[0]["champion_count"], 1)


def _content(version: str = "14.1", **kwargs) -> PatchContent:
    return PatchContent(version=version, title=f"Patch {version} Notes", **kwargs)


class PatchContentCacheTests(unittest.TestCase):
    def test_oldest_entry_is_evicted(self):
        cache = PatchContentCache(capacity=2)
        for version in ("14.1", "14.2", "14.3"):
            cache.put(_content(version))
        self.assertEqual(cache.versions(), ["14.2", "14.3"])
        self.assertIsNone(cache.get("14.1"))
        self.assertEqual(cache.latest().version, "14.3")

    def test_put_again_refreshes_position(self):
        cache = PatchContentCache(capacity=2)
        cache.put(_content("14.1"))
        cache.put(_content("14.2"))
        cache.put(_content("14.1"))
        cache.put(_content("14.3"))
        self.assertEqual(cache.versions(), ["14.1", "14.3"])

    def test_empty_cache(self):
        cache = PatchContentCache()
        self.assertIsNone(cache.latest())
        self.assertEqual(len(cache), 0)
        cache.put(_content())
        cache.clear()
        self.assertEqual(len(cache), 0)

    def test_capacity_must_be_positive(self):
        with self.assertRaises(ValueError):
            PatchContentCache(capacity=0)


class FormattingTests(unittest.TestCase):
    def setUp(self):
        self.content = _content(
            url="https://example.test/patch-14-1",
            character_changes=(
                ChangeRecord("Ashe", ("Base AD: 60 → 65",)),
                ChangeRecord("Caitlyn", ("Base AD: 62 → 60",)),
            ),
            item_changes=tuple(ChangeRecord(f"Item {i}", ("Cost: 3000 → 2900",)) for i in range(12)),
            bug_fixes=("Fixed a bug where the shop would not open", "Fixed tooltip typos"),
        )

    def test_summary_groups_champions_by_verdict(self):
        text = format_summary(self.content, lexicon=LEXICON)
        self.assertTrue(text.startswith("🎮 Patch 14.1 Notes"))
        self.assertIn("⚔️ CHAMPION CHANGES (2)", text)
        self.assertIn("BUFFS: 📈 Ashe", text)
        self.assertIn("NERFS: 📉 Caitlyn", text)
        self.assertIn("• ... and 2 more items", text)
        self.assertIn("🐛 BUG FIXES: 2 issues resolved", text)
        self.assertNotIn("SYSTEM CHANGES", text)

    def test_empty_summary_points_to_source(self):
        text = format_summary(_content(url="https://example.test/p"))
        self.assertIn("No structured changes were found on this page.", text)
        self.assertIn("https://example.test/p", text)

    def test_details_per_section(self):
        bugs = format_details(self.content, "bugs")
        self.assertTrue(bugs.startswith("🐛 DETAILED BUG FIXES"))
        self.assertIn("• Fixed tooltip typos", bugs)
        champions = format_details(self.content, "champions")
        self.assertIn("Ashe", champions)
        self.assertIn("• Base AD: 60 → 65", champions)
        self.assertEqual(format_details(self.content, "system"), "No system changes found for this patch.")

    def test_unknown_section(self):
        with self.assertRaises(ValueError):
            format_details(self.content, "runes")

    def test_split_message_on_line_boundaries(self):
        text = "\n".join(["a" * 10, "b" * 10, "c" * 10])
        self.assertEqual(split_message(text, 25), ["a" * 10 + "\n" + "b" * 10, "c" * 10])
        self.assertEqual(split_message("x" * 30, 10), ["x" * 10] * 3)
        self.assertEqual(split_message("", 10), [])
        self.assertEqual(split_message("short", 10), ["short"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
