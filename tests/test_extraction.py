from __future__ import annotations

import unittest

from patch_digest.core.bugfixes import extract_bug_fixes, is_bug_fix
from patch_digest.core.characters import extract_character_changes, stat_pattern_scan
from patch_digest.core.config import DigestConfig
from patch_digest.core.heuristics import (
    descriptive_changes,
    extract_stat_lines,
    is_game_mode_content,
    is_reasoning,
)
from patch_digest.core.items import extract_item_changes, is_item_change_text
from patch_digest.core.models import ChangeRecord
from patch_digest.core.system_changes import extract_system_changes

from _fixtures import LEXICON, SETTINGS, soup


class StatLineTests(unittest.TestCase):
    def test_ability_lines_keep_slot_and_description(self):
        lines = extract_stat_lines("Q - Piltover Peacemaker: 50 / 90 / 130 → 60/100/140", LEXICON)
        self.assertEqual(lines, ["Q - Piltover Peacemaker: 50/90/130 → 60/100/140"])

    def test_entity_name_is_not_part_of_label(self):
        self.assertEqual(extract_stat_lines("Ashe Base AD: 60 → 65", LEXICON), ["Base AD: 60 → 65"])

    def test_text_before_entity_is_not_part_of_label(self):
        self.assertEqual(
            extract_stat_lines("and Ashe Base Armor: 30 → 32", LEXICON),
            ["Base Armor: 30 → 32"],
        )

    def test_unknown_labels_are_skipped(self):
        self.assertEqual(extract_stat_lines("Season 14 → 15", LEXICON), [])

    def test_game_mode_filter(self):
        self.assertTrue(is_game_mode_content("ARAM: Ashe damage dealt 105%", LEXICON))
        self.assertTrue(is_game_mode_content("Damage taken: -5%", LEXICON))
        self.assertFalse(is_game_mode_content("Base AD: 60 → 65", LEXICON))

    def test_reasoning_needs_subject_and_vocabulary(self):
        text = "Caitlyn has been far too dominant in pro play over the last few patches"
        self.assertTrue(is_reasoning(text, "Caitlyn", LEXICON))
        self.assertFalse(is_reasoning("Too dominant.", "Caitlyn", LEXICON))
        self.assertFalse(
            is_reasoning("The jungle camps now spawn a little earlier than before in every game", None, LEXICON)
        )

    def test_descriptive_fallback_skips_reasoning_and_modes(self):
        text = (
            "Caitlyn has been far too dominant in pro play over the last few patches. "
            "Headshot damage decreased against champions. "
            "ARAM: Caitlyn damage dealt reduced to 95%."
        )
        self.assertEqual(
            descriptive_changes(text, "Caitlyn", LEXICON),
            ["Headshot damage decreased against champions"],
        )


class CharacterExtractionTests(unittest.TestCase):
    def test_structured_section_with_sub_headings(self):
        doc = soup(
            "<h1>Patch 14.1 Notes</h1>"
            "<h2>Champion Changes</h2>"
            "<h3>Ashe</h3><p>Base AD: 60 → 65</p>"
            "<h3>Caitlyn</h3><ul><li>Cooldown: 14 → 12</li></ul>"
            "<h2>Items</h2><h3>Infinity Edge</h3><ul><li>Cost: 3400 → 3450</li></ul>"
        )
        strategy, records = extract_character_changes(doc, LEXICON, SETTINGS)
        self.assertEqual(strategy, "structured_scan")
        self.assertEqual(
            records,
            (
                ChangeRecord("Ashe", ("Base AD: 60 → 65",)),
                ChangeRecord("Caitlyn", ("Cooldown: 14 → 12",)),
            ),
        )

    def test_stat_pattern_scan_without_sections(self):
        doc = soup("<div><p>Caitlyn Q - Piltover Peacemaker: 50/90/130 → 60/100/140 damage</p></div>")
        strategy, records = extract_character_changes(doc, LEXICON, SETTINGS)
        self.assertEqual(strategy, "stat_pattern_scan")
        self.assertEqual(
            records,
            (ChangeRecord("Caitlyn", ("Q - Piltover Peacemaker: 50/90/130 → 60/100/140",)),),
        )

    def test_context_window_scan_uses_descriptive_fallback(self):
        doc = soup("<div><p>Caitlyn: her Q damage has been increased significantly this patch.</p></div>")
        strategy, records = extract_character_changes(doc, LEXICON, SETTINGS)
        self.assertEqual(strategy, "context_window_scan")
        self.assertEqual(
            records,
            (ChangeRecord("Caitlyn", ("Caitlyn: her Q damage has been increased significantly this patch",)),),
        )

    def test_veigar_mode_paragraphs_are_dropped(self):
        doc = soup("<div><p>Veigar now deals increased damage in Doom Bots mode for a limited time only.</p></div>")
        _, records = extract_character_changes(doc, LEXICON, SETTINGS)
        self.assertEqual(records, ())

    def test_enhancement_pass_adds_lines_from_document_text(self):
        doc = soup(
            "<h2>Champion Changes</h2>"
            "<h3>Ashe</h3><p>Base AD: 60 → 65</p>"
            "<h2>Patch Highlights</h2>"
            "<p>Also Ashe Attack Speed Ratio: 0.65 → 0.67</p>"
        )
        _, records = extract_character_changes(doc, LEXICON, SETTINGS)
        self.assertEqual(
            records,
            (ChangeRecord("Ashe", ("Base AD: 60 → 65", "Attack Speed Ratio: 0.65 → 0.67")),),
        )

    def test_each_pattern_keeps_first_line_per_champion(self):
        doc = soup("<p>Ashe Base AD: 60 → 65. Ashe Base Armor: 30 → 32.</p>")
        self.assertEqual(
            stat_pattern_scan(doc, LEXICON, SETTINGS),
            [ChangeRecord("Ashe", ("Base AD: 60 → 65",))],
        )
        _, records = extract_character_changes(doc, LEXICON, SETTINGS)
        self.assertEqual(
            records,
            (ChangeRecord("Ashe", ("Base AD: 60 → 65", "Base Armor: 30 → 32")),),
        )

    def test_pattern_scan_respects_limit(self):
        settings = DigestConfig(pattern_scan_limit=1)
        doc = soup("<p>Ashe Base AD: 60 → 65. Caitlyn Base AD: 62 → 60.</p>")
        _, records = extract_character_changes(doc, LEXICON, settings)
        self.assertEqual([r.name for r in records], ["Ashe"])


class ItemExtractionTests(unittest.TestCase):
    def test_item_section_with_headings(self):
        doc = soup(
            "<h2>Items</h2>"
            "<h3>Infinity Edge</h3>"
            "<ul><li>Attack Damage: 70 → 75</li><li>Cost: 3400 → 3450 gold</li></ul>"
            "<h2>Bug Fixes</h2><ul><li>Fixed a bug where Infinity Edge had no effect</li></ul>"
        )
        strategy, records = extract_item_changes(doc, LEXICON, SETTINGS)
        self.assertEqual(strategy, "section_scan")
        self.assertEqual(
            records,
            (ChangeRecord("Infinity Edge", ("Attack Damage: 70 → 75", "Cost: 3400 → 3450 gold")),),
        )

    def test_item_links_are_resolved_through_registry(self):
        doc = soup(
            "<p><a href='/how-to-play/items/infinity-edge'>Infinity Edge</a></p>"
            "<p>Attack Damage: 70 → 75</p>"
            "<p><a href='/how-to-play/items/other'>Shiny Trinket</a></p>"
        )
        strategy, records = extract_item_changes(doc, LEXICON, SETTINGS)
        self.assertEqual(strategy, "link_scan")
        self.assertEqual([r.name for r in records], ["Infinity Edge"])
        self.assertIn("Attack Damage: 70 → 75", records[0].changes)

    def test_item_change_predicate(self):
        self.assertTrue(is_item_change_text("Ability Haste: 15 → 20", LEXICON))
        self.assertTrue(is_item_change_text("Cost reduced from 3000 to 2900", LEXICON))
        self.assertFalse(is_item_change_text("short", LEXICON))
        self.assertFalse(is_item_change_text("A completely unrelated sentence", LEXICON))


class BugFixExtractionTests(unittest.TestCase):
    def test_bug_fix_section(self):
        doc = soup(
            "<h2>Bug Fixes</h2>"
            "<ul>"
            "<li>Fixed a bug where Ashe's Volley could hit untargetable units</li>"
            "<li>Fixed an issue where the shop would not open after respawning</li>"
            "<li>Updated the tooltip wording on several summoner spells</li>"
            "</ul>"
        )
        fixes = extract_bug_fixes(doc, LEXICON, SETTINGS)
        self.assertEqual(
            fixes,
            (
                "Fixed a bug where Ashe's Volley could hit untargetable units",
                "Fixed an issue where the shop would not open after respawning",
            ),
        )

    def test_fallback_scan_drops_near_duplicates(self):
        doc = soup(
            "<div>"
            "<p>Fixed an issue where minions could get stuck near the river.</p>"
            "<p>Fixed an issue where minions could get stuck near the river.</p>"
            "<p>Resolved a bug with the scoreboard.</p>"
            "</div>"
        )
        fixes = extract_bug_fixes(doc, LEXICON, SETTINGS)
        self.assertEqual(
            fixes,
            (
                "Fixed an issue where minions could get stuck near the river.",
                "Resolved a bug with the scoreboard.",
            ),
        )

    def test_fallback_scan_is_capped(self):
        body = "".join(f"<p>Fixed issue number {i} with the scoreboard.</p>" for i in range(10))
        fixes = extract_bug_fixes(soup(f"<div>{body}</div>"), LEXICON, DigestConfig(bug_fix_limit=3))
        self.assertEqual(len(fixes), 3)

    def test_champion_and_item_wording_needs_fixed(self):
        doc = soup(
            "<h2>Bug Fixes</h2>"
            "<ul>"
            "<li>Bug where the champion select timer desynced for some players</li>"
            "<li>Resolved an issue where item tooltips showed wrong values</li>"
            "<li>Fixed an issue where Ashe's W did not fire</li>"
            "</ul>"
        )
        self.assertEqual(
            extract_bug_fixes(doc, LEXICON, SETTINGS),
            ("Fixed an issue where Ashe's W did not fire",),
        )
        self.assertTrue(is_bug_fix("Fixed a bug where item tooltips showed wrong values", LEXICON))

    def test_balance_lines_are_not_bug_fixes(self):
        self.assertFalse(is_bug_fix("Ashe bug-eyed stare damage increased", LEXICON))
        self.assertTrue(is_bug_fix("Fixed a bug where Ashe could not move", LEXICON))
        self.assertFalse(is_bug_fix("Fixed " + "x" * 600, LEXICON))


class SystemChangeTests(unittest.TestCase):
    def test_system_sections_in_document_order(self):
        doc = soup(
            "<h2>Jungle</h2><ul><li>Scuttle crab now spawns at 3:00 instead of 3:30</li></ul>"
            "<h2>Champion Changes</h2><p>Ashe Base AD: 60 → 65</p>"
            "<h2>Game Systems</h2><p>Turret plating now falls at 14:00 in every game</p><p>short</p>"
        )
        self.assertEqual(
            extract_system_changes(doc, LEXICON, SETTINGS),
            (
                "Scuttle crab now spawns at 3:00 instead of 3:30",
                "Turret plating now falls at 14:00 in every game",
            ),
        )


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
