from __future__ import annotations

from bs4 import BeautifulSoup

from patch_digest.core.config import DigestConfig
from patch_digest.core.lexicon import load_lexicon

LEXICON = load_lexicon().replace(
    champions=["Ashe", "Caitlyn", "Veigar", "Kai'Sa", "Sona"],
    items=["Infinity Edge", "Rabadon's Deathcap"],
)

SETTINGS = DigestConfig()


def soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")
