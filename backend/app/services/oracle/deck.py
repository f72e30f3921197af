"""
Oracle deck - 22 cards carrying Maori spiritual concepts.
The declared order is the starting order for every shuffle.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class OracleCard:
    """One oracle card"""
    name: str
    meaning: str
    image: str  # Path to card image

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


ORACLE_CARDS: Tuple[OracleCard, ...] = (
    OracleCard("Mana", "Personal power and spiritual authority", "/images/cards/mana.jpg"),
    OracleCard("Wairua", "Spirit and soul connection", "/images/cards/wairua.jpg"),
    OracleCard("Aroha", "Love, compassion, and empathy", "/images/cards/aroha.jpg"),
    OracleCard("Kaitiakitanga", "Guardianship and protection of sacred energy", "/images/cards/kaitiakitanga.jpg"),
    OracleCard("Whakapapa", "Ancestral connections and lineage wisdom", "/images/cards/whakapapa.jpg"),
    OracleCard("Mauri", "Life force and vital essence", "/images/cards/mauri.jpg"),
    OracleCard("Tapu", "Sacred restrictions and spiritual boundaries", "/images/cards/tapu.jpg"),
    OracleCard("Manaakitanga", "Hospitality, kindness, and support", "/images/cards/manaakitanga.jpg"),
    OracleCard("Whanaungatanga", "Relationships and community bonds", "/images/cards/whanaungatanga.jpg"),
    OracleCard("Rangimarie", "Peace and tranquility", "/images/cards/rangimarie.jpg"),
    OracleCard("Ihi", "Spiritual power and psychic force", "/images/cards/ihi.jpg"),
    OracleCard("Wehi", "Awe and reverence for the divine", "/images/cards/wehi.jpg"),
    OracleCard("Tikanga", "Right way of doing things and proper protocols", "/images/cards/tikanga.jpg"),
    OracleCard("Rahui", "Conservation and balanced resource management", "/images/cards/rahui.jpg"),
    OracleCard("Whakairo", "Creative expression and artistic purpose", "/images/cards/whakairo.jpg"),
    OracleCard("Karakia", "Prayer and spiritual incantation", "/images/cards/karakia.jpg"),
    OracleCard("Tangaroa", "Ocean wisdom and emotional depths", "/images/cards/tangaroa.jpg"),
    OracleCard("Tane Mahuta", "Forest energy and natural growth", "/images/cards/tane-mahuta.jpg"),
    OracleCard("Tumatauenga", "Courage and strategic action", "/images/cards/tumatauenga.jpg"),
    OracleCard("Rongo", "Peace and agricultural abundance", "/images/cards/rongo.jpg"),
    OracleCard("Haumia", "Wild food energy and uncultivated potential", "/images/cards/haumia.jpg"),
    OracleCard("Ruaumoko", "Change, transformation, and renewal", "/images/cards/ruaumoko.jpg"),
)

_CARDS_BY_NAME: Dict[str, OracleCard] = {card.name.lower(): card for card in ORACLE_CARDS}


def get_card_by_name(name: str) -> Optional[OracleCard]:
    """Look up a catalog card by name (case-insensitive)."""
    return _CARDS_BY_NAME.get((name or "").strip().lower())
