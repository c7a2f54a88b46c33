"""
Instruction phrase translation
"""

import re
from typing import Dict

# Directional phrases emitted by directions providers, mapped per target locale
PHRASE_TABLES: Dict[str, Dict[str, str]] = {
    "en": {},
    "fr": {
        "Turn left": "Tournez à gauche",
        "Turn right": "Tournez à droite",
        "Turn slight left": "Tournez légèrement à gauche",
        "Turn slight right": "Tournez légèrement à droite",
        "Turn sharp left": "Tournez fortement à gauche",
        "Turn sharp right": "Tournez fortement à droite",
        "Continue straight": "Continuez tout droit",
        "Make a U-turn": "Faites demi-tour",
        "Enter the roundabout": "Entrez dans le rond-point",
        "and take exit": "et prenez la sortie",
        "Head toward": "Dirigez-vous vers",
        "Head": "Dirigez-vous",
        "Arrive at destination": "Arrivez à destination",
        "Arrive at": "Arrivez à",
        "on the left": "sur la gauche",
        "on the right": "sur la droite",
        "onto": "sur",
        "on": "sur",
        "north": "vers le nord",
        "northeast": "vers le nord-est",
        "east": "vers l'est",
        "southeast": "vers le sud-est",
        "south": "vers le sud",
        "southwest": "vers le sud-ouest",
        "west": "vers l'ouest",
        "northwest": "vers le nord-ouest",
    },
    "de": {
        "Turn left": "Links abbiegen",
        "Turn right": "Rechts abbiegen",
        "Turn slight left": "Leicht links abbiegen",
        "Turn slight right": "Leicht rechts abbiegen",
        "Turn sharp left": "Scharf links abbiegen",
        "Turn sharp right": "Scharf rechts abbiegen",
        "Continue straight": "Geradeaus weiterfahren",
        "Make a U-turn": "Wenden",
        "Enter the roundabout": "In den Kreisverkehr einfahren",
        "and take exit": "und Ausfahrt nehmen",
        "Head toward": "Richtung",
        "Head": "Starten Sie",
        "Arrive at destination": "Ziel erreicht",
        "Arrive at": "Ankunft bei",
        "on the left": "auf der linken Seite",
        "on the right": "auf der rechten Seite",
        "onto": "auf",
        "on": "auf",
        "north": "nach Norden",
        "northeast": "nach Nordosten",
        "east": "nach Osten",
        "southeast": "nach Südosten",
        "south": "nach Süden",
        "southwest": "nach Südwesten",
        "west": "nach Westen",
        "northwest": "nach Nordwesten",
    },
}

# Fixed messages the session shows in addition to provider instructions
MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "continue": "Continue straight",
        "arrive": "Arrive at destination",
        "arrived": "You have arrived at your destination",
        "completed": "Navigation complete",
    },
    "fr": {
        "continue": "Continuez tout droit",
        "arrive": "Arrivez à destination",
        "arrived": "Vous êtes arrivé à destination",
        "completed": "Navigation terminée",
    },
    "de": {
        "continue": "Geradeaus weiterfahren",
        "arrive": "Ziel erreicht",
        "arrived": "Sie haben Ihr Ziel erreicht",
        "completed": "Navigation beendet",
    },
}


class InstructionTranslator:
    """Rewrites known directional phrases into the target locale"""

    def __init__(self, locale: str = "en"):
        if locale not in PHRASE_TABLES:
            raise ValueError(f"Unsupported locale: {locale}. Available: {', '.join(sorted(PHRASE_TABLES))}")

        self.locale = locale
        self.table = PHRASE_TABLES[locale]
        self.messages = MESSAGES[locale]

        # Longest phrases first so "Arrive at destination" wins over "Arrive at"
        phrases = sorted(self.table, key=len, reverse=True)
        self._pattern = (
            re.compile(r"\b(" + "|".join(re.escape(p) for p in phrases) + r")\b")
            if phrases else None
        )

    def translate(self, instruction: str) -> str:
        """Translate an instruction, never returning an empty string"""
        text = (instruction or "").strip()
        if not text:
            return self.messages["continue"]

        if self._pattern is None:
            return text

        return self._pattern.sub(lambda match: self.table[match.group(0)], text)

    def message(self, key: str) -> str:
        """Fixed session message (continue, arrive, arrived, completed)"""
        return self.messages[key]
