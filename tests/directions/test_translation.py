"""
Tests for instruction translation
"""

import pytest

from tripnav.directions.translation import PHRASE_TABLES, InstructionTranslator


class TestInstructionTranslator:
    """Test phrase-table translation"""

    def test_english_passthrough(self):
        """Test English instructions are unchanged"""
        translator = InstructionTranslator("en")
        assert translator.translate("Turn left onto Rue X") == "Turn left onto Rue X"

    def test_french_turn(self):
        """Test known phrases are rewritten and street names kept"""
        translator = InstructionTranslator("fr")
        assert translator.translate("Turn left onto Rue X") == "Tournez à gauche sur Rue X"

    def test_german_turn(self):
        translator = InstructionTranslator("de")
        assert translator.translate("Turn right onto Hauptstraße") == "Rechts abbiegen auf Hauptstraße"

    def test_longest_phrase_wins(self):
        """Test multi-word phrases take precedence over their prefixes"""
        translator = InstructionTranslator("fr")
        assert translator.translate("Arrive at destination") == "Arrivez à destination"
        assert translator.translate("Turn slight left") == "Tournez légèrement à gauche"

    def test_compass_direction(self):
        """Test compound compass points are not split"""
        translator = InstructionTranslator("fr")
        assert translator.translate("Head northeast") == "Dirigez-vous vers le nord-est"

    def test_unmapped_text_unchanged(self):
        """Test text with no known phrase passes through"""
        translator = InstructionTranslator("fr")
        assert translator.translate("Take the ferry") == "Take the ferry"

    def test_phrases_inside_words_untouched(self):
        """Test phrases only match on word boundaries"""
        translator = InstructionTranslator("fr")
        assert translator.translate("Boulevard Eastwood") == "Boulevard Eastwood"

    @pytest.mark.parametrize("locale", sorted(PHRASE_TABLES))
    def test_empty_instruction(self, locale):
        """Test empty text becomes the continue message"""
        translator = InstructionTranslator(locale)
        assert translator.translate("") == translator.message("continue")
        assert translator.translate("   ") != ""

    def test_messages(self):
        """Test fixed session messages"""
        assert InstructionTranslator("fr").message("arrived") == "Vous êtes arrivé à destination"
        assert InstructionTranslator("en").message("completed") == "Navigation complete"

    def test_unknown_locale(self):
        """Test unsupported locale is rejected"""
        with pytest.raises(ValueError, match="Unsupported locale"):
            InstructionTranslator("xx")
