"""
Unit tests for the DisplayCleaner component.
"""

import pytest

from voiceagent.processors import ActionKind
from voiceagent.processors.core.display_cleaner import DisplayCleaner


class TestDisplayCleaner:
    """Test suite for description cleaning"""

    @pytest.fixture
    def cleaner(self, lv_profile):
        return DisplayCleaner(lv_profile)

    @pytest.fixture
    def et_cleaner(self, et_profile):
        return DisplayCleaner(et_profile)

    @pytest.mark.unit
    @pytest.mark.parametrize("text,expected", [
        ("atgādini rīt plkst 9 izvest suni", "Izvest suni"),
        ("atgādini pēc 10 minūtēm piezvanīt grāmatvedei", "Piezvanīt grāmatvedei"),
        ("rīt divos tikšanās ar J.", "Tikšanās ar J."),
        ("lūdzu atgādini nopirkt biļetes parīt", "Nopirkt biļetes"),
        ("ieplāno sapulci pirmdien no 14 līdz 16", "Sapulci"),
    ])
    def test_strips_scaffolding(self, cleaner, now, text, expected):
        """Test triggers, temporal phrases and fillers are removed"""
        assert cleaner.clean(text, now).text == expected

    @pytest.mark.unit
    def test_reports_what_was_removed(self, cleaner, now):
        """Test triggers and time removal are recorded"""
        result = cleaner.clean("atgādini rīt plkst 9 izvest suni", now)

        assert result.used_triggers == ["atgādini"]
        assert result.removed_time_tokens
        assert not result.fell_back

    @pytest.mark.unit
    def test_falls_back_to_original(self, cleaner, now):
        """Test text is kept when nothing meaningful remains"""
        result = cleaner.clean("atgādini rīt", now)

        assert result.text == "atgādini rīt"
        assert result.fell_back
        assert result.notes is None

    @pytest.mark.unit
    def test_due_date_annotation(self, cleaner, now):
        """Test a due-date phrase becomes a trailing annotation"""
        result = cleaner.clean("atgādini iesniegt atskaiti līdz 15. novembrim", now)

        assert result.text == "Iesniegt atskaiti (līdz 15.11.)"
        assert result.due_annotation == "(līdz 15.11.)"

    @pytest.mark.unit
    def test_due_date_alone_uses_default_label(self, cleaner, now):
        """Test an annotation with no other text gets the default label"""
        result = cleaner.clean("atgādini līdz 15. novembrim", now)

        assert result.text == "Atgādinājums (līdz 15.11.)"
        assert not result.fell_back

    @pytest.mark.unit
    def test_notes_marker_splits(self, cleaner, now):
        """Test "ar piezīmi" moves the rest into notes"""
        result = cleaner.clean(
            "tikšanās ar klientu ar piezīmi paņemt līgumu", now, kind=ActionKind.CALENDAR
        )

        assert result.text == "Tikšanās ar klientu"
        assert result.notes == "Paņemt līgumu"

    @pytest.mark.unit
    def test_long_reminder_splits_at_clause(self, cleaner, now):
        """Test a long reminder keeps its first clause as the description"""
        result = cleaner.clean(
            "atgādini rīt nopirkt dāvanu Annai, viņai patīk zili ziedi un šokolāde ar riekstiem", now
        )

        assert result.text == "Nopirkt dāvanu Annai"
        assert result.notes == "Viņai patīk zili ziedi un šokolāde ar riekstiem"

    @pytest.mark.unit
    def test_long_calendar_entry_is_not_split(self, cleaner, now):
        """Test clause splitting applies to reminders only"""
        text = "tikšanās rīt ar Annu, lai pārrunātu jauno projektu un budžetu nākamajam gadam"
        result = cleaner.clean(text, now, kind=ActionKind.CALENDAR)

        assert result.notes is None
        assert result.text.startswith("Tikšanās ar Annu")

    @pytest.mark.unit
    def test_extra_spans_are_cut(self, cleaner, now):
        """Test caller-supplied spans are removed as well"""
        text = "izvest suni obligāti"
        result = cleaner.clean(text, now, extra_spans=[(text.index("obligāti"), len(text))])

        assert result.text == "Izvest suni"

    @pytest.mark.unit
    def test_estonian(self, et_cleaner, now_et):
        """Test Estonian triggers and times are removed"""
        result = et_cleaner.clean("meenuta homme kell 9 osta lilli", now_et)

        assert result.text == "Osta lilli"

    @pytest.mark.unit
    def test_only_resolved_phrases_are_cut(self, cleaner, now):
        """Test a day word that did not set the date stays in the text"""
        result = cleaner.clean("atgādini rīt plkst 9 izvest suni nevis piektdien", now)

        assert result.text == "Izvest suni nevis piektdien"

    @pytest.mark.unit
    def test_explicit_temporal_spans(self, cleaner, now):
        """Test caller-supplied temporal spans replace the cleaner's own reading"""
        result = cleaner.clean("izvest suni plkst 9", now, temporal_spans=[])

        assert result.text == "Izvest suni plkst 9"
        assert not result.removed_time_tokens

    @pytest.mark.unit
    def test_count_before_trigger_is_cut(self, cleaner, now):
        result = cleaner.clean("uztaisi trīs atgādinājumus izvest suni", now)

        assert result.text == "Izvest suni"
        assert result.used_triggers == ["atgādinājumus"]

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["atgādini rīt no", "atgādini trīs", "atgādini plkst 9 ja"])
    def test_lone_function_word_falls_back(self, cleaner, now, text):
        """Test a leftover preposition, number or connective is not a description"""
        result = cleaner.clean(text, now)

        assert result.fell_back
        assert result.text == text
