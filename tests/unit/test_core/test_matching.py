"""Unit tests for reference matching."""
import pytest
from measure_app.core.matching import ReferenceMatcher


class TestReferenceMatcher:

    @pytest.mark.parametrize("label", ["quarter", "QUARTER", "us quarter", "US Quarter coin", "quarter_dollar"])
    def test_substring_mode_matches_id_or_name(self, quarter, label):
        assert ReferenceMatcher("substring").matches(label, quarter)

    @pytest.mark.parametrize("label", ["person", "cup", "", "   ", "quart"])
    def test_substring_mode_rejects_unrelated_labels(self, quarter, label):
        assert not ReferenceMatcher("substring").matches(label, quarter)

    def test_underscored_id_matches_spaced_label(self, catalog):
        card = catalog.lookup('credit_card')

        assert ReferenceMatcher().matches("credit card", card)
        assert ReferenceMatcher("exact").matches("Credit_Card", card)

    def test_exact_mode_only_accepts_the_id(self, quarter):
        matcher = ReferenceMatcher("exact")

        assert matcher.matches("quarter", quarter)
        assert not matcher.matches("us quarter", quarter)

    def test_synonyms_match_in_both_modes(self, catalog):
        a4 = catalog.lookup('a4_paper')
        synonyms = {'a4_paper': ['book', 'Laptop']}

        for mode in ("exact", "substring"):
            matcher = ReferenceMatcher(mode, synonyms)
            assert matcher.matches("laptop", a4)
            assert matcher.matches("book", a4)
            assert not matcher.matches("person", a4)

    def test_person_is_not_a4_paper_by_default(self, catalog):
        assert not ReferenceMatcher().matches("person", catalog.lookup('a4_paper'))

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            ReferenceMatcher("fuzzy")

    def test_find_reference_keeps_detection_order(self, quarter, detection_factory):
        detections = [
            detection_factory("cup", [0, 0, 10, 10]),
            detection_factory("quarter", [1, 1, 20, 20], 0.6),
            detection_factory("quarter", [2, 2, 30, 30], 0.99),
        ]

        matches = ReferenceMatcher().find_reference(detections, quarter)

        assert matches == detections[1:]
