import pytest

from remindercall.branches import (
    SERVICE_CENTERS,
    ServiceCenter,
    city_examples,
    match_branch,
)


class TestMatchBranch:
    @pytest.mark.parametrize("utterance", ["जयपुर", "Jaipur", "jaipur mein hai machine", "जयपुर में"])
    def test_jaipur_in_both_scripts(self, utterance):
        match = match_branch(utterance)
        assert match is not None
        assert match.code == "4"
        assert match.name == "JAIPUR"
        assert match.city == "JAIPUR"

    def test_satellite_city_maps_to_parent_branch(self):
        match = match_branch("machine dausa mein hai")
        assert match.code == "4"
        assert match.city == "DAUSA"
        assert "Dausa" in match.address

    def test_devanagari_variant_spelling(self):
        assert match_branch("सिकर").code == "6"
        assert match_branch("रामगंज मंडी").code == "5"

    def test_multi_word_city(self):
        match = match_branch("neem ka thana")
        assert match.city == "NEEM KA THANA"
        assert match.code == "4"

    def test_kota_not_matched_inside_kotputli(self):
        assert match_branch("kotputli").city == "KOTPUTLI"

    @pytest.mark.parametrize("utterance", ["", None, "haan ji", "mumbai"])
    def test_no_match(self, utterance):
        assert match_branch(utterance) is None

    def test_inactive_centers_are_skipped(self):
        centers = (ServiceCenter(1, "KOTA", "KOTA", "5", "addr", is_active=False),)
        assert match_branch("kota", centers) is None

    def test_directory_has_unique_ids(self):
        ids = [c.id for c in SERVICE_CENTERS]
        assert len(ids) == len(set(ids))


def test_city_examples():
    assert city_examples() == "Jaipur, Kota, Ajmer, Alwar, Sikar ya Udaipur"
