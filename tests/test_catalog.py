import pytest

from toneshare import catalog
from toneshare.errors import UnknownCatalogItem
from toneshare.models import CATEGORY_ORDER


def test_every_category_has_a_pedal():
    for category in CATEGORY_ORDER:
        assert catalog.first_pedal_of(category) is not None


def test_lookup_unknown_ids():
    with pytest.raises(UnknownCatalogItem):
        catalog.get_pedal("99")
    with pytest.raises(KeyError):
        catalog.get_amplifier("amp-99")


def test_instantiate_amplifier_picks_first_channel_and_variant():
    amp = catalog.instantiate_amplifier(catalog.get_amplifier("amp-4"))
    assert amp.active_channel == "Clean"
    assert amp.active_variant == "Tube"
    assert amp.id.startswith("amp-4-")

    plain = catalog.instantiate_amplifier(catalog.get_amplifier("amp-1"))
    assert plain.active_channel is None and plain.active_variant is None


def test_filter_pedals_by_text_brand_and_color():
    assert [p.name for p in catalog.filter_pedals("mxr")] == ["Dyna Comp", "Carbon Copy"]
    assert [p.name for p in catalog.filter_pedals(brand="Boss")] == [
        "Neo Chorus", "NS-2 Noise Suppressor"]
    assert [p.name for p in catalog.filter_pedals("big", color="from-cyan-500 to-cyan-700")] == [
        "BigSky"]
    assert len(catalog.filter_pedals()) == len(catalog.PEDALS)


def test_filter_amplifiers():
    assert [a.name for a in catalog.filter_amplifiers("twin")] == ["Twin Reverb"]
    assert [a.name for a in catalog.filter_amplifiers(brand="Vox")] == ["AC30 Top Boost"]


def test_filter_menus():
    assert catalog.pedal_brands() == ["Boss", "EHX", "Ibanez", "MXR", "Strymon"]
    assert catalog.amplifier_brands()[0] == "Fender"
    colors = catalog.pedal_colors()
    assert len(colors) == len(set(colors))


def test_find_amplifier_by_brand_is_case_insensitive():
    assert catalog.find_amplifier_by_brand("mesa boogie").name == "Dual Rectifier"
    assert catalog.find_amplifier_by_brand("Peavey") is None
