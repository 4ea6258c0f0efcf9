import json
import logging

import pytest

from toneshare import catalog, records
from toneshare import chain as ops
from toneshare.errors import RecordError
from toneshare.models import AMPLIFIER, User


def _chain():
    chain = ops.set_amplifier(ops.default_chain(), catalog.get_amplifier("amp-4"))
    chain = ops.add_pedal(chain, catalog.get_pedal("3"))
    chain = ops.toggle_bypass(chain, 1)
    chain = ops.set_note(chain, AMPLIFIER, "scooped")
    return ops.set_variant(chain, "Diode")


def test_record_uses_transport_field_names():
    data = records.chain_to_record(_chain())
    assert data["chain"][1]["isBypassed"] is True
    assert data["chain"][1]["type"] == "Drive"
    assert data["amplifier"]["activeChannel"] == "Clean"
    assert data["amplifier"]["activeVariant"] == "Diode"
    json.dumps(data)


def test_chain_survives_json_transport():
    chain = _chain()
    wire = json.loads(json.dumps(records.chain_to_record(chain)))
    assert records.chain_from_record(wire) == chain


def test_bad_pedal_entries_are_skipped(caplog):
    wire = records.chain_to_record(_chain())
    wire["chain"].insert(0, {"name": "missing id"})
    with caplog.at_level(logging.WARNING, logger="toneshare.records"):
        chain = records.chain_from_record(wire)
    assert chain.names == ["Dyna Comp", "Big Muff Pi"]
    assert "1 error" in caplog.text


def test_out_of_range_settings_are_clamped_on_load():
    wire = records.chain_to_record(_chain())
    wire["chain"][0]["settings"]["Output"] = 400
    assert records.chain_from_record(wire).pedals[0].settings["Output"] == 100


def test_missing_amplifier_gets_default():
    chain = records.chain_from_record({"chain": []})
    assert chain.amplifier.name == "JCM800"


def test_setup_record():
    user = User("user-9", "Ana", "https://example.com/a.png")
    record = records.setup_record(_chain(), user, "Hysteria", "Muse",
                                  instrument="Bass Guitar", tags=["Fuzz"])
    assert record["id"].startswith("setup-")
    assert record["creator"] == "Ana"
    assert record["instrument"] == "Bass Guitar"
    assert record["tags"] == ["Fuzz"]
    assert len(record["chain"]) == 2


def test_setup_record_validation():
    user = User("u", "U")
    with pytest.raises(RecordError):
        records.setup_record(_chain(), user, "", "Muse")
    with pytest.raises(RecordError):
        records.setup_record(_chain(), user, "T", "A", instrument="Kazoo")
