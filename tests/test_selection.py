from toneshare import chain as ops
from toneshare.models import AMPLIFIER
from toneshare.selection import Selection, amp_parameter_groups


def test_selecting_one_clears_the_other():
    sel = Selection()
    sel.select_pedal(2)
    assert sel.target == 2
    sel.select_amplifier()
    assert sel.target == AMPLIFIER and sel.pedal is None
    sel.select_pedal(0)
    assert sel.amplifier is False


def test_resolve_ignores_stale_position():
    chain = ops.default_chain()
    sel = Selection()
    sel.select_pedal(5)
    assert sel.resolve(chain) is None
    sel.select_pedal(0)
    assert sel.resolve(chain) is chain.pedals[0]


def test_amp_parameter_groups_split_eq():
    amp = ops.default_chain().amplifier
    main, eq = amp_parameter_groups(amp)
    assert [k for k, _ in main] == ["Preamp", "Master"]
    assert [k for k, _ in eq] == ["Bass", "Middle", "Treble", "Presence"]
