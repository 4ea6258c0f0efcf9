import io

import pytest

from toneshare import catalog
from toneshare import chain as ops
from toneshare.ai import ToneAdvisor
from toneshare.cli import EditorCLI
from toneshare.editor import EditorSession
from toneshare.errors import ExternalServiceFailure
from toneshare.models import User


class FakeClient:
    def __init__(self, setups=None, fail=False):
        self.setups = setups or []
        self.fail = fail
        self.published = []

    def list_setups(self):
        if self.fail:
            raise ExternalServiceFailure("cannot reach http://x")
        return self.setups

    def publish(self, record):
        if self.fail:
            raise ExternalServiceFailure("cannot reach http://x")
        self.published.append(record)


@pytest.fixture
def shell():
    chain = ops.add_pedal(ops.default_chain(blank=True), catalog.get_pedal("2"))
    out = io.StringIO()
    cli = EditorCLI(EditorSession(chain), User("user-1", "Ana"), client=FakeClient(),
                    advisor=None, stdout=out)
    return cli, out


def run(cli, out, line):
    out.seek(0)
    out.truncate()
    cli.onecmd(line)
    cli.postcmd(False, line)
    return out.getvalue()


def test_add_and_show_chain(shell):
    cli, out = shell
    text = run(cli, out, "add 6")
    assert "[1] Tube Screamer" in text
    assert "[2] BigSky" in text
    assert "[amp] Marshall JCM800" in text


def test_positions_are_one_based(shell):
    cli, out = shell
    run(cli, out, "add 1")
    run(cli, out, "drag 2 1")
    assert cli.session.chain.names == ["Dyna Comp", "Tube Screamer"]
    assert "Error" in run(cli, out, "remove 0")


def test_set_reports_clamped_value(shell):
    cli, out = shell
    assert "Tone = 100" in run(cli, out, "set 1 Tone 230")
    assert "Error" in run(cli, out, "set 1 Fuzz 10")
    assert "Error" in run(cli, out, "set 1 Tone loud")


def test_knob_gesture_commands(shell):
    cli, out = shell
    run(cli, out, "knob 1 Level")
    assert "Level = 90" in run(cli, out, "knob drag 20")
    assert len(cli.session.history) == 1
    run(cli, out, "knob release")
    assert len(cli.session.history) == 2
    assert "Error" in run(cli, out, "knob drag 5")


def test_undo_redo_messages(shell):
    cli, out = shell
    assert "Nothing to undo" in run(cli, out, "undo")
    run(cli, out, "bypass amp")
    assert "[bypassed]" in run(cli, out, "chain")
    run(cli, out, "undo")
    assert "Nothing to redo" not in run(cli, out, "redo")
    assert "Nothing to redo" in run(cli, out, "redo")


def test_amp_params_grouped(shell):
    cli, out = shell
    text = run(cli, out, "params amp")
    assert text.index("Master") < text.index("-- EQ --") < text.index("Treble")


def test_publish_and_list(shell):
    cli, out = shell
    text = run(cli, out, 'publish "Only Shallow" "My Bloody Valentine" "Electric Guitar" Shoegaze Fuzz')
    assert "saved!" in text
    record = cli.client.published[0]
    assert record["title"] == "Only Shallow"
    assert record["tags"] == ["Fuzz"]

    cli.client.setups = [record]
    assert "Only Shallow" in run(cli, out, "setups")


def test_open_loads_setup(shell):
    cli, out = shell
    record = cli.session.to_record(User("u", "U"), "T", "A")
    cli.client.setups = [record]
    run(cli, out, "add 4")
    run(cli, out, f"open {record['id']}")
    assert cli.session.chain.names == ["Tube Screamer"]
    assert not cli.session.can_undo()


@pytest.mark.parametrize("broken", [
    {"amplifier": {"name": "no id"}},
    {"chain": "not a list"},
])
def test_open_malformed_setup_keeps_shell_running(shell, broken):
    cli, out = shell
    record = cli.session.to_record(User("u", "U"), "T", "A", setup_id="s1")
    record.update(broken)
    cli.client.setups = [record]
    session = cli.session

    text = run(cli, out, "open s1")

    assert "Error: cannot open 's1'" in text
    assert cli.session is session
    assert "[1] Tube Screamer" in run(cli, out, "chain")


def test_setups_tolerates_partial_records(shell):
    cli, out = shell
    cli.client.setups = [{"id": "s1"}, {"title": "Untitled"}]
    text = run(cli, out, "setups")
    assert "s1" in text
    assert "Untitled" in text


def test_server_failure_is_reported(shell):
    cli, out = shell
    cli.client.fail = True
    assert "Error: cannot reach" in run(cli, out, "setups")
    text = run(cli, out, 'publish "T" "A"')
    assert "Could not publish" in text
    assert cli.session.chain.names == ["Tube Screamer"]


def test_ai_commands(shell):
    cli, out = shell
    assert "disabled" in run(cli, out, "critique")
    reply = '```json\n{"insight": "Go big.", "categories": ["Dynamics", "Reverb"], "ampBrand": "Fender"}\n```'
    cli.advisor = ToneAdvisor(lambda system, prompt: reply)
    assert "Dynamics -> Reverb" in run(cli, out, "blueprint ambient")
    run(cli, out, "apply")
    assert cli.session.chain.names == ["Dyna Comp", "BigSky"]
    assert cli.session.chain.amplifier.name == "Twin Reverb"


def test_unknown_command(shell):
    cli, out = shell
    assert "Unknown command" in run(cli, out, "frobnicate")


def test_quit_returns_true(shell):
    cli, _ = shell
    assert cli.onecmd("quit") is True
