"""Interactive editor shell for toneshare.

Pedal positions are presented 1-based to the user and converted to
0-based internally.  ``amp`` addresses the amplifier wherever a pedal
position is accepted.
"""

from __future__ import annotations

import cmd
import shlex
from typing import Optional

from toneshare import catalog
from toneshare.ai import ToneAdvisor
from toneshare.chain import DOWN, UP
from toneshare.client import SetupClient
from toneshare.deps import HAS_AGENT_SDK, HAS_FLASK
from toneshare.editor import EditorSession
from toneshare.errors import ExternalServiceFailure, ToneShareError
from toneshare.models import AMPLIFIER, User
from toneshare.selection import amp_parameter_groups


def _target(token: str):
    """Convert a user target (1-based position or 'amp') to internal form."""
    if token.lower() == AMPLIFIER:
        return AMPLIFIER
    try:
        pos = int(token)
    except ValueError:
        raise ValueError(f"expected a pedal position or 'amp', got '{token}'") from None
    if pos < 1:
        raise ValueError("pedal positions start at 1")
    return pos - 1


def _position(token: str) -> int:
    target = _target(token)
    if target == AMPLIFIER:
        raise ValueError("this command takes a pedal position")
    return target


def _number(token: str):
    try:
        return int(token)
    except ValueError:
        return float(token)


class EditorCLI(cmd.Cmd):
    intro = r"""
============================================================
  ToneShare  -  signal chain editor
============================================================
Type 'help' for available commands.
Pedals are numbered from 1 (input side).  Use 'amp' for the amplifier.
"""
    prompt = "toneshare> "

    def __init__(self, session: EditorSession, user: User,
                 client: Optional[SetupClient] = None,
                 advisor: Optional[ToneAdvisor] = None, stdout=None):
        super().__init__(stdout=stdout)
        self.session = session
        self.user = user
        self.client = client
        self.advisor = advisor

    # -- helpers for redirectable output -------------------------------------

    def _print(self, *args, **kwargs):
        kwargs.setdefault("file", self.stdout)
        print(*args, **kwargs)

    def _show_notices(self):
        for notice in self.session.drain_notices():
            self._print(f"  ! {notice}")

    def postcmd(self, stop, line):
        self._show_notices()
        return stop

    def emptyline(self):
        pass

    def default(self, line):
        self._print(f"Unknown command: {line.split()[0]}  (try 'help')")

    def _run(self, fn, *args):
        """Call a session command, reporting errors instead of raising."""
        try:
            fn(*args)
        except (ToneShareError, ValueError, KeyError, IndexError) as e:
            self._print(f"Error: {e}")
            return False
        return True

    # -- viewing -------------------------------------------------------------

    def do_chain(self, arg):
        """Show the signal chain."""
        chain = self.session.chain
        sel = self.session.selection
        if not chain.pedals:
            self._print("  (no pedals)")
        for i, pedal in enumerate(chain.pedals):
            mark = ">" if sel.pedal == i else " "
            flag = " [bypassed]" if pedal.bypassed else ""
            self._print(f" {mark}[{i + 1}] {pedal.name:<22} {pedal.brand:<8} {pedal.type}{flag}")
        amp = chain.amplifier
        mark = ">" if sel.amplifier else " "
        extra = []
        if amp.active_channel:
            extra.append(f"channel={amp.active_channel}")
        if amp.active_variant:
            extra.append(f"variant={amp.active_variant}")
        if amp.bypassed:
            extra.append("[bypassed]")
        self._print(f" {mark}[amp] {amp.brand} {amp.name}  {' '.join(extra)}".rstrip())

    def do_library(self, arg):
        """List catalog pedals: library [search text]"""
        for p in catalog.filter_pedals(arg.strip()):
            self._print(f"  {p.id:<4} {p.name:<22} {p.brand:<8} {p.type}")

    def do_amps(self, arg):
        """List catalog amplifiers: amps [search text]"""
        for a in catalog.filter_amplifiers(arg.strip()):
            self._print(f"  {a.id:<6} {a.brand} {a.name}")

    def do_params(self, arg):
        """Show parameters: params [position|amp]  (default: selection)"""
        try:
            target = _target(arg.strip()) if arg.strip() else self.session.selection.target
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        if target is None:
            self._print("  Nothing selected.")
            return
        if target == AMPLIFIER:
            amp = self.session.chain.amplifier
            main, eq = amp_parameter_groups(amp)
            for name, value in main:
                self._print(f"  {name} = {value}")
            if eq:
                self._print("  -- EQ --")
                for name, value in eq:
                    self._print(f"  {name} = {value}")
            if amp.notes:
                self._print(f"  notes: {amp.notes}")
            return
        try:
            pedal = self.session.chain.pedals[target]
        except IndexError:
            self._print("Error: position out of range")
            return
        for name, value in pedal.settings.items():
            self._print(f"  {name} = {value}")
        if pedal.notes:
            self._print(f"  notes: {pedal.notes}")

    def do_select(self, arg):
        """Select for editing: select <position|amp|none>"""
        token = arg.strip()
        if not token:
            self._print("Usage: select <position|amp|none>")
            return
        try:
            target = None if token == "none" else _target(token)
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        self._run(self.session.select, target)

    def do_history(self, arg):
        """Show undo history position."""
        h = self.session.history
        self._print(f"  step {h.cursor + 1}/{len(h)}  "
                    f"undo={'yes' if h.can_undo() else 'no'}  "
                    f"redo={'yes' if h.can_redo() else 'no'}")

    # -- structure -----------------------------------------------------------

    def do_add(self, arg):
        """Add pedal at the end: add <catalog id>"""
        if not arg.strip():
            self._print("Usage: add <catalog id>")
            return
        if self._run(self.session.add_pedal, arg.strip()):
            self.do_chain("")

    def do_insert(self, arg):
        """Insert pedal: insert <catalog id> <position>"""
        parts = arg.split()
        if len(parts) != 2:
            self._print("Usage: insert <catalog id> <position>")
            return
        try:
            pos = _position(parts[1])
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        if self._run(self.session.insert_pedal, parts[0], pos):
            self.do_chain("")

    def do_remove(self, arg):
        """Remove pedal: remove <position>"""
        try:
            pos = _position(arg.strip())
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        if self._run(self.session.remove_pedal, pos):
            self.do_chain("")

    def do_up(self, arg):
        """Move pedal towards the input: up <position>"""
        self._move(arg, UP)

    def do_down(self, arg):
        """Move pedal towards the amp: down <position>"""
        self._move(arg, DOWN)

    def _move(self, arg, direction):
        try:
            pos = _position(arg.strip())
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        if self._run(self.session.move_pedal, pos, direction):
            self.do_chain("")

    def do_drag(self, arg):
        """Drag pedal to a new slot: drag <from> <to>"""
        parts = arg.split()
        if len(parts) != 2:
            self._print("Usage: drag <from> <to>")
            return
        try:
            src, dst = _position(parts[0]), _position(parts[1])
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        if self._run(self.session.drop_pedal, src, dst):
            self.do_chain("")

    def do_arrange(self, arg):
        """Sort pedals into Dynamics > Drive > Modulation > Delay > Reverb > Utility."""
        if self._run(self.session.auto_arrange):
            self.do_chain("")

    def do_clear(self, arg):
        """Remove every pedal (the amplifier stays)."""
        self._run(self.session.clear)

    # -- components ----------------------------------------------------------

    def do_bypass(self, arg):
        """Toggle bypass: bypass <position|amp>"""
        try:
            target = _target(arg.strip())
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        if self._run(self.session.toggle_bypass, target):
            self.do_chain("")

    def do_set(self, arg):
        """Set parameter: set <position|amp> <name> <value>  (clamped to 0-100)"""
        parts = arg.split()
        if len(parts) != 3:
            self._print("Usage: set <position|amp> <name> <value>")
            return
        try:
            target = _target(parts[0])
            value = _number(parts[2])
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        if self._run(self.session.set_parameter, target, parts[1], value):
            stored = self._component(target).settings[parts[1]]
            self._print(f"  {parts[1]} = {stored}")

    def _component(self, target):
        chain = self.session.chain
        return chain.amplifier if target == AMPLIFIER else chain.pedals[target]

    def do_knob(self, arg):
        """Knob gesture: knob <position|amp> <name> | knob drag <pixels> | knob release | knob cancel"""
        parts = arg.split()
        if not parts:
            self._print("Usage: knob <position|amp> <name> | knob drag <pixels> "
                        "| knob release | knob cancel")
            return
        action = parts[0]
        if action == "drag" and len(parts) == 2:
            try:
                delta = float(parts[1])
            except ValueError:
                self._print("Error: pixels must be a number")
                return
            try:
                self.session.drag(delta)
            except RuntimeError as e:
                self._print(f"Error: {e}")
                return
            target, key = self.session.gesture
            self._print(f"  {key} = {self._component(target).settings[key]}")
        elif action == "release":
            self.session.end_adjust()
        elif action == "cancel":
            self.session.cancel_adjust()
        elif len(parts) == 2:
            try:
                target = _target(parts[0])
            except ValueError as e:
                self._print(f"Error: {e}")
                return
            self._run(self.session.begin_adjust, target, parts[1])
        else:
            self._print("Usage: knob <position|amp> <name> | knob drag <pixels> "
                        "| knob release | knob cancel")

    def do_note(self, arg):
        """Set note: note <position|amp> [text]  (no text clears it)"""
        parts = arg.strip().split(maxsplit=1)
        if not parts:
            self._print("Usage: note <position|amp> [text]")
            return
        try:
            target = _target(parts[0])
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        self._run(self.session.set_note, target, parts[1] if len(parts) > 1 else None)

    def do_amp(self, arg):
        """Switch amplifier: amp <catalog id>"""
        if not arg.strip():
            self._print("Usage: amp <catalog id>")
            return
        if self._run(self.session.set_amplifier, arg.strip()):
            self.do_chain("")

    def do_channel(self, arg):
        """Pick amp channel: channel <name>"""
        amp = self.session.chain.amplifier
        if not arg.strip():
            self._print(f"  channels: {', '.join(amp.channels) or '(none)'}")
            return
        self._run(self.session.set_channel, arg.strip())

    def do_variant(self, arg):
        """Pick amp variant: variant <name>"""
        amp = self.session.chain.amplifier
        if not arg.strip():
            self._print(f"  variants: {', '.join(amp.variants) or '(none)'}")
            return
        self._run(self.session.set_variant, arg.strip())

    # -- history -------------------------------------------------------------

    def do_undo(self, arg):
        """Undo the last change."""
        if not self.session.can_undo():
            self._print("  Nothing to undo.")
            return
        self.session.undo()
        self.do_chain("")

    def do_redo(self, arg):
        """Redo the last undone change."""
        if not self.session.can_redo():
            self._print("  Nothing to redo.")
            return
        self.session.redo()
        self.do_chain("")

    # -- AI ------------------------------------------------------------------

    def do_critique(self, arg):
        """Ask for a one-pedal suggestion for the current chain."""
        if self.advisor is None:
            self._print("  AI features are disabled.")
            return
        self._print(f"  {self.session.critique(self.advisor)}")

    def do_blueprint(self, arg):
        """Ask for an arranged rig: blueprint [target tone]"""
        if self.advisor is None:
            self._print("  AI features are disabled.")
            return
        bp = self.session.request_blueprint(self.advisor, arg.strip())
        if bp is None:
            return
        self._print(f"  {bp.insight}")
        self._print(f"  pedals: {' -> '.join(bp.categories) or '(none)'}")
        self._print(f"  amp:    {bp.amp_brand or '(keep current)'}")
        self._print("  Type 'apply' to load this blueprint.")

    def do_apply(self, arg):
        """Replace the chain with the last blueprint (undoable)."""
        if self._run(self.session.apply_blueprint):
            self.do_chain("")

    # -- setups --------------------------------------------------------------

    def do_setups(self, arg):
        """List published setups."""
        if self.client is None:
            self._print("  No server configured.")
            return
        try:
            setups = self.client.list_setups()
        except ExternalServiceFailure as e:
            self._print(f"Error: {e}")
            return
        if not setups:
            self._print("  No setups published yet.")
        for s in setups:
            self._print(f"  {s.get('id') or '?':<20} {s.get('title') or '?'} - "
                        f"{s.get('artist') or '?'}  "
                        f"({len(s.get('chain') or [])} pedals, by {s.get('creator') or '?'})")

    def do_open(self, arg):
        """Start a new editing session from a published setup: open <setup id>"""
        if self.client is None:
            self._print("  No server configured.")
            return
        setup_id = arg.strip()
        try:
            setups = self.client.list_setups()
        except ExternalServiceFailure as e:
            self._print(f"Error: {e}")
            return
        for record in setups:
            if record.get("id") == setup_id:
                try:
                    session = EditorSession.from_record(record)
                except ToneShareError as e:
                    self._print(f"Error: cannot open '{setup_id}': {e}")
                    return
                self.session = session
                self.do_chain("")
                return
        self._print(f"Error: no setup '{setup_id}'")

    def do_publish(self, arg):
        """Publish: publish "<title>" "<artist>" [instrument] [genre] [tag ...]"""
        if self.client is None:
            self._print("  No server configured.")
            return
        try:
            parts = shlex.split(arg)
        except ValueError as e:
            self._print(f"Error: {e}")
            return
        if len(parts) < 2:
            self._print('Usage: publish "<title>" "<artist>" [instrument] [genre] [tag ...]')
            return
        meta = {}
        if len(parts) > 2:
            meta["instrument"] = parts[2]
        if len(parts) > 3:
            meta["genre"] = parts[3]
        if len(parts) > 4:
            meta["tags"] = parts[4:]
        try:
            setup_id = self.session.publish(self.client, self.user, parts[0], parts[1], **meta)
        except ToneShareError as e:
            self._print(f"Error: {e}")
            return
        if setup_id:
            self._print(f"  id: {setup_id}")

    # -- status --------------------------------------------------------------

    def do_deps(self, arg):
        """Check dependencies."""
        for name, ok in [("flask", HAS_FLASK), ("claude-agent-sdk", HAS_AGENT_SDK)]:
            self._print(f"  {name}: {'OK' if ok else 'MISSING'}")

    def do_quit(self, arg):
        """Exit the editor (unpublished changes are discarded)."""
        self.session.finish_adjust()
        return True

    do_exit = do_quit
    do_EOF = do_quit
