"""Setup records -- convert chains to and from plain transport dicts.

A record uses the field names of the persistence API:

  - Per-pedal: id, name, brand, type, color, icon, settings, notes, isBypassed
  - Amplifier: the same plus channels/activeChannel and variants/activeVariant
  - Setup: id, title, artist, creator_id, creator, creatorAvatar, instrument,
    genre, tags, coverImage, chain, amplifier

Records are JSON-serialisable so they can be posted as-is.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from toneshare import chain as ops
from toneshare.errors import RecordError
from toneshare.models import INSTRUMENTS, Amplifier, Chain, Pedal, User, clamp_value


logger = logging.getLogger(__name__)


# ===========================================================================
# Component helpers
# ===========================================================================

def _settings(raw) -> dict:
    """Keep numeric settings only, clamped into range."""
    if not isinstance(raw, dict):
        raise RecordError("settings must be an object")
    settings = {}
    for name, value in raw.items():
        try:
            settings[str(name)] = clamp_value(value)
        except ValueError:
            logger.warning("[Records] dropping setting '%s' = %r", name, value)
    return settings


def pedal_to_record(pedal: Pedal) -> dict:
    return {
        "id": pedal.id,
        "name": pedal.name,
        "brand": pedal.brand,
        "type": pedal.type,
        "color": pedal.color,
        "icon": pedal.icon,
        "settings": dict(pedal.settings),
        "notes": pedal.notes,
        "isBypassed": pedal.bypassed,
    }


def pedal_from_record(data: dict) -> Pedal:
    try:
        return Pedal(
            id=str(data["id"]),
            name=str(data["name"]),
            brand=str(data.get("brand", "")),
            type=str(data["type"]),
            color=str(data.get("color", "")),
            icon=str(data.get("icon", "")),
            settings=_settings(data.get("settings", {})),
            notes=data.get("notes") or None,
            bypassed=bool(data.get("isBypassed", False)),
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise RecordError(f"invalid pedal record: {e}") from e


def amplifier_to_record(amp: Amplifier) -> dict:
    data = {
        "id": amp.id,
        "name": amp.name,
        "brand": amp.brand,
        "color": amp.color,
        "settings": dict(amp.settings),
        "notes": amp.notes,
        "isBypassed": amp.bypassed,
    }
    if amp.channels:
        data["channels"] = list(amp.channels)
        data["activeChannel"] = amp.active_channel
    if amp.variants:
        data["variants"] = list(amp.variants)
        data["activeVariant"] = amp.active_variant
    return data


def amplifier_from_record(data: dict) -> Amplifier:
    try:
        channels = tuple(data.get("channels") or ())
        variants = tuple(data.get("variants") or ())
        active_channel = data.get("activeChannel")
        active_variant = data.get("activeVariant")
        return Amplifier(
            id=str(data["id"]),
            name=str(data["name"]),
            brand=str(data.get("brand", "")),
            color=str(data.get("color", "")),
            settings=_settings(data.get("settings", {})),
            notes=data.get("notes") or None,
            bypassed=bool(data.get("isBypassed", False)),
            channels=channels,
            active_channel=active_channel if active_channel in channels else
            (channels[0] if channels else None),
            variants=variants,
            active_variant=active_variant if active_variant in variants else
            (variants[0] if variants else None),
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise RecordError(f"invalid amplifier record: {e}") from e


# ===========================================================================
# Chains
# ===========================================================================

def chain_to_record(chain: Chain) -> dict:
    return {
        "chain": [pedal_to_record(p) for p in chain.pedals],
        "amplifier": amplifier_to_record(chain.amplifier) if chain.amplifier else None,
    }


def chain_from_record(record: dict) -> Chain:
    """Rebuild a chain from a record.

    Malformed pedal entries are skipped and reported; a missing amplifier is
    replaced by a fresh default one so the chain always has exactly one amp.
    """
    entries = record.get("chain") or []
    if not isinstance(entries, list):
        raise RecordError("chain must be a list of pedals")
    errors = []
    pedals = []
    for idx, entry in enumerate(entries):
        try:
            pedals.append(pedal_from_record(entry))
        except RecordError as e:
            errors.append(f"pedal {idx + 1}: {e}")

    amp_data = record.get("amplifier")
    if amp_data:
        amp = amplifier_from_record(amp_data)
    else:
        amp = ops.default_amplifier()

    if errors:
        logger.warning("[Records] Loaded '%s' with %d error(s):",
                       record.get("title", "?"), len(errors))
        for err in errors:
            logger.warning("  - %s", err)

    return Chain(tuple(pedals), amp)


def setup_record(chain: Chain, user: User, title: str, artist: str,
                 instrument: str = "Electric Guitar", genre: str = "",
                 tags: Optional[list[str]] = None, cover_image: str = "",
                 setup_id: Optional[str] = None) -> dict:
    """Build the full publish payload for a chain."""
    if not title or not artist:
        raise RecordError("title and artist are required")
    if instrument not in INSTRUMENTS:
        raise RecordError(f"unknown instrument '{instrument}'")
    record = {
        "id": setup_id or f"setup-{uuid.uuid4().hex[:12]}",
        "title": title,
        "artist": artist,
        "creator_id": user.id,
        "creator": user.name,
        "creatorAvatar": user.avatar,
        "instrument": instrument,
        "genre": genre,
        "tags": list(tags or []),
        "coverImage": cover_image,
    }
    record.update(chain_to_record(chain))
    return record
