"""
actions.py - Batched vault commands

A batch is a list of opcodes plus one argument blob per opcode. Blobs are
ABI-style: each argument is one 32-byte big-endian word, booleans are 0/1
and timestamps are unix seconds.

    blob = encode_args(42, 1000 * 10**18, True)
    vault.do_actions("alice", [ActionCode.BORROW], [blob])
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, List, Sequence, Tuple

from .core import InvalidAction

WORD_SIZE = 32
MAX_UINT = 2 ** 256 - 1

# Repay everything owed
REPAY_ALL = MAX_UINT


class ActionCode(IntEnum):
    BORROW = 0
    REPAY = 1
    CLOSE_POSITION = 2
    REPURCHASE = 3
    UNLOCK_JPEG = 101
    APPLY_TRAIT_BOOST = 102


ARG_LAYOUTS: Dict[ActionCode, Tuple[str, ...]] = {
    ActionCode.BORROW: ("uint", "uint", "bool"),
    ActionCode.REPAY: ("uint", "uint"),
    ActionCode.CLOSE_POSITION: ("uint",),
    ActionCode.REPURCHASE: ("uint",),
    ActionCode.UNLOCK_JPEG: ("uint",),
    ActionCode.APPLY_TRAIT_BOOST: ("uint", "time"),
}


@dataclass(frozen=True, slots=True)
class Action:
    code: ActionCode
    args: Tuple[Any, ...]


def to_unix(moment: datetime) -> int:
    """Naive ledger times are UTC."""
    return int(moment.replace(tzinfo=timezone.utc).timestamp())


def from_unix(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, timezone.utc).replace(tzinfo=None)


def encode_args(*values: Any) -> bytes:
    """Encode ints, bools and datetimes as consecutive 32-byte words."""
    words = []
    for value in values:
        if isinstance(value, bool):
            word = int(value)
        elif isinstance(value, datetime):
            word = to_unix(value)
        elif isinstance(value, int):
            word = value
        else:
            raise TypeError(f"Cannot encode {type(value).__name__} as an action argument")
        if not 0 <= word <= MAX_UINT:
            raise ValueError(f"Argument {value!r} does not fit in a uint256 word")
        words.append(word.to_bytes(WORD_SIZE, "big"))
    return b"".join(words)


def decode_args(code: ActionCode, blob: bytes) -> Tuple[Any, ...]:
    """
    Decode a blob against the layout of `code`.

    Raises:
        InvalidAction: If the blob length or a boolean word is malformed.
    """
    layout = ARG_LAYOUTS[code]
    if len(blob) != WORD_SIZE * len(layout):
        raise InvalidAction(int(code))
    args: List[Any] = []
    for i, kind in enumerate(layout):
        word = int.from_bytes(blob[i * WORD_SIZE:(i + 1) * WORD_SIZE], "big")
        if kind == "bool":
            if word not in (0, 1):
                raise InvalidAction(int(code))
            args.append(bool(word))
        elif kind == "time":
            try:
                args.append(from_unix(word))
            except (OverflowError, OSError, ValueError):
                raise InvalidAction(int(code)) from None
        else:
            args.append(word)
    return tuple(args)


def parse_actions(opcodes: Sequence[int], blobs: Sequence[bytes]) -> List[Action]:
    """
    Turn parallel opcode/blob lists into Actions.

    Raises:
        InvalidAction: On mismatched lengths, unknown opcodes or bad blobs.
    """
    if len(opcodes) != len(blobs):
        raise InvalidAction(-1)
    actions = []
    for opcode, blob in zip(opcodes, blobs):
        try:
            code = ActionCode(opcode)
        except ValueError:
            raise InvalidAction(opcode) from None
        actions.append(Action(code, decode_args(code, blob)))
    return actions
