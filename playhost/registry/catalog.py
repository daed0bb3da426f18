"""Built-in catalog of known session kinds."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from playhost.api.registry import (
    DisplayMetadata,
    ImplementationStatus,
    RegistryDescriptor,
    SessionConstructor,
)
from playhost.api.session import Presentation, SessionHost, SessionPort, SessionSettings
from playhost.session.kinds import RelabeledSession, TapSession

if TYPE_CHECKING:
    from playhost.registry.module_registry import ModuleRegistry

_LOG = logging.getLogger("playhost.registry")


class KnownSessionKind(StrEnum):
    CUTE_TAP = "cute_tap"
    MEMORY_MATCH = "memory_match"
    QUICK_DODGE = "quick_dodge"
    TIMING_PERFECT = "timing_perfect"
    COLLECT_ITEMS = "collect_items"
    JUMP_ADVENTURE = "jump_adventure"
    FRIENDLY_SHOOT = "friendly_shoot"
    ANIMAL_CHASE = "animal_chase"
    RAINBOW_MATCH = "rainbow_match"
    PUZZLE_PRINCESS = "puzzle_princess"
    SPEED_FRIEND = "speed_friend"
    SPOT_DIFFERENCE = "spot_difference"
    OPPOSITE_ACTION = "opposite_action"
    COUNT_STAR = "count_star"
    NUMBER_HUNT = "number_hunt"
    ORDER_MASTER = "order_master"
    SIZE_PERFECT = "size_perfect"
    DREAMY_JUMP = "dreamy_jump"
    MAGICAL_COLLECT = "magical_collect"
    BALANCE_GAME = "balance_game"


# kind -> (name, description, instruction, category, duration, target)
_CATALOG: dict[KnownSessionKind, tuple[str, str, str, str, float, int]] = {
    KnownSessionKind.CUTE_TAP: (
        "Cute Tap",
        "Tap the character to rack up points!",
        "Tap the character\nto collect magic!",
        "action",
        10,
        30,
    ),
    KnownSessionKind.MEMORY_MATCH: (
        "Memory Match",
        "Find the pairs with the same picture!",
        "Flip the cards and\nfind matching pictures!",
        "puzzle",
        30,
        8,
    ),
    KnownSessionKind.QUICK_DODGE: (
        "Quick Dodge",
        "Keep dodging the falling obstacles!",
        "Swipe to move and\ndodge the obstacles!",
        "action",
        15,
        10,
    ),
    KnownSessionKind.TIMING_PERFECT: (
        "Perfect Timing",
        "Tap at just the right moment!",
        "Tap when the needle\nhits the sweet spot!",
        "timing",
        20,
        5,
    ),
    KnownSessionKind.COLLECT_ITEMS: (
        "Item Collect",
        "Collect items to reach the goal!",
        "Drag to gather\nthe items!",
        "action",
        15,
        20,
    ),
    KnownSessionKind.JUMP_ADVENTURE: (
        "Jump Adventure",
        "Jump over the gaps and reach the goal!",
        "Tap to jump\nover the gaps!",
        "action",
        20,
        1,
    ),
    KnownSessionKind.FRIENDLY_SHOOT: (
        "Friendly Shoot",
        "Turn enemies into friends with love shots!",
        "Tap to fire love shots\nand make friends!",
        "action",
        25,
        10,
    ),
    KnownSessionKind.ANIMAL_CHASE: (
        "Animal Chase",
        "Gently chase the animals!",
        "Trace a line to\ngently catch the animals!",
        "action",
        30,
        5,
    ),
    KnownSessionKind.RAINBOW_MATCH: (
        "Rainbow Match",
        "Tap the moment the color changes!",
        "Tap as soon as the\nrequested color appears!",
        "reaction",
        15,
        10,
    ),
    KnownSessionKind.PUZZLE_PRINCESS: (
        "Puzzle Princess",
        "Finish the puzzle and rescue the princess!",
        "Drag the pieces to\ncomplete the picture!",
        "puzzle",
        60,
        1,
    ),
    KnownSessionKind.SPEED_FRIEND: (
        "Speed Friend",
        "Answer the friend quiz quickly!",
        "Answer the questions\nabout your friends fast!",
        "reaction",
        20,
        10,
    ),
    KnownSessionKind.SPOT_DIFFERENCE: (
        "Spot the Difference",
        "Find the differences between two pictures!",
        "Compare the pictures and\ntap the differences!",
        "puzzle",
        45,
        3,
    ),
    KnownSessionKind.OPPOSITE_ACTION: (
        "Opposite Action",
        "Do the opposite of what you are told!",
        "Do the opposite\nof the instruction!",
        "reaction",
        20,
        10,
    ),
    KnownSessionKind.COUNT_STAR: (
        "Count Star",
        "Count the stars in the night sky!",
        "Count the stars and\ntap the right number!",
        "puzzle",
        15,
        5,
    ),
    KnownSessionKind.NUMBER_HUNT: (
        "Number Hunt",
        "Find the hidden numbers!",
        "Work out the answer\nand tap it!",
        "puzzle",
        30,
        5,
    ),
    KnownSessionKind.ORDER_MASTER: (
        "Order Master",
        "Put things in the right order!",
        "Drag the items into\nthe right order!",
        "puzzle",
        40,
        3,
    ),
    KnownSessionKind.SIZE_PERFECT: (
        "Size Perfect",
        "Stop right at the requested size!",
        "Tap when the growing circle\nreaches the size!",
        "timing",
        25,
        5,
    ),
    KnownSessionKind.DREAMY_JUMP: (
        "Dreamy Jump",
        "Hop across the clouds into dreamland!",
        "Jump from cloud to cloud\nand explore the dream!",
        "action",
        30,
        20,
    ),
    KnownSessionKind.MAGICAL_COLLECT: (
        "Magical Collect",
        "Gather the magic items!",
        "Drag the magic ingredients\nto finish the spell!",
        "action",
        20,
        15,
    ),
    KnownSessionKind.BALANCE_GAME: (
        "Balance Game",
        "Keep your balance and don't drop it!",
        "Tilt the device and\nkeep the ball on!",
        "timing",
        30,
        1,
    ),
}


def display_for(kind: KnownSessionKind) -> DisplayMetadata:
    name, description, instruction, category, _, _ = _CATALOG[kind]
    return DisplayMetadata(
        name=name,
        description=description,
        instruction=instruction,
        category=category,
    )


def default_settings_for(kind: KnownSessionKind) -> SessionSettings:
    _, _, _, _, duration, target = _CATALOG[kind]
    return SessionSettings(duration_seconds=float(duration), target_score=target)


def tap_constructor(host: SessionHost, settings: SessionSettings) -> SessionPort:
    return TapSession(host, settings)


def customized_fallback(display: DisplayMetadata) -> SessionConstructor:
    """Constructor running the tap session under another kind's name."""
    presentation = Presentation(name=display.name, instruction=display.instruction)

    def construct(host: SessionHost, settings: SessionSettings) -> SessionPort:
        _LOG.info("customized_fallback name=%s", display.name)
        return RelabeledSession(TapSession(host, settings), presentation)

    return construct


def build_descriptor(kind: KnownSessionKind) -> RegistryDescriptor:
    display = display_for(kind)
    if kind is KnownSessionKind.CUTE_TAP:
        return RegistryDescriptor(
            id=kind.value,
            display=display,
            default_settings=default_settings_for(kind),
            constructor=tap_constructor,
            implementation_status=ImplementationStatus.IMPLEMENTED,
        )
    return RegistryDescriptor(
        id=kind.value,
        display=display,
        default_settings=default_settings_for(kind),
        constructor=customized_fallback(display),
        implementation_status=ImplementationStatus.FALLBACK,
    )


def register_default_descriptors(registry: ModuleRegistry) -> None:
    """Register every known kind; safe to call on a populated registry."""
    for kind in KnownSessionKind:
        registry.register(build_descriptor(kind))
    _LOG.info("catalog_registered count=%d", len(KnownSessionKind))
