"""Picks the device family for a discovered holder.

A MAC prefix hit outweighs a name hit, and a family with its own command table
outranks the base family once anything matched at all.
"""

from __future__ import annotations

from iqosctl.core.model import DetectedDevice, Family, FamilyKind

MAC_PREFIX_WEIGHT = 4
NAME_TOKEN_WEIGHT = 2
SPECIALISED_KIND_WEIGHT = 1


def match_score(device: DetectedDevice, family: Family) -> int:
    rules = family.match
    mac = device.mac.upper()
    name = device.name.casefold()

    score = 0
    if any(mac.startswith(prefix) for prefix in rules.mac_prefix):
        score += MAC_PREFIX_WEIGHT
    if any(token.casefold() in name for token in rules.name_contains):
        score += NAME_TOKEN_WEIGHT
    if score and family.kind is not FamilyKind.BASE:
        score += SPECIALISED_KIND_WEIGHT
    return score


def best_family_for_device(device: DetectedDevice, families: dict[str, Family]) -> Family | None:
    scored = [(match_score(device, family), family) for family in families.values()]
    matched = [item for item in scored if item[0] > 0]
    if not matched:
        return None
    return max(matched, key=lambda item: item[0])[1]
