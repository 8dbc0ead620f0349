"""
Lifecycle table for serialized instances.

Every status change of an instance goes through ``ensure_transition``. The
table maps a (from, to) pair to the channel allowed to perform it; a pair
missing from the table is forbidden for everyone.

Channels:
    GENERIC: ``InstanceService.change_status``
    MAINTENANCE: ``InstanceService.send_to_maintenance`` / ``return_from_maintenance``
    ALLOCATION: binding and unbinding performed by the allocation engine
"""

from enum import StrEnum

from rentory.core.exceptions import errors
from rentory.domain.enums import InstanceStatus


class TransitionChannel(StrEnum):
    GENERIC = "generic"
    MAINTENANCE = "maintenance"
    ALLOCATION = "allocation"


_S = InstanceStatus
_C = TransitionChannel

TRANSITIONS: dict[tuple[InstanceStatus, InstanceStatus], TransitionChannel] = {
    # allocation engine
    (_S.AVAILABLE, _S.RESERVED): _C.ALLOCATION,
    (_S.RESERVED, _S.AVAILABLE): _C.ALLOCATION,
    (_S.IN_DELIVERY, _S.AVAILABLE): _C.ALLOCATION,
    (_S.IN_USE, _S.AVAILABLE): _C.ALLOCATION,
    (_S.IN_RETURN, _S.AVAILABLE): _C.ALLOCATION,
    # maintenance
    (_S.AVAILABLE, _S.IN_MAINTENANCE): _C.MAINTENANCE,
    (_S.OUT_OF_SERVICE, _S.IN_MAINTENANCE): _C.MAINTENANCE,
    (_S.IN_MAINTENANCE, _S.AVAILABLE): _C.MAINTENANCE,
    # rental flow of a bound instance
    (_S.RESERVED, _S.IN_DELIVERY): _C.GENERIC,
    (_S.IN_DELIVERY, _S.IN_USE): _C.GENERIC,
    (_S.IN_USE, _S.IN_RETURN): _C.GENERIC,
    # recovery of retired units
    (_S.OUT_OF_SERVICE, _S.AVAILABLE): _C.GENERIC,
    (_S.LOST, _S.AVAILABLE): _C.GENERIC,
    (_S.OUT_OF_SERVICE, _S.LOST): _C.GENERIC,
    (_S.LOST, _S.OUT_OF_SERVICE): _C.GENERIC,
}

# NOTE: any non retired state may be retired through a generic change
for _status in InstanceStatus:
    if _status not in InstanceStatus.retired_states():
        TRANSITIONS[(_status, _S.OUT_OF_SERVICE)] = _C.GENERIC
        TRANSITIONS[(_status, _S.LOST)] = _C.GENERIC

_DEDICATED_OPERATIONS: dict[TransitionChannel, str] = {
    _C.MAINTENANCE: "send_to_maintenance / return_from_maintenance",
    _C.ALLOCATION: "allocate / release",
}


def channel_for(current: InstanceStatus | str, target: InstanceStatus | str) -> TransitionChannel | None:
    """Return the channel owning the transition, or None when it is forbidden."""
    return TRANSITIONS.get((InstanceStatus(current), InstanceStatus(target)))


def is_allowed(current: InstanceStatus | str, target: InstanceStatus | str, channel: TransitionChannel) -> bool:
    return channel_for(current, target) == channel


def ensure_transition(
    current: InstanceStatus | str,
    target: InstanceStatus | str,
    channel: TransitionChannel,
) -> None:
    """
    Check a status change against the lifecycle table.

    Raises:
        InvalidStateTransitionError: If the pair is forbidden, or is owned by a
            different channel (the error names the operation to use instead).
    """
    current, target = InstanceStatus(current), InstanceStatus(target)
    owner = channel_for(current, target)

    if owner == channel:
        return

    if current == target:
        detail = f"Instance is already {current}"
    elif owner is None:
        detail = f"Cannot change status from {current} to {target}"
    else:
        detail = (
            f"Cannot change status from {current} to {target} through {channel} operations, "
            f"use {_DEDICATED_OPERATIONS.get(owner, owner)} instead"
        )

    raise errors.InvalidStateTransitionError(current_status=current, target_status=target, detail=detail)


def allowed_targets(current: InstanceStatus | str, channel: TransitionChannel) -> list[InstanceStatus]:
    """States reachable from ``current`` through ``channel``, in declaration order."""
    current = InstanceStatus(current)
    return [target for (source, target), owner in TRANSITIONS.items() if source == current and owner == channel]
