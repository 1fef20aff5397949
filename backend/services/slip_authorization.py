"""
Slip Authorization - dual signature (director + owner)

draft --sign(director)--> draft
draft --sign(owner)-----> draft
both slots filled ------> authorized   (only path to authorized)
authorized --issue()----> issued       (terminal)

- each role signs at most once; a second signature is rejected, never merged
- the passphrase is hashed and stored as a personal confirmation, it is not
  checked against any shared secret
- slot writes are conditional on the slot still being empty; the second
  signature and the promotion to authorized are one write
"""
import logging
from typing import Optional
from database import db
from models.slip_gaji import SIGNER_LABELS, SignatureSlot, SignerRole, SlipStatus
from utils.auth import hash_passphrase
from utils.dates import to_iso, utc_now
from utils.error_codes import (
    AlreadyIssued, AlreadySigned, InvalidPassphrase, InvalidState,
    SlipNotFound, UnauthorizedSigner,
)

logger = logging.getLogger(__name__)

PASSPHRASE_MIN_LENGTH = 4
SIGN_ATTEMPTS = 3


def resolve_signer_role(user_role: Optional[str]) -> SignerRole:
    try:
        return SignerRole(user_role)
    except ValueError:
        raise UnauthorizedSigner()


def validate_passphrase(passphrase: Optional[str]) -> str:
    if not passphrase or len(passphrase) < PASSPHRASE_MIN_LENGTH:
        raise InvalidPassphrase()
    return passphrase


def signature_state(slip: dict) -> dict:
    """Which roles have signed, without the hashes."""
    auth = slip.get("authorization") or {}
    state = {}
    for role in SignerRole:
        slot = auth.get(role.value)
        state[role.value] = {
            "signed": bool(slot),
            "signer_id": slot.get("signer_id") if slot else None,
            "signer_name": slot.get("signer_name") if slot else None,
            "signed_at": slot.get("signed_at") if slot else None,
        }
    return state


def public_slip(slip: dict) -> dict:
    """Slip as returned by the API: passphrase hashes removed."""
    out = dict(slip)
    out["authorization"] = {
        role: {k: v for k, v in slot.items() if k != "passphrase_hash"} if slot else None
        for role, slot in (slip.get("authorization") or {}).items()
    }
    out["signatures"] = signature_state(slip)
    return out


def _already_signed(role: SignerRole) -> AlreadySigned:
    label_en, label_id = SIGNER_LABELS[role]
    return AlreadySigned(
        f"{label_en} has already signed this slip",
        f"{label_id} sudah menandatangani slip ini"
    )


async def _load(slip_id: str) -> dict:
    slip = await db.payroll_slips.find_one({"id": slip_id}, {"_id": 0})
    if not slip:
        raise SlipNotFound()
    return slip


def _check_signable(slip: dict, role: SignerRole):
    if slip.get("status") == SlipStatus.ISSUED.value:
        raise AlreadyIssued()
    if (slip.get("authorization") or {}).get(role.value):
        raise _already_signed(role)
    if slip.get("status") != SlipStatus.DRAFT.value:
        raise InvalidState()


async def sign_slip(slip_id: str, user_role: str, passphrase: Optional[str], signer: dict) -> dict:
    """
    Record one signature. signer is the authenticated user
    ({user_id, full_name}); its role decides the slot.

    The slot and, when the other role has already signed, the promotion to
    authorized are written in one conditional update, so a failed call
    leaves the slip exactly as it was.
    """
    role = resolve_signer_role(user_role)
    passphrase = validate_passphrase(passphrase)
    other = SignerRole.OWNER if role == SignerRole.DIRECTOR else SignerRole.DIRECTOR

    slip = await _load(slip_id)
    _check_signable(slip, role)

    now = to_iso(utc_now())
    slot = SignatureSlot(
        passphrase_hash=hash_passphrase(passphrase),
        signer_id=signer.get("user_id"),
        signer_name=signer.get("full_name") or "",
        signed_at=now,
    ).model_dump()

    slot_path = f"authorization.{role.value}"
    other_path = f"authorization.{other.value}"
    signed_entry = {
        "from_status": SlipStatus.DRAFT.value,
        "to_status": SlipStatus.DRAFT.value,
        "actor": signer.get("user_id"),
        "timestamp": now,
        "note": f"Signed by {role.value}",
    }
    authorized_entry = {
        "from_status": SlipStatus.DRAFT.value,
        "to_status": SlipStatus.AUTHORIZED.value,
        "actor": signer.get("user_id"),
        "timestamp": now,
        "note": "Director and owner signed",
    }

    for attempt in range(SIGN_ATTEMPTS):
        completes = bool((slip.get("authorization") or {}).get(other.value))
        query = {"id": slip_id, "status": SlipStatus.DRAFT.value, slot_path: None}
        if completes:
            query[other_path] = {"$ne": None}
            update = {
                "$set": {slot_path: slot, "status": SlipStatus.AUTHORIZED.value},
                "$push": {"status_history": {"$each": [signed_entry, authorized_entry]}},
            }
        else:
            query[other_path] = None
            update = {
                "$set": {slot_path: slot},
                "$push": {"status_history": signed_entry},
            }

        result = await db.payroll_slips.update_one(query, update)
        if result.modified_count:
            break

        # lost a race: report what is there now, or retry against it
        logger.warning(f"Concurrent change on slip {slip_id} while signing as {role.value} ({attempt + 1})")
        slip = await _load(slip_id)
        _check_signable(slip, role)
    else:
        raise InvalidState()

    logger.info(f"Slip {slip_id} signed by {role.value} ({signer.get('user_id')})")
    if completes:
        logger.info(f"Slip {slip_id} authorized")

    return await _load(slip_id)


async def issue_slip(slip_id: str, actor: dict, note: str = "") -> dict:
    """authorized → issued, one way."""
    now = to_iso(utc_now())
    result = await db.payroll_slips.update_one(
        {"id": slip_id, "status": SlipStatus.AUTHORIZED.value},
        {
            "$set": {
                "status": SlipStatus.ISSUED.value,
                "issued_by": actor.get("user_id"),
                "issued_at": now,
            },
            "$push": {"status_history": {
                "from_status": SlipStatus.AUTHORIZED.value,
                "to_status": SlipStatus.ISSUED.value,
                "actor": actor.get("user_id"),
                "timestamp": now,
                "note": note or "Slip issued",
            }},
        }
    )
    if result.modified_count == 0:
        slip = await _load(slip_id)
        if slip.get("status") == SlipStatus.ISSUED.value:
            raise AlreadyIssued()
        raise InvalidState(
            "Only authorized slips can be issued",
            "Hanya slip yang sudah diotorisasi yang dapat diterbitkan"
        )

    logger.info(f"Slip {slip_id} issued by {actor.get('user_id')}")
    return await _load(slip_id)
