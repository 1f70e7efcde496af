"""
Business identifier formats.

Patients get a timestamp/random id (``P`` + 9 digits). Appointments and
encounters get a per-day sequence (``APT20241201003``, ``ENC202412010001``)
whose counter lives in the ``identifier_sequences`` table; see
:class:`app.repositories.sequence_repo.SequenceRepository`.
"""

import random
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from app.core.utils import utcnow


PATIENT_ID_PATTERN = re.compile(r"^P\d{9}$")


def generate_patient_id(
    now: Optional[datetime] = None, rng: Optional[random.Random] = None
) -> str:
    """
    ``P`` + last 6 digits of epoch milliseconds + 3-digit random suffix.

    Uniqueness is enforced by the ``patients.patient_id`` unique constraint,
    not by a lookup here.
    """
    now = now or utcnow()
    rng = rng or random
    millis = str(int(now.timestamp() * 1000)).zfill(6)
    return f"P{millis[-6:]}{rng.randint(0, 999):03d}"


@dataclass(frozen=True)
class DailySequenceFormat:
    """``<prefix><YYYYMMDD><sequence>`` with the sequence zero-padded to ``width``.

    Sequences beyond ``10**width - 1`` keep growing in length instead of
    wrapping, so ``APT202412011000`` follows ``APT20241201999``.
    """

    prefix: str
    width: int

    def scope(self, day: date) -> str:
        return f"{self.prefix}{day.strftime('%Y%m%d')}"

    def format(self, day: date, sequence: int) -> str:
        if sequence < 1:
            raise ValueError("Sequence numbers start at 1")
        return f"{self.scope(day)}{sequence:0{self.width}d}"

    def parse(self, identifier: str, day: date) -> Optional[int]:
        scope = self.scope(day)
        if not identifier or not identifier.startswith(scope):
            return None
        suffix = identifier[len(scope):]
        if not suffix.isdigit():
            return None
        return int(suffix)


APPOINTMENT_ID = DailySequenceFormat(prefix="APT", width=3)
ENCOUNTER_ID = DailySequenceFormat(prefix="ENC", width=4)


def today_utc() -> date:
    return utcnow().date()
