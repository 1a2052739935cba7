"""
db/models/signal_type.py

Signal type lookup used to classify catalog points (analog value, flag, ...).
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


@dataclass(frozen=True)
class SignalTypeInfo:
    """
    Detached signal type details cached by the loader at initialization.
    """

    id: int
    acronym: str
    name: str
    suffix: str


# Seed rows; also the fallback when the lookup table has no matching row.
KNOWN_SIGNAL_TYPES: dict[str, SignalTypeInfo] = {
    info.acronym: info
    for info in (
        SignalTypeInfo(id=1, acronym="IPHM", name="Current Magnitude", suffix="PM"),
        SignalTypeInfo(id=2, acronym="IPHA", name="Current Phase Angle", suffix="PA"),
        SignalTypeInfo(id=3, acronym="VPHM", name="Voltage Magnitude", suffix="PM"),
        SignalTypeInfo(id=4, acronym="VPHA", name="Voltage Phase Angle", suffix="PA"),
        SignalTypeInfo(id=5, acronym="FREQ", name="Frequency", suffix="FQ"),
        SignalTypeInfo(id=6, acronym="DFDT", name="Frequency Delta (dF/dt)", suffix="DF"),
        SignalTypeInfo(id=7, acronym="ALOG", name="Analog Value", suffix="AV"),
        SignalTypeInfo(id=8, acronym="FLAG", name="Status Flags", suffix="SF"),
        SignalTypeInfo(id=9, acronym="DIGI", name="Digital Value", suffix="DV"),
        SignalTypeInfo(id=10, acronym="CALC", name="Calculated Value", suffix="CV"),
        SignalTypeInfo(id=11, acronym="STAT", name="Statistic", suffix="ST"),
        SignalTypeInfo(id=12, acronym="ALRM", name="Alarm", suffix="AL"),
        SignalTypeInfo(id=13, acronym="QUAL", name="Quality Flags", suffix="QF"),
    )
}

DEFAULT_SIGNAL_TYPE = "ALOG"


class SignalType(Base):
    __tablename__ = "signal_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    acronym: Mapped[str] = mapped_column(String(4), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    suffix: Mapped[str] = mapped_column(String(2), nullable=False)

    def to_info(self) -> SignalTypeInfo:
        return SignalTypeInfo(id=self.id, acronym=self.acronym, name=self.name, suffix=self.suffix)
