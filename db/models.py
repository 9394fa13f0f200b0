# WORKFLOW: Database models for the FIAS destination schema.
# Used by: Ingestion, full-address refresh, lexeme index builder
# Models represent:
# 1. rdev___fias_addrobj - Address objects with their derived full address and search lexemes
#
# Other FIAS tables share the rdev___fias_ prefix and are reflected from the
# store when imported (see destination_table_name()).
#
# Data flow: XML attributes -> AddressObject row -> fulladdress -> fulladdress_search

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

TABLE_PREFIX = "rdev___fias_"
ADDRESS_TABLE = "ADDROBJ"

RECORD_STATE_ACTIVE = 1


def destination_table_name(logical_name: str) -> str:
    """Destination table for a logical FIAS table name, e.g. ADDROBJ -> rdev___fias_addrobj."""
    return f"{TABLE_PREFIX}{logical_name.lower()}"


class AddressObject(Base):
    __tablename__ = destination_table_name(ADDRESS_TABLE)

    # Record bookkeeping
    recid = Column(String(36), primary_key=True)
    recstate = Column(Integer, nullable=False, default=RECORD_STATE_ACTIVE)
    reccreated = Column(DateTime(timezone=True), nullable=False)
    recupdated = Column(DateTime(timezone=True), nullable=False)

    # FIAS ADDROBJ attributes, kept as delivered
    aoid = Column(String(36))
    aoguid = Column(String(36), nullable=False)
    parentguid = Column(String(36))
    previd = Column(String(36))
    nextid = Column(String(36))
    formalname = Column(String(120))
    offname = Column(String(120))
    shortname = Column(String(10))
    aolevel = Column(String(10))
    regioncode = Column(String(2))
    autocode = Column(String(1))
    areacode = Column(String(3))
    citycode = Column(String(3))
    ctarcode = Column(String(3))
    placecode = Column(String(3))
    plancode = Column(String(4))
    streetcode = Column(String(4))
    extrcode = Column(String(4))
    sextcode = Column(String(3))
    code = Column(String(17))
    plaincode = Column(String(15))
    postalcode = Column(String(6))
    ifnsfl = Column(String(4))
    terrifnsfl = Column(String(4))
    ifnsul = Column(String(4))
    terrifnsul = Column(String(4))
    okato = Column(String(11))
    oktmo = Column(String(11))
    cadnum = Column(String(100))
    divtype = Column(String(1))
    normdoc = Column(String(36))
    actstatus = Column(String(2))
    livestatus = Column(String(2))
    centstatus = Column(String(2))
    operstatus = Column(String(2))
    currstatus = Column(String(2))
    startdate = Column(String(10))
    enddate = Column(String(10))
    updatedate = Column(String(10))

    # Derived attributes
    fulladdress = Column(Text, nullable=True)
    fulladdress_search = Column(Text, nullable=True)

    __table_args__ = (
        Index('idx_addrobj_aoguid', 'aoguid'),
        Index('idx_addrobj_recstate', 'recstate'),
    )
