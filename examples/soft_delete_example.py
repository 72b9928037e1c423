#!/usr/bin/env python3
"""
Soft Delete Example - Paranoia Toolkit

Demonstrates the soft delete lifecycle:
- Destroying and restoring records
- Visibility scopes over destroyed rows
- Destroy hooks with a veto
- Purging long-destroyed rows
"""

from datetime import datetime, timedelta

import pytz
from sqlalchemy import Boolean, Column, Integer, String, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from paranoia_toolkit import SoftDeleteMixin, SoftDeleteService, Visibility
from paranoia_toolkit.soft_delete import DestroyVetoed, hooks, with_visibility

Base = declarative_base()


class Invoice(Base, SoftDeleteMixin):
    """Invoice with soft delete capability."""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    number = Column(String, nullable=False)
    customer = Column(String)
    locked = Column(Boolean, default=False)


@hooks.listens_for(Invoice, "before_destroy")
def refuse_locked(invoice: Invoice) -> bool:
    """Locked invoices cannot be destroyed."""
    return not invoice.locked


def demonstrate_soft_delete() -> None:
    """Show soft delete functionality."""
    print("Soft Delete Example\n")

    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    service = SoftDeleteService(session)

    # 1. Create test data
    print("1. Creating Test Data:")
    session.add_all(
        [
            Invoice(number="INV-001", customer="Acme"),
            Invoice(number="INV-002", customer="Acme"),
            Invoice(number="INV-003", customer="Globex", locked=True),
        ]
    )
    session.commit()
    print(f"  Created {Invoice.count(session)} invoices\n")

    # 2. Destroy a single record
    print("2. Destroying a Record:")
    first = Invoice.find_by_id(session, 1)
    first.destroy()
    session.commit()
    print(f"  Destroyed {first.number} at {first.deleted_at}")
    print(f"  Visible invoices: {Invoice.count(session)}")
    print(f"  Including destroyed: {Invoice.count_with_destroyed(session)}\n")

    # 3. Scopes
    print("3. Visibility Scopes:")
    with Invoice.with_only_destroyed_scope(session):
        print(f"  Destroyed: {[i.number for i in Invoice.find(session)]}")
    with Invoice.scoped(session, Invoice.customer == "Acme"):
        print(f"  Acme, visible: {[i.number for i in Invoice.find(session)]}")
        with Invoice.with_destroyed_scope(session):
            print(f"  Acme, all: {[i.number for i in Invoice.find(session)]}")
    stmt = with_visibility(select(Invoice), Visibility.WITH_DESTROYED)
    print(f"  Per statement: {len(session.scalars(stmt).all())} rows\n")

    # 4. Hooks
    print("4. Destroy Hooks:")
    try:
        Invoice.destroy_by_id(session, 3)
    except DestroyVetoed as e:
        print(f"  {e}\n")

    # 5. Restore
    print("5. Restoring:")
    service.restore_by_id(Invoice, 1)
    session.commit()
    print(f"  Visible invoices: {Invoice.count(session)}\n")

    # 6. Purge
    print("6. Purging Old Rows:")
    second = Invoice.find_by_id(session, 2)
    second.destroy()
    session.execute(
        Invoice.__table__.update()
        .where(Invoice.__table__.c.id == 2)
        .values(deleted_at=datetime.now(pytz.utc) - timedelta(days=400))
    )
    session.commit()
    purged = service.purge_destroyed(Invoice, older_than_days=365)
    session.commit()
    print(f"  Purged {purged} row(s)\n")

    # 7. Report
    print("7. Visibility Report:")
    report = service.visibility_report([Invoice])
    for name, counts in report.by_type.items():
        print(f"  {name}: {counts.active} active, {counts.destroyed} destroyed")

    session.close()


if __name__ == "__main__":
    demonstrate_soft_delete()
