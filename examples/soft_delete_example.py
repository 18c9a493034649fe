#!/usr/bin/env python3
"""
Soft Delete Example - Paranoid Toolkit

Demonstrates soft delete patterns on a small clinical trial model:
- Destroyed records disappear from default queries but stay in the table
- Dependent patients are destroyed with their site
- Named scopes combine with the visibility selectors
- Restore brings records back
- delete_all removes rows for good
"""

from typing import Dict

from sqlalchemy import Column, ForeignKey, Integer, String, and_, create_engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from paranoid_toolkit import DestroyableMixin, ParanoidMixin, RecordInvalid, named_scope

Base = declarative_base()


class ClinicalSite(Base, DestroyableMixin):
    """Clinical trial site whose patients are destroyed with it."""

    __tablename__ = "clinical_sites"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)

    patients = relationship(
        "Patient",
        primaryjoin=lambda: and_(
            ClinicalSite.id == Patient.site_id, Patient.deleted_at.is_(None)
        ),
        lazy="dynamic",
        passive_deletes=True,
        info={"dependent": "destroy"},
    )


class Patient(Base, ParanoidMixin):
    """Patient record with soft delete capability."""

    __tablename__ = "patients"
    __unique_fields__ = ("patient_code",)

    id = Column(Integer, primary_key=True)
    site_id = Column(Integer, ForeignKey("clinical_sites.id"))
    patient_code = Column(String, nullable=False)
    status = Column(String, default="enrolled")

    by_code = named_scope(order_by=lambda cls: cls.patient_code)
    withdrawn = named_scope(status="withdrawn")


def main() -> Dict[str, int]:
    """Run the example and return the final row counts."""
    print("🗑️  Soft Delete Example\n")

    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()

    # 1. Create test data
    print("1️⃣ Creating Test Data:")
    site = ClinicalSite.create(session, name="City Medical Center")
    first = Patient.create(session, site_id=site.id, patient_code="CMC-001")
    second = Patient.create(
        session, site_id=site.id, patient_code="CMC-002", status="withdrawn"
    )
    print(f"   Patients: {Patient.count(session)}\n")

    # 2. Destroy a single patient
    print("2️⃣ Destroying CMC-002:")
    second.destroy(session)
    print(f"   Live patients: {Patient.count(session)}")
    print(f"   All patients: {Patient.count_with_destroyed(session)}")
    withdrawn = Patient.withdrawn.by_code.find_only_destroyed(session)
    print(f"   Destroyed withdrawn patients: {[p.patient_code for p in withdrawn]}\n")

    # 3. Destroyed rows still hold unique values
    print("3️⃣ Re-using a destroyed patient code:")
    try:
        Patient.create(session, site_id=site.id, patient_code="CMC-002")
    except RecordInvalid as e:
        print(f"   Rejected: {e}\n")

    # 4. Destroy the site and its patients
    print("4️⃣ Destroying the site:")
    site.destroy(session)
    print(f"   Sites: {ClinicalSite.count(session)}")
    print(f"   Live patients: {Patient.count(session)}\n")

    # 5. Restore
    print("5️⃣ Restoring CMC-001:")
    first.restore(session)
    print(f"   Live patients: {Patient.count(session)}\n")

    # 6. Hard delete
    print("6️⃣ Hard deleting destroyed patients:")
    removed = Patient.only_destroyed().delete_all(session)
    print(f"   Removed rows: {removed}")
    session.commit()

    result = {
        "live": Patient.count(session),
        "destroyed": Patient.count_only_destroyed(session),
        "total": Patient.count_with_destroyed(session),
    }
    session.close()
    return result


if __name__ == "__main__":
    main()
