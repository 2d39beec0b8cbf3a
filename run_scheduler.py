"""
Main Execution Script for the Treatment Slot Engine.
Builds a small in-memory clinic, shows recommendations, then books the same
slot twice to demonstrate conflict detection and resolution.
"""

import json
import logging
from datetime import date, time, timedelta

from treatment_models import (
    AvailabilityBlock,
    PatientProfile,
    PractitionerProfile,
    TreatmentRequest,
)
from treatment_scheduler import InMemorySchedulingStore, SchedulingConfig, SchedulingEngine

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("Main")

# --- CONFIGURATION ---
EXPORT_FILENAME = "booking_outcome.json"
# ---------------------


def weekday_shifts(start: time, end: time, days=range(0, 6)):
    return [AvailabilityBlock(day_of_week=d, start_time=start, end_time=end) for d in days]


def build_clinic(today: date) -> InMemorySchedulingStore:
    """Two practitioners, two patients, no existing bookings."""
    practitioners = [
        PractitionerProfile(
            id="prac_meera",
            name="Dr. Meera Nair",
            qualified_treatment_types=["abhyanga", "shirodhara", "pizhichil"],
            availability=weekday_shifts(time(8, 0), time(17, 0)),
            days_off=[today + timedelta(days=3)],
            experience_years=12,
            specialization_scores={"abhyanga": 0.95, "pizhichil": 0.85},
            on_time_completion_rate=0.92,
            average_overrun_minutes=5,
            facility_id="room_lotus",
        ),
        PractitionerProfile(
            id="prac_arjun",
            name="Dr. Arjun Menon",
            qualified_treatment_types=["abhyanga", "nasya"],
            availability=weekday_shifts(time(9, 0), time(13, 0), days=range(0, 7)),
            experience_years=4,
            specialization_scores={"abhyanga": 0.7},
            on_time_completion_rate=0.8,
            facility_id="room_jasmine",
        ),
    ]
    patients = [
        PatientProfile(id="pat_001", age=65, constitution_score=0.6,
                       prior_treatment_count=4, historical_response_rate=0.75, preferred_hours=[10]),
        PatientProfile(id="pat_002", age=41, preferred_hours=[9, 14]),
    ]
    return InMemorySchedulingStore(practitioners=practitioners, patients=patients)


def export_outcome(outcome, filename: str):
    """Serializes a ResolutionOutcome for the front desk UI."""
    with open(filename, 'w') as f:
        json.dump(outcome.model_dump(mode='json'), f, indent=2)
    logger.info(f"💾 Exported booking outcome to {filename}")


def main():
    logger.info("🚀 Starting Treatment Slot Engine demo...")
    store = build_clinic(date.today())
    engine = SchedulingEngine(
        data_access=store,
        config=SchedulingConfig(),
        persistence=store,
        notifier=store,
    )

    # --- PHASE 1: RECOMMEND ---
    request = TreatmentRequest(patient_id="pat_001", treatment_type="abhyanga", practitioner_id="prac_meera")
    options = engine.recommend(request, limit=5)

    print("\n" + "=" * 50)
    print("📋 TOP RECOMMENDATIONS")
    print("=" * 50)
    if not options:
        print("No slots available in the horizon.")
        return
    for slot in options:
        print(f"{slot.start:%a %Y-%m-%d %H:%M}  {slot.practitioner_id:<12} confidence={slot.confidence:.2f}")

    # --- PHASE 2: BOOK THE TOP CHOICE ---
    first = engine.book(request, options[0])
    print(f"\n✅ First booking: success={first.success} at {first.slot.start:%Y-%m-%d %H:%M}")

    # --- PHASE 3: SECOND PATIENT WANTS THE SAME SLOT ---
    rival = TreatmentRequest(patient_id="pat_002", treatment_type="abhyanga", practitioner_id="prac_meera")
    contested = options[0].model_copy(update={"patient_id": "pat_002"})
    second = engine.book(rival, contested)

    print("\n" + "=" * 50)
    print("🔍 CONFLICT RESOLUTION")
    print("=" * 50)
    for c in second.conflicts:
        print(f"❌ {c.conflict_class.value} clash with {c.commitment_id} "
              f"({c.overlap_start:%H:%M}-{c.overlap_end:%H:%M})")
    if second.success:
        print(f"✅ Resolved via {second.strategy}: {second.slot.start:%Y-%m-%d %H:%M} "
              f"with {second.slot.practitioner_id}")
    else:
        print(f"⚠️ Unresolved. {len(second.alternatives)} alternative(s) offered.")

    export_outcome(second, EXPORT_FILENAME)
    print(f"\n📨 Notifications sent: {len(store.notifications)}")


if __name__ == "__main__":
    main()
