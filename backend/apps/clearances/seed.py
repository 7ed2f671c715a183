"""Default clearance types offered by a barangay office."""

from decimal import Decimal

DEFAULT_CLEARANCE_TYPES = [
    {
        "name": "Barangay Clearance",
        "description": "General purpose barangay clearance",
        "fee": Decimal("50.00"),
        "processing_days": 3,
    },
    {
        "name": "Business Permit Clearance",
        "description": "Clearance required for business permit applications",
        "fee": Decimal("150.00"),
        "processing_days": 5,
    },
    {
        "name": "Employment Clearance",
        "description": "Certificate of good moral character for employment",
        "fee": Decimal("75.00"),
        "processing_days": 3,
    },
    {
        "name": "Police Clearance",
        "description": "Barangay endorsement for police clearance",
        "fee": Decimal("100.00"),
        "processing_days": 7,
    },
    {
        "name": "Indigency Certificate",
        "description": "Certificate of indigency for assistance programs",
        "fee": Decimal("0.00"),
        "processing_days": 2,
    },
]


def seed_clearance_types(clearance_type_model):
    """
    Insert any missing default types; existing rows are left untouched.

    Returns:
        int: Number of types created
    """
    created = 0
    for entry in DEFAULT_CLEARANCE_TYPES:
        _, was_created = clearance_type_model.objects.get_or_create(
            name=entry["name"],
            defaults={key: value for key, value in entry.items() if key != "name"},
        )
        created += int(was_created)
    return created
