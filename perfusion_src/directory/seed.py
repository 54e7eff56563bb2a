"""Built-in hospitals used when the dataset cannot be loaded."""

from ..models import HospitalRecord

SEED_HOSPITALS = [
    HospitalRecord(
        facility_id="220071",
        facility_name="Massachusetts General Hospital",
        address="55 Fruit St",
        city="Boston",
        state="MA",
        zip_code="02114",
        county="Suffolk",
        phone_number="(617) 726-2000",
        hospital_type="Acute Care Hospitals",
        emergency_services=True,
    ),
    HospitalRecord(
        facility_id="220110",
        facility_name="Brigham and Women's Hospital",
        address="75 Francis St",
        city="Boston",
        state="MA",
        zip_code="02115",
        county="Suffolk",
        phone_number="(617) 732-5500",
        hospital_type="Acute Care Hospitals",
        emergency_services=True,
    ),
    HospitalRecord(
        facility_id="070022",
        facility_name="Yale New Haven Hospital",
        address="20 York St",
        city="New Haven",
        state="CT",
        zip_code="06510",
        county="New Haven",
        phone_number="(203) 688-4242",
        hospital_type="Acute Care Hospitals",
        emergency_services=True,
    ),
    HospitalRecord(
        facility_id="200009",
        facility_name="Maine Medical Center",
        address="22 Bramhall St",
        city="Portland",
        state="ME",
        zip_code="04102",
        county="Cumberland",
        phone_number="(207) 662-0111",
        hospital_type="Acute Care Hospitals",
        emergency_services=True,
    ),
    HospitalRecord(
        facility_id="300003",
        facility_name="Dartmouth-Hitchcock Medical Center",
        address="1 Medical Center Dr",
        city="Lebanon",
        state="NH",
        zip_code="03756",
        county="Grafton",
        phone_number="(603) 650-5000",
        hospital_type="Acute Care Hospitals",
        emergency_services=True,
    ),
]
