#!/usr/bin/env python3
"""
Seed the record gateway with realistic student records.
"""
import os
import random
import sys

import pandas as pd
from faker import Faker

from gateway import RecordGateway
from models import GENDER_CHOICES


def build_test_students(classes=None, students_per_class=25, seed=None):
    """Create realistic student records, without sending them anywhere."""
    fake = Faker('en_IN')  # Indian locale for better names
    if seed is not None:
        Faker.seed(seed)
        random.seed(seed)

    classes = classes or ['6A', '6B', '7A', '7B', '8A', '8B', '9A', '10A']

    students_data = []
    for student_class in classes:
        for i in range(students_per_class):
            gender = random.choice(GENDER_CHOICES[:2])
            if gender == 'Male':
                first_name = fake.first_name_male()
            else:
                first_name = fake.first_name_female()

            students_data.append({
                'name': f"{first_name} {fake.last_name()}",
                'roll_number': f"R{student_class}{str(i + 1).zfill(3)}",
                'student_class': student_class,
                # Centre marks around 65 so every histogram bucket gets some students
                'marks': max(0, min(100, int(random.gauss(65, 18)))),
                'gender': gender,
                'contact': f"+91 {fake.msisdn()[-10:]}",
            })

    return students_data


def seed_gateway(gateway: RecordGateway, students_data):
    """Create each record through the gateway; duplicates are skipped."""
    added = 0
    duplicates = 0
    failed = 0
    for student in students_data:
        result = gateway.create_student(student)
        if result.success:
            added += 1
        elif result.is_conflict:
            duplicates += 1
        else:
            failed += 1
    return added, duplicates, failed


if __name__ == "__main__":
    base_url = os.environ.get("RECORD_GATEWAY_URL", "http://localhost:3001")
    count = int(sys.argv[1]) if len(sys.argv) > 1 else 25

    print(f"🎓 Seeding student records at {base_url}")
    print("=" * 50)

    students_data = build_test_students(students_per_class=count)
    df = pd.DataFrame(students_data)

    print(f"📊 Total Students: {len(df)}")
    print(f"👥 Gender Distribution: {df['gender'].value_counts().to_dict()}")
    print(f"\n📋 Class-wise Average Marks:")
    for student_class, average in df.groupby('student_class')['marks'].mean().items():
        print(f"   Class {student_class}: {average:.2f}")

    added, duplicates, failed = seed_gateway(RecordGateway(base_url), students_data)
    print(f"\n✅ Added {added} students ({duplicates} duplicates skipped, {failed} failed)")
