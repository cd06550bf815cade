"""
Pytest configuration and fixtures
"""

import pytest

from tests.fakes import FIXED_NOW, InMemoryCheckpointStore, InMemoryWarehouse, RecordingNotifier


@pytest.fixture
def fixed_clock():
    """Clock pinned to 2024-01-15T10:30:00Z"""
    return lambda: FIXED_NOW


@pytest.fixture
def checkpoint_store():
    return InMemoryCheckpointStore()


@pytest.fixture
def warehouse():
    return InMemoryWarehouse()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def garoon_record():
    """Raw Garoon workflow record"""
    return {
        "employee_id": "EMP001",
        "last_name_kanji": "田中",
        "first_name_kanji": "太郎",
        "email_address": "tanaka@company.com",
        "department_1": "営業部",
        "joining_date": "2023-01-15",
        "annual_salary": 5000000,
    }


@pytest.fixture
def smarthr_records():
    """Raw SmartHR crew records"""
    return [
        {
            "employee_id": "EMP001",
            "last_name_katakana": "タナカ",
            "first_name_katakana": "タロウ",
            "personal_email": "tanaka@example.jp",
            "department": "Sales",
            "joining_date": "2023-01-15",
            "birth_date": "1990-04-01",
            "monthly_salary": "420000",
        },
        {
            "employee_id": "EMP002",
            "last_name_katakana": "スズキ",
            "first_name_katakana": "ハナコ",
            "personal_email": "",
            "department": "  Engineering ",
            "joining_date": "not a date",
            "monthly_salary": "n/a",
        },
    ]


@pytest.fixture
def garoon_dataset():
    """Twenty-five raw Garoon records, EMP000..EMP024"""
    return [
        {
            "employee_id": f"EMP{i:03d}",
            "last_name_kanji": "山田",
            "first_name_kanji": f"社員{i}",
            "email_address": f"emp{i}@company.com",
            "department_1": "総務部",
            "joining_date": "2022-04-01",
            "annual_salary": 4000000 + i,
        }
        for i in range(25)
    ]
