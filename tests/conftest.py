from enum import Enum
from pathlib import Path
from typing import Annotated, List, Optional

import pytest
from pydantic import BaseModel, Field

from csv_guardian import fields


class Person(BaseModel):
    name: str
    age: int


class Status(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Account(BaseModel):
    """Row model built from the CSV field helpers."""

    id: fields.integer(Annotated[int, Field(ge=1)])
    email: fields.string()
    score: fields.number(Annotated[float, Field(ge=0.0, le=100.0)])
    active: fields.boolean()
    status: fields.enum_(Status)
    note: fields.string(Optional[str]) = None


class Address(BaseModel):
    city: str
    zip: str


class Tag(BaseModel):
    label: str


class Customer(BaseModel):
    name: str
    address: Address
    tags: List[Tag]


@pytest.fixture()
def person_model() -> type[BaseModel]:
    return Person


@pytest.fixture()
def account_model() -> type[BaseModel]:
    return Account


@pytest.fixture()
def customer_model() -> type[BaseModel]:
    return Customer


@pytest.fixture()
def people_csv() -> str:
    return "name,age\nJohn,30\nJane,25\n"


@pytest.fixture()
def mixed_people_csv() -> str:
    """Two valid rows around one row whose age is not a number."""
    return "name,age\nJohn,30\nJane,abc\nBob,40\n"


@pytest.fixture()
def accounts_csv() -> str:
    return (
        "id,email,score,active,status,note\n"
        "1,alice@example.com,85.5,true,active,\n"
        "2,bob@example.com,92,false,INACTIVE,vip\n"
        "3,,101,yes,unknown,\n"
    )


@pytest.fixture()
def people_csv_file(tmp_path: Path, people_csv: str) -> Path:
    filepath = tmp_path / "people.csv"
    filepath.write_text(people_csv, encoding="utf-8")
    return filepath


@pytest.fixture()
def mixed_people_csv_file(tmp_path: Path, mixed_people_csv: str) -> Path:
    filepath = tmp_path / "mixed_people.csv"
    filepath.write_text(mixed_people_csv, encoding="utf-8")
    return filepath
