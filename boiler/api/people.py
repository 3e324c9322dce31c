# Elastic License 2.0
# Copyright (c) 2025 sliptonic
# SPDX-License-Identifier: Elastic-2.0

"""Sample protected resource: a fixed list of people, for logged-in callers only."""
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from boiler.api.dependencies import require_authenticated
from boiler.auth.session import SessionCapsule


class Person(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="Name")
    number: int = Field(alias="Number")


class PeopleResponse(BaseModel):
    """Envelope the client reads as data.People."""
    model_config = ConfigDict(populate_by_name=True)

    people: List[Person] = Field(alias="People")


PEOPLE = [
    Person(name="Jack Hill", number=421),
    Person(name="Jack Wright", number=212),
]

router = APIRouter(tags=["people"])


@router.get("/api/people", response_model=PeopleResponse)
def fetch_people(capsule: SessionCapsule = Depends(require_authenticated)):
    return PeopleResponse(people=PEOPLE)
