"""Course endpoints: eligibility, enrollment, progress, certificate.

Enrollment sequence:
  Client -> POST /v1/courses/{course_id}/enroll
  -> check direct prerequisites (409 + blocking list when unmet)
  -> insert enrollment (409 when already enrolled)
  -> 201 Enrolled

Every route acts on the caller unless an admin passes ?learner_id=.
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from progression.api.dependencies import get_store, require_user, resolve_learner
from progression.api.errors import http_error
from progression.models.principal import Principal
from progression.repos.store import Store
from progression.services import dashboard_service, enrollment_service, prerequisites
from progression.services.errors import EngineError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/courses", tags=["courses"])


class BlockingCourseOut(BaseModel):
    course_id: UUID
    title: str
    is_enrolled: bool


class EligibilityOut(BaseModel):
    course_id: UUID
    eligible: bool
    blocking: list[BlockingCourseOut]


class EnrollmentOut(BaseModel):
    learner_id: UUID
    course_id: UUID
    enrolled_at: int


class CourseProgressOut(BaseModel):
    course_id: UUID
    completed_lessons: int
    total_lessons: int
    percent_complete: int


class CertificateOut(BaseModel):
    learner_id: UUID
    course_id: UUID
    course_title: str
    completed_at: int


@router.get("/{course_id}/eligibility", response_model=EligibilityOut)
async def get_eligibility(
    course_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
    learner_id: UUID | None = None,
) -> EligibilityOut:
    learner = resolve_learner(principal, learner_id)
    try:
        eligibility = await prerequisites.can_enroll(store, learner, course_id)
    except EngineError as e:
        raise http_error(e) from None
    return EligibilityOut(
        course_id=course_id,
        eligible=eligibility.eligible,
        blocking=[
            BlockingCourseOut(
                course_id=b.course_id, title=b.title, is_enrolled=b.is_enrolled
            )
            for b in eligibility.blocking
        ],
    )


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course(
    course_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
    learner_id: UUID | None = None,
) -> EnrollmentOut:
    learner = resolve_learner(principal, learner_id)
    try:
        enrollment = await enrollment_service.enroll(store, learner, course_id)
    except EngineError as e:
        raise http_error(e) from None
    return EnrollmentOut(
        learner_id=enrollment.learner_id,
        course_id=enrollment.course_id,
        enrolled_at=enrollment.enrolled_at,
    )


@router.get("/{course_id}/progress", response_model=CourseProgressOut)
async def get_course_progress(
    course_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
    learner_id: UUID | None = None,
) -> CourseProgressOut:
    learner = resolve_learner(principal, learner_id)
    try:
        progress = await dashboard_service.course_progress(store, learner, course_id)
    except EngineError as e:
        raise http_error(e) from None
    return CourseProgressOut(
        course_id=progress.course_id,
        completed_lessons=progress.completed_lessons,
        total_lessons=progress.total_lessons,
        percent_complete=progress.percent_complete,
    )


@router.get("/{course_id}/certificate", response_model=CertificateOut)
async def get_certificate(
    course_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
    learner_id: UUID | None = None,
) -> CertificateOut:
    learner = resolve_learner(principal, learner_id)
    try:
        cert = await dashboard_service.certificate(store, learner, course_id)
    except EngineError as e:
        raise http_error(e) from None
    return CertificateOut(
        learner_id=cert.learner_id,
        course_id=cert.course_id,
        course_title=cert.course_title,
        completed_at=cert.completed_at,
    )
