"""
Member lookup endpoints.

Membership data is owned by an external system. We only read it to show
account status at the desk and to find contact details for notifications.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from ...core.scheduling.errors import translate_storage_errors
from ...core.scheduling.models import Role
from ..dependencies import AuthenticatedUser, PoolRepositoryDep

logger = logging.getLogger(__name__)

router = APIRouter()


class MemberStatusResponse(BaseModel):
    id: str
    name: str
    role: Role
    phone: Optional[str]
    status: Optional[str]
    last_payment_date: Optional[str]


@router.get(
    "/status",
    response_model=MemberStatusResponse,
    summary="Member status by phone",
    description="Look up a member's account status (display only)",
)
async def member_status(
    repository: PoolRepositoryDep,
    api_key: AuthenticatedUser = None,
    phone: str = Query(min_length=1),
) -> MemberStatusResponse:
    with translate_storage_errors("get_member_by_phone"):
        member = repository.get_member_by_phone(phone)

    if member is None:
        logger.info("Member lookup found nothing", extra={"phone_suffix": phone[-4:]})
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No member registered with that phone number",
        )

    return MemberStatusResponse(
        id=member.id,
        name=member.name,
        role=member.role,
        phone=member.phone,
        status=member.status,
        last_payment_date=member.last_payment_date,
    )
