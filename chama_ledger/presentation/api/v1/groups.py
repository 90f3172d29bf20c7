"""Group, membership and member summary endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response

from chama_ledger.application.dto import AddMemberRequest, CreateGroupRequest, RegistrationRequest
from chama_ledger.application.services import GroupService
from chama_ledger.core.dependencies import get_group_service
from chama_ledger.presentation.schemas import (
    ActorSchema,
    AddMemberSchema,
    CreateGroupSchema,
    ErrorResponseSchema,
    GroupSchema,
    MemberSchema,
    MemberSummarySchema,
    RegisterMemberSchema,
    UpdateRulesSchema,
)

groups_router = APIRouter(
    prefix="/groups",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid request"},
        404: {"model": ErrorResponseSchema, "description": "Group or member not found"},
    },
)

GroupId = Annotated[str, Path(description="ID of the group")]
MemberId = Annotated[str, Path(description="ID of the member")]


@groups_router.post(
    "",
    response_model=GroupSchema,
    status_code=201,
    summary="Create Group",
    description="""
    Create a savings group from its rules. The creator joins as senior admin
    and receives the cycle's payment records.
    """,
)
async def create_group(
    request: CreateGroupSchema,
    group_service: Annotated[GroupService, Depends(get_group_service)],
) -> GroupSchema:
    dto = CreateGroupRequest(
        name=request.name,
        creator_name=request.creator_name,
        cycle_start=request.cycle_start,
        rules=request.rules,
    )
    response = await group_service.create_group(dto)
    return GroupSchema.model_validate(response)


@groups_router.get(
    "/{group_id}",
    response_model=GroupSchema,
    summary="Get Group",
)
async def get_group(
    group_id: GroupId,
    group_service: Annotated[GroupService, Depends(get_group_service)],
) -> GroupSchema:
    response = await group_service.get_group(group_id)
    return GroupSchema.model_validate(response)


@groups_router.put(
    "/{group_id}/rules",
    response_model=GroupSchema,
    summary="Update Group Rules",
    responses={403: {"model": ErrorResponseSchema, "description": "Not an admin"}},
)
async def update_rules(
    group_id: GroupId,
    request: UpdateRulesSchema,
    group_service: Annotated[GroupService, Depends(get_group_service)],
) -> GroupSchema:
    response = await group_service.update_rules(group_id, request.actor_id, request.rules)
    return GroupSchema.model_validate(response)


@groups_router.post(
    "/{group_id}/members",
    response_model=MemberSchema,
    status_code=201,
    summary="Add Member",
    responses={403: {"model": ErrorResponseSchema, "description": "Not an admin"}},
)
async def add_member(
    group_id: GroupId,
    request: AddMemberSchema,
    group_service: Annotated[GroupService, Depends(get_group_service)],
) -> MemberSchema:
    dto = AddMemberRequest(
        actor_id=request.actor_id,
        display_name=request.display_name,
        role=request.role,
    )
    response = await group_service.add_member(group_id, dto)
    return MemberSchema.model_validate(response)


@groups_router.post(
    "/{group_id}/close",
    response_model=GroupSchema,
    summary="Close Group",
    description="""
    Close the group to new members, contribution payments and loan requests.
    Reviews and repayments of loans already granted continue.
    """,
    responses={
        403: {"model": ErrorResponseSchema, "description": "Not an admin"},
        409: {"model": ErrorResponseSchema, "description": "Group already closed"},
    },
)
async def close_group(
    group_id: GroupId,
    request: ActorSchema,
    group_service: Annotated[GroupService, Depends(get_group_service)],
) -> GroupSchema:
    response = await group_service.close_group(group_id, request.actor_id)
    return GroupSchema.model_validate(response)


@groups_router.post(
    "/{group_id}/registrations",
    response_model=MemberSchema,
    status_code=201,
    summary="Register To Join",
    description="Ask to join a group. The member stays pending until an admin approves them.",
    responses={409: {"model": ErrorResponseSchema, "description": "Group closed"}},
)
async def register_member(
    group_id: GroupId,
    request: RegisterMemberSchema,
    group_service: Annotated[GroupService, Depends(get_group_service)],
) -> MemberSchema:
    response = await group_service.register_member(
        group_id, RegistrationRequest(display_name=request.display_name)
    )
    return MemberSchema.model_validate(response)


@groups_router.post(
    "/{group_id}/members/{member_id}/approve",
    response_model=MemberSchema,
    summary="Approve Member",
    description="Activate a pending member and create their payment records.",
    responses={
        403: {"model": ErrorResponseSchema, "description": "Not an admin"},
        409: {"model": ErrorResponseSchema, "description": "Member not pending or group closed"},
    },
)
async def approve_member(
    group_id: GroupId,
    member_id: MemberId,
    request: ActorSchema,
    group_service: Annotated[GroupService, Depends(get_group_service)],
) -> MemberSchema:
    response = await group_service.approve_member(group_id, member_id, request.actor_id)
    return MemberSchema.model_validate(response)


@groups_router.post(
    "/{group_id}/members/{member_id}/remove",
    status_code=204,
    summary="Remove Member",
    description="Remove a member who has no payments or loans on the ledger.",
    responses={
        403: {"model": ErrorResponseSchema, "description": "Not an admin"},
        409: {"model": ErrorResponseSchema, "description": "Member has ledger history"},
    },
)
async def remove_member(
    group_id: GroupId,
    member_id: MemberId,
    request: ActorSchema,
    group_service: Annotated[GroupService, Depends(get_group_service)],
) -> Response:
    await group_service.remove_member(group_id, member_id, request.actor_id)
    return Response(status_code=204)


@groups_router.get(
    "/{group_id}/members/{member_id}/summary",
    response_model=MemberSummarySchema,
    summary="Get Member Summary",
    description="""
    Totals recomputed from the member's payment records and loans.
    Returns 409 if the stored summary disagrees with the ledger.
    """,
    responses={409: {"model": ErrorResponseSchema, "description": "Ledger mismatch"}},
)
async def get_member_summary(
    group_id: GroupId,
    member_id: MemberId,
    group_service: Annotated[GroupService, Depends(get_group_service)],
) -> MemberSummarySchema:
    response = await group_service.get_member_summary(group_id, member_id)
    return MemberSummarySchema.model_validate(response)


@groups_router.post(
    "/{group_id}/members/{member_id}/summary/rebuild",
    response_model=MemberSummarySchema,
    summary="Rebuild Member Summary",
    description="Overwrite the stored summary with values recomputed from the ledger.",
    responses={403: {"model": ErrorResponseSchema, "description": "Not an admin"}},
)
async def rebuild_member_summary(
    group_id: GroupId,
    member_id: MemberId,
    request: ActorSchema,
    group_service: Annotated[GroupService, Depends(get_group_service)],
) -> MemberSummarySchema:
    response = await group_service.rebuild_member_summary(group_id, member_id, request.actor_id)
    return MemberSummarySchema.model_validate(response)
