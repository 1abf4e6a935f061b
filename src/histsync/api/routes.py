"""HTTP route handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import aiosqlite
from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from histsync.api.schemas import (
    INT64_MAX,
    INT64_MIN,
    CommandIn,
    CommandOut,
    LoginRequest,
    StatusOut,
    SystemIn,
    SystemOut,
    TokenResponse,
    UserCreate,
)
from histsync.api.security import (
    AuthError,
    authenticate,
    create_access_token,
    get_principal,
    hash_password,
)
from histsync.services.ingest import record_command
from histsync.services.search import SearchFilter, search_history
from histsync.services.status import StatusAggregator
from histsync.storage.commands import CommandRepository
from histsync.storage.models import Principal, System, User
from histsync.storage.systems import SystemRepository
from histsync.storage.users import ConflictError, UserRepository

logger = logging.getLogger(__name__)

public = APIRouter()
api = APIRouter(prefix="/api/v1")


@dataclass(frozen=True)
class Scope:
    """The verified principal of a request and the user id it resolves to."""

    principal: Principal
    user_id: int


def get_users(request: Request) -> UserRepository:
    return request.app.state.users


def get_systems(request: Request) -> SystemRepository:
    return request.app.state.systems


def get_commands(request: Request) -> CommandRepository:
    return request.app.state.commands


async def get_scope(
    principal: Principal = Depends(get_principal),
    users: UserRepository = Depends(get_users),
) -> Scope:
    """Resolve the principal to a user id; unknown users are refused."""
    if not await users.username_exists(principal.username):
        raise AuthError(403, "you don't have permission to access this resource")
    user_id = await users.get_id(principal.username)
    if user_id == 0:
        raise AuthError(403, "you don't have permission to access this resource")
    return Scope(principal=principal, user_id=user_id)


# --- Public ---


@public.get("/ping")
async def ping() -> dict:
    return {"message": "pong"}


@api.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    users: UserRepository = Depends(get_users),
    systems: SystemRepository = Depends(get_systems),
) -> TokenResponse:
    if not await authenticate(users, body.username, body.password):
        logger.info("Failed login for %s", body.username)
        raise AuthError(401, "incorrect Username or Password")

    system_name = ""
    if body.mac:
        user_id = await users.get_id(body.username)
        system_name = (await systems.get(user_id, body.mac)).name or ""

    config = request.app.state.config
    token = create_access_token(
        Principal(username=body.username, system_name=system_name),
        request.app.state.secret,
        config.auth.token_hours,
    )
    return TokenResponse(accessToken=token)


@api.post("/user")
async def register(body: UserCreate, users: UserRepository = Depends(get_users)) -> Response:
    if not body.email:
        return JSONResponse({"error": "email required"}, status_code=400)
    if await users.user_exists(body.username):
        return PlainTextResponse("Username already taken", status_code=409)
    if await users.email_exists(body.email):
        return PlainTextResponse("This email address is already registered.", status_code=409)

    try:
        await users.create(User(username=body.username, email=body.email, password=hash_password(body.password)))
    except ConflictError:
        return PlainTextResponse("Username or email already registered", status_code=409)
    return Response(status_code=200)


# --- Commands ---


@api.get("/command/search", response_model=list[CommandOut])
async def search_commands(
    path: str | None = None,
    query: str | None = None,
    system_name: str | None = Query(None, alias="systemName"),
    limit: str | None = None,
    unique: str | None = None,
    scope: Scope = Depends(get_scope),
    commands: CommandRepository = Depends(get_commands),
) -> list[CommandOut]:
    search_filter = SearchFilter.from_params(path, query, system_name, limit, unique)
    results = await search_history(commands, scope.user_id, search_filter)
    return [CommandOut.from_command(c) for c in results]


@api.get("/command/{uuid}", response_model=CommandOut)
async def get_command(
    uuid: str,
    scope: Scope = Depends(get_scope),
    commands: CommandRepository = Depends(get_commands),
) -> Response | CommandOut:
    command = await commands.get_by_uuid(scope.user_id, uuid)
    if command is None:
        return JSONResponse({"error": "command not found"}, status_code=404)
    return CommandOut.from_command(command, username=scope.principal.username)


@api.post("/command")
async def insert_command(
    body: CommandIn,
    scope: Scope = Depends(get_scope),
    commands: CommandRepository = Depends(get_commands),
) -> Response:
    await record_command(commands, scope.user_id, scope.principal, body.to_command())
    return Response(status_code=200)


@api.delete("/command/{uuid}")
async def delete_command(
    uuid: str,
    scope: Scope = Depends(get_scope),
    commands: CommandRepository = Depends(get_commands),
) -> Response:
    await commands.delete(scope.user_id, uuid)
    return Response(status_code=200)


# --- Systems ---


@api.post("/system")
async def register_system(
    body: SystemIn,
    scope: Scope = Depends(get_scope),
    systems: SystemRepository = Depends(get_systems),
) -> Response:
    await systems.insert(
        System(
            mac=body.mac,
            hostname=body.hostname,
            name=body.name,
            client_version=body.client_version,
            user_id=scope.user_id,
        )
    )
    return Response(status_code=201)


@api.get("/system", response_model=SystemOut)
async def get_system(
    mac: str | None = None,
    scope: Scope = Depends(get_scope),
    systems: SystemRepository = Depends(get_systems),
) -> Response | SystemOut:
    if not mac:
        return Response(status_code=400)
    system = await systems.get(scope.user_id, mac)
    if not system.mac:
        return Response(status_code=404)
    return SystemOut.from_system(system)


# --- Status ---


def parse_int64(name: str, raw: str | None) -> int:
    """Parse a query-string integer that must fit a SQLite integer column."""
    value = int(raw or "")
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"{name} out of range: {raw}")
    return value


@api.get("/client-view/status", response_model=StatusOut)
async def client_status(
    process_id: str | None = Query(None, alias="processId"),
    start_time: str | None = Query(None, alias="startTime"),
    scope: Scope = Depends(get_scope),
    commands: CommandRepository = Depends(get_commands),
    systems: SystemRepository = Depends(get_systems),
) -> Response | StatusOut:
    try:
        parsed_start = parse_int64("startTime", start_time)
        parsed_pid = parse_int64("processId", process_id)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    aggregator = StatusAggregator(commands, systems)
    try:
        status = await aggregator.get(
            scope.principal.username,
            scope.user_id,
            parsed_pid,
            parsed_start,
            session_name=process_id,
        )
    except aiosqlite.Error as e:
        logger.exception("Status query failed for %s", scope.principal.username)
        return JSONResponse({"error": str(e)}, status_code=500)
    return StatusOut.from_status(status)
