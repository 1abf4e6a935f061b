"""Request and response bodies of the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from histsync.storage.models import Command, Status, System

# SQLite stores integers as signed 64-bit values
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str
    mac: str | None = None


class TokenResponse(BaseModel):
    accessToken: str


class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    email: str = ""
    password: str = Field(min_length=1)


class CommandIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uuid: str = Field(min_length=1)
    command: str
    created: int = Field(0, ge=INT64_MIN, le=INT64_MAX)
    path: str = ""
    exit_status: int = Field(0, alias="exitStatus", ge=INT64_MIN, le=INT64_MAX)
    process_id: int = Field(0, alias="processId", ge=INT64_MIN, le=INT64_MAX)
    process_start_time: int = Field(0, alias="processStartTime", ge=INT64_MIN, le=INT64_MAX)

    def to_command(self) -> Command:
        return Command(
            uuid=self.uuid,
            command=self.command,
            created=self.created,
            path=self.path,
            exit_status=self.exit_status,
            process_id=self.process_id,
            process_start_time=self.process_start_time,
        )


class CommandOut(BaseModel):
    uuid: str
    command: str
    created: int
    path: str
    exitStatus: int
    systemName: str
    processId: int
    processStartTime: int
    username: str | None = None

    @classmethod
    def from_command(cls, command: Command, username: str | None = None) -> CommandOut:
        return cls(
            uuid=command.uuid,
            command=command.command,
            created=command.created,
            path=command.path,
            exitStatus=command.exit_status,
            systemName=command.system_name,
            processId=command.process_id,
            processStartTime=command.process_start_time,
            username=username,
        )


class SystemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mac: str = Field(min_length=1)
    hostname: str | None = None
    name: str | None = None
    client_version: str | None = Field(None, alias="clientVersion")


class SystemOut(BaseModel):
    id: int
    created: int
    updated: int
    mac: str
    hostname: str | None
    name: str | None
    clientVersion: str | None
    userId: int

    @classmethod
    def from_system(cls, system: System) -> SystemOut:
        return cls(
            id=system.id,
            created=system.created,
            updated=system.updated,
            mac=system.mac,
            hostname=system.hostname,
            name=system.name,
            clientVersion=system.client_version,
            userId=system.user_id,
        )


class StatusOut(BaseModel):
    username: str
    totalCommands: int
    totalSessions: int
    totalSystems: int
    totalCommandsToday: int
    sessionName: str
    sessionStartTime: int
    sessionTotalCommands: int

    @classmethod
    def from_status(cls, status: Status) -> StatusOut:
        return cls(
            username=status.username,
            totalCommands=status.total_commands,
            totalSessions=status.total_sessions,
            totalSystems=status.total_systems,
            totalCommandsToday=status.total_commands_today,
            sessionName=status.session_name,
            sessionStartTime=status.session_start_time,
            sessionTotalCommands=status.session_total_commands,
        )
