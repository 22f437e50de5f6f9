"""Typed results for Linear GraphQL responses."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class LinearTeam:
    id: str
    name: str
    key: str


@dataclass(frozen=True)
class LinearUser:
    id: str
    name: str
    email: Optional[str] = None
    display_name: Optional[str] = None


@dataclass(frozen=True)
class LinearLabel:
    id: str
    name: str
    color: Optional[str] = None


@dataclass(frozen=True)
class LinearWorkflowState:
    id: str
    name: str
    type: Optional[str] = None
    position: float = 0


@dataclass(frozen=True)
class LinearIssue:
    id: str
    identifier: str
    title: str
    url: str


@dataclass(frozen=True)
class LinearViewer:
    id: str
    name: str
    email: Optional[str] = None
    teams: list[LinearTeam] = field(default_factory=list)


@dataclass(frozen=True)
class LinearOrganization:
    id: str
    name: str
    url_key: Optional[str] = None
