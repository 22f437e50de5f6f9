"""Linear GraphQL client used to file classified issues."""

from deva.linear.client import LinearService, label_color
from deva.linear.models import LinearIssue, LinearLabel, LinearTeam, LinearUser, LinearViewer

__all__ = [
    "LinearIssue",
    "LinearLabel",
    "LinearService",
    "LinearTeam",
    "LinearUser",
    "LinearViewer",
    "label_color",
]
