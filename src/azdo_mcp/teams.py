"""Team iteration lookups."""
from typing import Optional

from .client import AzureDevOpsClient
from .errors import UpstreamError
from .models import Iteration

# Backend error raised when a team has no sprint covering today
NO_CURRENT_ITERATION = "CurrentIterationDoesNotExistException"


async def get_team_iterations(
    client: AzureDevOpsClient,
    organization: str,
    project: str,
    team_id: str,
    timeframe: Optional[str] = None,
) -> list[Iteration]:
    url = client.team_url(organization, project, team_id, "work/teamsettings/iterations")
    data = await client.get_json(url, params={"$timeframe": timeframe})
    return [Iteration.model_validate(item) for item in data.get("value", [])]


async def get_team_current_iteration(
    client: AzureDevOpsClient,
    organization: str,
    project: str,
    team_id: str,
) -> Optional[Iteration]:
    """Return the team's current iteration, or None when the team has none."""
    try:
        iterations = await get_team_iterations(client, organization, project, team_id, timeframe="current")
    except UpstreamError as e:
        if NO_CURRENT_ITERATION in e.message:
            return None
        raise
    return iterations[0] if iterations else None
