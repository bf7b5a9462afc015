# SPDX-License-Identifier: Apache-2.0

"""
Admin dashboard statistics.
"""

from typing import Any, Dict

from ..models.entities import UserContext
from ..models.enums import Collections, RequestStatus, VolunteerCallStatus, FundraiserStatus
from .manager import BaseManager


class DashboardService(BaseManager):
    """Read-only counts over the relief collections."""

    def get_stats(self, user_context: UserContext) -> Dict[str, Any]:
        self._require_admin(user_context, "dashboard.stats")
        repo = self.repository

        return {
            'volunteers': repo.count(Collections.VOLUNTEERS),
            'active_volunteers': repo.count(Collections.VOLUNTEERS, {"is_active": True}),
            'victim_requests': repo.count(Collections.VICTIM_REQUESTS),
            'requests_by_status': {
                status.value: repo.count(Collections.VICTIM_REQUESTS, {"status": status.value})
                for status in RequestStatus
            },
            'resources': repo.count(Collections.RESOURCES),
            'active_calls': repo.count(
                Collections.VOLUNTEER_CALLS, {"status": VolunteerCallStatus.ACTIVE.value}
            ),
            'fundraisers': repo.count(Collections.FUNDRAISERS),
            'active_fundraisers': repo.count(
                Collections.FUNDRAISERS, {"status": FundraiserStatus.ACTIVE.value}
            )
        }
