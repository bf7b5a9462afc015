# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - managers, persistence and identity collaborators.
"""

from .repository import Repository
from .memory import InMemoryRepository
from .mongodb import MongoRepository
from .request_lifecycle import RequestLifecycleManager
from .volunteer_calls import VolunteerCallManager, ReviewResult, CallCapacity, ApplicationSummary
from .resource_ledger import ResourceLedger, AllocationResult
from .fundraiser_ledger import FundraiserLedger, DonationResult, DonorHistory

__all__ = [
    "Repository",
    "InMemoryRepository",
    "MongoRepository",
    "RequestLifecycleManager",
    "VolunteerCallManager",
    "ReviewResult",
    "CallCapacity",
    "ApplicationSummary",
    "ResourceLedger",
    "AllocationResult",
    "FundraiserLedger",
    "DonationResult",
    "DonorHistory"
]
