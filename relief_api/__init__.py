# SPDX-License-Identifier: Apache-2.0

"""
Relief coordination API.

Workflow engine for disaster-relief activity: victim help requests,
volunteer calls and applications, resource inventory allocation and
fundraising campaigns.
"""

__version__ = "1.0.0"
