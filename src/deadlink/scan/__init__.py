# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Scheduling, profile ownership and per-URI orchestration."""

from .checker import LinkChecker
from .registry import CheckProfile, ProfileRegistry
from .scheduler import TaskScheduler

__all__ = ["CheckProfile", "LinkChecker", "ProfileRegistry", "TaskScheduler"]
