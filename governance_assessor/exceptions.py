# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Exceptions raised while loading configuration and snapshots."""


class GovernanceAssessorError(Exception):
    """Base class for all package errors."""

    pass


class ImpactRulesError(GovernanceAssessorError):
    """Raised when an impact rule table file is invalid."""

    pass


class SnapshotFormatError(GovernanceAssessorError):
    """Raised when a persisted snapshot cannot be decoded."""

    pass


class SnapshotNotFoundError(GovernanceAssessorError):
    """Raised when a requested snapshot does not exist."""

    pass
