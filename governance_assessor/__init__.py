# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Governance posture assessment for cloud policy assignments."""

__version__ = "1.0.0"
