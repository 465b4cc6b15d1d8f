"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone

import pytest

from governance_assessor.models import (
    ControlGroup,
    ExemptionRecord,
    PolicyAssignmentRecord,
    Snapshot,
)
from governance_assessor.services.impact_classifier import ImpactClassifier
from governance_assessor.utils.impact_rules import default_impact_rules


# =============================================================================
# Environment and Configuration Fixtures
# =============================================================================


@pytest.fixture
def test_env(monkeypatch):
    """Set up test environment variables."""
    test_vars = {
        "SNAPSHOT_DB_PATH": ":memory:",
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
    }
    for key, value in test_vars.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("IMPACT_RULES_PATH", raising=False)
    return test_vars


@pytest.fixture
def classifier():
    """Classifier over the built-in rule tables."""
    return ImpactClassifier(default_impact_rules())


# =============================================================================
# Test Data Fixtures
# =============================================================================


@pytest.fixture
def as_of():
    return datetime(2026, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def sample_records():
    """Assignments in retrieval order, covering the main effect types."""
    return [
        PolicyAssignmentRecord(
            name="Deny-PublicIP",
            display_name="Network interfaces should not have public IPs",
            definition_name="83a86a26-fd1f-447c-b59d-e51f44264114",
            policy_type="Policy",
            category="Network",
            effect="Deny",
            enforcement_mode="Default",
            scope_type="Management Group",
            scope_name="/mg/A",
            non_compliant_resources=0,
            non_compliant_policies=0,
            exemption_count=0,
        ),
        PolicyAssignmentRecord(
            name="Audit-StorageTLS",
            display_name="Storage accounts should have the specified minimum TLS version",
            policy_type="Policy",
            category="Storage",
            effect="Audit",
            enforcement_mode="Default",
            scope_type="Subscription",
            scope_name="sub-prod",
            non_compliant_resources=4,
            non_compliant_policies=1,
            exemption_count=0,
        ),
        PolicyAssignmentRecord(
            name="Deploy-SQL-Defender",
            display_name="Configure Azure Defender for SQL servers",
            policy_type="Initiative",
            category="Security Center",
            effect="Parameterised",
            effect_summary="DeployIfNotExists, AuditIfNotExists",
            enforcement_mode="Default",
            scope_type="Management Group",
            scope_name="/mg/A",
            non_compliant_resources=0,
            non_compliant_policies=0,
            exemption_count=1,
        ),
        PolicyAssignmentRecord(
            name="Enforce-Tagging",
            display_name="Require a tag on resource groups",
            policy_type="Policy",
            category="Tags",
            effect="Deny",
            enforcement_mode="DoNotEnforce",
            scope_type="Subscription",
            scope_name="sub-prod",
            non_compliant_resources=12,
            non_compliant_policies=1,
            exemption_count=0,
        ),
        PolicyAssignmentRecord(
            name="Legacy-Diagnostics",
            display_name="Deploy diagnostic settings for Key Vault",
            policy_type="Policy",
            category="Monitoring",
            effect="Disabled",
            enforcement_mode="Default",
            scope_type="Subscription",
            scope_name="sub-dev",
        ),
    ]


@pytest.fixture
def sample_control_groups():
    """Control groups in initiative definition order."""
    return [
        ControlGroup(
            group_id="CE_Firewalls",
            name="Firewalls & Internet Gateways",
            controls=[
                "Network interfaces should not have public IPs",
                "All network ports should be restricted on network security groups",
            ],
        ),
        ControlGroup(
            group_id="CE_SecureConfiguration",
            name="Secure Configuration",
            controls=["Storage accounts should have the specified minimum TLS version"],
        ),
        ControlGroup(group_id="CE_Empty", name="Placeholder", controls=[]),
        ControlGroup(
            group_id="CE_UserAccess",
            name="User Access Control",
            controls=["Require a tag on resource groups"],
        ),
    ]


@pytest.fixture
def sample_exemptions():
    return [
        ExemptionRecord(
            id="/subscriptions/sub-prod/providers/Microsoft.Authorization/policyExemptions/ex-legacy",
            display_name="Legacy VM waiver",
            category="Waiver",
            scope_type="Subscription",
            scope_name="sub-prod",
            expires_on=datetime(2026, 1, 1, tzinfo=timezone.utc),
        ),
        ExemptionRecord(
            id="/providers/Microsoft.Management/managementGroups/A/providers/Microsoft.Authorization/policyExemptions/ex-fw",
            display_name="Third-party firewall",
            category="Mitigated",
            scope_type="Management Group",
            scope_name="A",
            expires_on=datetime(2026, 6, 20, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def make_snapshot(classifier):
    """Build a snapshot by scoring the given records."""

    def _make(records, exemptions=(), test_results=(), timestamp=None):
        return Snapshot(
            source_timestamp=timestamp or datetime(2026, 6, 1, tzinfo=timezone.utc),
            assignments=classifier.classify_all(records),
            exemptions=list(exemptions),
            test_results=list(test_results),
        )

    return _make


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "property: marks tests as property-based tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "property" in path:
            item.add_marker(pytest.mark.property)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
