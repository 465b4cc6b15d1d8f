"""
Unit tests for TestOrchestrator.

Tests Phase 1 sequencing with skip propagation, Phase 2 subtest checks
and status aggregation.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from governance_assessor.models import (
    BoundaryFacts,
    ExemptionRecord,
    FrameworkFacts,
    IdentityFacts,
    MalwareFacts,
    OpenPortFinding,
    PatchFacts,
    PrivilegedAccessFacts,
    PublicIpFinding,
    RoleAssignmentFinding,
    TestStatus,
    VulnerabilityFinding,
)
from governance_assessor.services.compliance_mapper import map_compliance
from governance_assessor.services.test_orchestrator import (
    DEFAULT_TEST_CASES,
    MANUAL_SUBTESTS,
    SubtestDefinition,
    TestCaseDefinition,
    TestOrchestrator,
    aggregate_status,
    phase1_plan,
)


@pytest.fixture
def orchestrator():
    return TestOrchestrator()


@pytest.fixture
def healthy_facts():
    return FrameworkFacts(
        initiative_found=True,
        initiative_assigned=True,
        initiative_enforcement_mode="Default",
        total_resources=100,
        non_compliant_resources=3,
    )


@pytest.fixture
def compliance(classifier, sample_records, sample_control_groups):
    return map_compliance(sample_control_groups, classifier.classify_all(sample_records))


def _case(result, case_id):
    return next(c for c in result.phase2 if c.test_case_id == case_id)


def _subtest(result, subtest_id):
    return result.get(subtest_id)


class TestPhase1Plan:
    """Test the Phase 1 test plan."""

    def test_plan_order(self, sample_control_groups):
        plan = phase1_plan(sample_control_groups)

        assert [t.test_id for t in plan] == [
            "1.1",
            "1.2",
            "1.3.CE_Firewalls",
            "1.3.CE_SecureConfiguration",
            "1.3.CE_UserAccess",
            "1.4",
            "1.5",
        ]

    def test_dependencies(self, sample_control_groups):
        plan = {t.test_id: t for t in phase1_plan(sample_control_groups)}

        assert plan["1.1"].depends_on == ()
        assert plan["1.2"].depends_on == ("1.1",)
        assert plan["1.3.CE_Firewalls"].depends_on == ("1.1",)
        assert plan["1.4"].depends_on == ("1.2",)
        assert plan["1.5"].depends_on == ()

    def test_dependencies_precede_dependents(self, sample_control_groups):
        seen = set()
        for test in phase1_plan(sample_control_groups):
            assert set(test.depends_on) <= seen
            seen.add(test.test_id)


class TestPhase1:
    """Test Phase 1 evaluation and skip propagation."""

    def test_healthy_run(self, orchestrator, sample_control_groups, compliance, healthy_facts, as_of):
        result = orchestrator.run(
            sample_control_groups, compliance, healthy_facts, exemptions=[], as_of=as_of
        )
        statuses = {r.test_id: r.status for r in result.phase1}

        assert statuses["1.1"] == TestStatus.PASS
        assert statuses["1.2"] == TestStatus.PASS
        assert statuses["1.3.CE_Firewalls"] == TestStatus.FAIL
        assert statuses["1.3.CE_SecureConfiguration"] == TestStatus.PASS
        assert statuses["1.3.CE_UserAccess"] == TestStatus.WARN
        assert statuses["1.4"] == TestStatus.WARN
        assert statuses["1.5"] == TestStatus.PASS

    def test_missing_initiative_skips_dependents(
        self, orchestrator, sample_control_groups, compliance
    ):
        facts = FrameworkFacts(initiative_found=False)

        result = orchestrator.run(sample_control_groups, compliance, facts)
        statuses = {r.test_id: r.status for r in result.phase1}

        assert statuses["1.1"] == TestStatus.FAIL
        assert statuses["1.2"] == TestStatus.SKIP
        assert statuses["1.3.CE_Firewalls"] == TestStatus.SKIP
        assert statuses["1.4"] == TestStatus.SKIP
        assert statuses["1.5"] == TestStatus.PASS
        assert "prerequisite 1.1" in result.get("1.2").detail

    def test_skip_propagates_transitively(self, orchestrator, sample_control_groups, compliance):
        """1.4 depends on 1.2, which was skipped because 1.1 failed."""
        result = orchestrator.run(sample_control_groups, compliance, FrameworkFacts())

        assert result.get("1.4").status == TestStatus.SKIP
        assert "prerequisite 1.2" in result.get("1.4").detail

    def test_no_facts_skips_framework_tests(self, orchestrator, sample_control_groups, compliance):
        result = orchestrator.run(sample_control_groups, compliance, None)

        assert result.get("1.1").status == TestStatus.SKIP
        assert result.get("1.2").status == TestStatus.SKIP

    def test_warn_satisfies_prerequisite(self, orchestrator, sample_control_groups, compliance):
        facts = FrameworkFacts(
            initiative_found=True,
            initiative_assigned=True,
            initiative_enforcement_mode="DoNotEnforce",
            total_resources=10,
            non_compliant_resources=0,
        )

        result = orchestrator.run(sample_control_groups, compliance, facts)

        assert result.get("1.2").status == TestStatus.WARN
        assert result.get("1.4").status == TestStatus.PASS

    def test_unassigned_initiative_fails(self, orchestrator, sample_control_groups, compliance):
        facts = FrameworkFacts(initiative_found=True, initiative_assigned=False)

        result = orchestrator.run(sample_control_groups, compliance, facts)

        assert result.get("1.2").status == TestStatus.FAIL
        assert result.get("1.4").status == TestStatus.SKIP
        assert result.get("1.3.CE_SecureConfiguration").status == TestStatus.PASS

    def test_high_non_compliance_fails(self, sample_control_groups, compliance, healthy_facts):
        facts = healthy_facts.model_copy(update={"non_compliant_resources": 30})

        result = TestOrchestrator().run(sample_control_groups, compliance, facts)

        assert result.get("1.4").status == TestStatus.FAIL
        assert "30.0%" in result.get("1.4").detail

    def test_non_compliance_without_resource_total_warns(
        self, sample_control_groups, compliance, healthy_facts
    ):
        facts = healthy_facts.model_copy(update={"total_resources": 0, "non_compliant_resources": 5})

        result = TestOrchestrator().run(sample_control_groups, compliance, facts)

        assert result.get("1.4").status == TestStatus.WARN
        assert "inconsistent" in result.get("1.4").detail

    def test_empty_scope_passes(self, sample_control_groups, compliance, healthy_facts):
        facts = healthy_facts.model_copy(update={"total_resources": 0, "non_compliant_resources": 0})

        result = TestOrchestrator().run(sample_control_groups, compliance, facts)

        assert result.get("1.4").status == TestStatus.PASS

    def test_warn_ratio_is_configurable(self, sample_control_groups, compliance, healthy_facts):
        result = TestOrchestrator(non_compliance_warn_ratio=0.01).run(
            sample_control_groups, compliance, healthy_facts
        )

        assert result.get("1.4").status == TestStatus.FAIL

    def test_missing_compliance_data_skips_group(self, orchestrator, sample_control_groups, healthy_facts):
        result = orchestrator.run(sample_control_groups, None, healthy_facts)

        assert result.get("1.3.CE_Firewalls").status == TestStatus.SKIP


class TestExemptionReview:
    """Test the exemption review test (1.5)."""

    def test_expired_exemption_warns(self, orchestrator, sample_exemptions, as_of):
        result = orchestrator.run([], {}, None, exemptions=sample_exemptions, as_of=as_of)

        review = result.get("1.5")
        assert review.status == TestStatus.WARN
        assert "1 expired" in review.detail

    def test_open_ended_waiver_warns(self, orchestrator):
        waiver = ExemptionRecord(id="ex-1", category="Waiver", expires_on=None)

        result = orchestrator.run([], {}, None, exemptions=[waiver])

        assert result.get("1.5").status == TestStatus.WARN
        assert "without expiry" in result.get("1.5").detail

    def test_open_ended_mitigation_passes(self, orchestrator):
        mitigated = ExemptionRecord(id="ex-1", category="Mitigated", expires_on=None)

        result = orchestrator.run([], {}, None, exemptions=[mitigated])

        assert result.get("1.5").status == TestStatus.PASS

    def test_expiring_soon_is_reported(self, orchestrator, as_of):
        exemption = ExemptionRecord(id="ex-1", expires_on=as_of + timedelta(days=10))

        result = orchestrator.run([], {}, None, exemptions=[exemption], as_of=as_of)

        assert result.get("1.5").status == TestStatus.PASS
        assert "1 expiring within 30 days" in result.get("1.5").detail

    def test_expiry_not_checked_without_reference_time(self, orchestrator):
        exemption = ExemptionRecord(
            id="ex-1", expires_on=datetime(2000, 1, 1, tzinfo=timezone.utc)
        )

        result = orchestrator.run([], {}, None, exemptions=[exemption])

        assert result.get("1.5").status == TestStatus.PASS


class TestPhase2:
    """Test Phase 2 test cases and subtests."""

    def test_no_facts_skips_automated_subtests(self, orchestrator):
        result = orchestrator.run([], {}, None)

        assert result.get("TC1.1").status == TestStatus.SKIP
        assert result.get("TC1.3").status == TestStatus.MANUAL
        assert _case(result, "TC1").status == TestStatus.MANUAL
        assert _case(result, "TC2").status == TestStatus.SKIP

    def test_manual_subtests_are_fixed(self, orchestrator):
        result = orchestrator.run([], {}, None)
        manual = {
            s.test_id for case in result.phase2 for s in case.subtests if s.status == TestStatus.MANUAL
        }

        assert manual == {"TC1.3", "TC3.2", "TC3.3", "TC4.4"}
        assert manual == MANUAL_SUBTESTS

    def test_subtest_order_and_parent(self, orchestrator):
        result = orchestrator.run([], {}, None)
        identity = _case(result, "TC4")

        assert [s.test_id for s in identity.subtests] == ["TC4.1", "TC4.2", "TC4.3", "TC4.4"]
        assert all(s.parent_id == "TC4" and s.phase == 2 for s in identity.subtests)

    def test_boundary_findings(self, orchestrator):
        facts = BoundaryFacts(
            public_ips=[
                PublicIpFinding(name="pip-web", nsg_attached=True),
                PublicIpFinding(name="pip-jump", nsg_attached=False),
            ],
            open_management_ports=[
                OpenPortFinding(nsg_name="nsg-jump", rule_name="AllowRDP", port=3389, source="Internet"),
                OpenPortFinding(nsg_name="nsg-web", rule_name="AllowHTTPS", port=443, source="*"),
            ],
        )

        result = orchestrator.run([], {}, None, case_facts={"TC1": facts})

        assert result.get("TC1.1").status == TestStatus.FAIL
        assert "pip-jump" in result.get("TC1.1").detail
        assert result.get("TC1.2").status == TestStatus.FAIL
        assert "nsg-jump/AllowRDP:3389" in result.get("TC1.2").detail
        assert _case(result, "TC1").status == TestStatus.FAIL

    def test_management_port_from_private_range_passes(self, orchestrator):
        facts = BoundaryFacts(
            open_management_ports=[
                OpenPortFinding(nsg_name="nsg", rule_name="AllowSSH", port=22, source="10.0.0.0/8")
            ]
        )

        result = orchestrator.run([], {}, None, case_facts={"TC1": facts})

        assert result.get("TC1.2").status == TestStatus.PASS

    @pytest.mark.parametrize(
        "cvss,age_days,expected",
        [
            (9.8, 30, TestStatus.FAIL),
            (7.0, 15, TestStatus.FAIL),
            (7.0, 14, TestStatus.WARN),
            (8.1, 3, TestStatus.WARN),
            (6.9, 90, TestStatus.PASS),
        ],
    )
    def test_patch_thresholds(self, orchestrator, cvss, age_days, expected):
        facts = PatchFacts(
            findings=[VulnerabilityFinding(resource="vm-1", cve_id="CVE-2026-0001", cvss=cvss, age_days=age_days)]
        )

        result = orchestrator.run([], {}, None, case_facts={"TC2": facts})

        assert result.get("TC2.1").status == expected

    def test_unsupported_os(self, orchestrator):
        facts = PatchFacts(unsupported_os_machines=["vm-2008"])

        result = orchestrator.run([], {}, None, case_facts={"TC2": facts})

        assert result.get("TC2.2").status == TestStatus.FAIL
        assert _case(result, "TC2").status == TestStatus.FAIL

    def test_malware_protection(self, orchestrator):
        protected = orchestrator.run(
            [], {}, None, case_facts={"TC3": MalwareFacts(machines_total=5, machines_protected=5)}
        )
        gap = orchestrator.run(
            [], {}, None, case_facts={"TC3": MalwareFacts(machines_total=5, machines_protected=3)}
        )

        assert protected.get("TC3.1").status == TestStatus.PASS
        assert _case(protected, "TC3").status == TestStatus.MANUAL
        assert gap.get("TC3.1").status == TestStatus.FAIL
        assert "2 of 5" in gap.get("TC3.1").detail

    def test_identity_checks(self, orchestrator):
        facts = IdentityFacts(
            users_total=10,
            users_mfa_registered=10,
            ca_policies_requiring_mfa=0,
            ca_policies_report_only=1,
            legacy_auth_blocked=True,
        )

        result = orchestrator.run([], {}, None, case_facts={"TC4": facts})

        assert result.get("TC4.1").status == TestStatus.PASS
        assert result.get("TC4.2").status == TestStatus.WARN
        assert result.get("TC4.3").status == TestStatus.PASS
        assert _case(result, "TC4").status == TestStatus.WARN

    def test_no_conditional_access_fails(self, orchestrator):
        result = orchestrator.run(
            [], {}, None, case_facts={"TC4": IdentityFacts(users_total=0)}
        )

        assert result.get("TC4.2").status == TestStatus.FAIL
        assert result.get("TC4.3").status == TestStatus.FAIL

    @pytest.mark.parametrize(
        "count,expected",
        [(0, TestStatus.PASS), (3, TestStatus.WARN), (4, TestStatus.FAIL)],
    )
    def test_standing_privilege_limits(self, orchestrator, count, expected):
        facts = PrivilegedAccessFacts(
            standing_privileged_assignments=[
                RoleAssignmentFinding(principal_name=f"admin{i}", role_name="Owner") for i in range(count)
            ]
        )

        result = orchestrator.run([], {}, None, case_facts={"TC5": facts})

        assert result.get("TC5.1").status == expected

    def test_privileged_guests_fail(self, orchestrator):
        facts = PrivilegedAccessFacts(
            privileged_guest_assignments=[
                RoleAssignmentFinding(principal_name="vendor#EXT#", role_name="Contributor", principal_type="Guest")
            ]
        )

        result = orchestrator.run([], {}, None, case_facts={"TC5": facts})

        assert result.get("TC5.2").status == TestStatus.FAIL

    def test_facts_accepted_as_dict(self, orchestrator):
        result = orchestrator.run(
            [], {}, None, case_facts={"TC3": {"machines_total": 2, "machines_protected": 2}}
        )

        assert result.get("TC3.1").status == TestStatus.PASS

    def test_malformed_facts_are_ignored(self, orchestrator, caplog):
        with caplog.at_level(logging.WARNING):
            result = orchestrator.run(
                [], {}, None, case_facts={"TC3": {"machines_total": "many"}}
            )

        assert result.get("TC3.1").status == TestStatus.SKIP
        assert "malformed facts for TC3" in caplog.text

    def test_custom_catalog(self):
        case = TestCaseDefinition(
            "TCX",
            "Custom",
            MalwareFacts,
            (
                SubtestDefinition(
                    "TCX.1", "Always warns", check=lambda facts: (TestStatus.WARN, "warned")
                ),
            ),
        )

        result = TestOrchestrator(test_cases=[case]).run([], {}, None, case_facts={"TCX": MalwareFacts()})

        assert [c.test_case_id for c in result.phase2] == ["TCX"]
        assert result.get("TCX.1").detail == "warned"


class TestAggregation:
    """Test subtest status roll-up."""

    @pytest.mark.parametrize(
        "statuses,expected",
        [
            ([TestStatus.PASS, TestStatus.FAIL, TestStatus.WARN], TestStatus.FAIL),
            ([TestStatus.PASS, TestStatus.WARN, TestStatus.MANUAL], TestStatus.WARN),
            ([TestStatus.PASS, TestStatus.MANUAL], TestStatus.MANUAL),
            ([TestStatus.PASS, TestStatus.SKIP], TestStatus.PASS),
            ([TestStatus.SKIP, TestStatus.SKIP], TestStatus.SKIP),
            ([], TestStatus.SKIP),
        ],
    )
    def test_aggregate_status(self, statuses, expected):
        assert aggregate_status(statuses) == expected

    def test_status_counts_cover_leaves_only(self, orchestrator):
        result = orchestrator.run([], {}, None)

        counts = result.status_counts
        leaves = len(result.phase1) + sum(len(c.subtests) for c in result.phase2)
        assert sum(counts.values()) == leaves
        assert counts["MANUAL"] == 4
        assert set(counts) == {s.value for s in TestStatus}

    def test_all_results_flattening(self, orchestrator):
        result = orchestrator.run([], {}, None)
        ids = [r.test_id for r in result.all_results()]

        assert ids[:3] == ["1.1", "1.2", "1.4"]
        assert ids.index("TC1") < ids.index("TC1.1") < ids.index("TC2")
        assert len(ids) == len(result.phase1) + sum(len(c.subtests) + 1 for c in result.phase2)

    def test_case_rollup_detail(self, orchestrator):
        result = orchestrator.run([], {}, None)

        assert result.get("TC1").detail == "2 SKIP, 1 MANUAL"

    def test_default_catalog_ids(self):
        assert [c.case_id for c in DEFAULT_TEST_CASES] == ["TC1", "TC2", "TC3", "TC4", "TC5"]
