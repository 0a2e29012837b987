"""Unit tests for delivery strategy selection."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from diffviz.delivery.planner import DeliveryContext, Strategy, select_plan


@pytest.mark.unit
class TestSelectPlan:
    """Tests for select_plan."""

    def test_without_credential_plan_is_local_only(self):
        plan = select_plan(DeliveryContext(has_remote_credential=False))
        assert plan.strategies == (Strategy.LOCAL,)
        assert plan.allow_open is True
        assert "GITHUB_TOKEN" in plan.reason

    def test_with_credential_remote_first(self):
        plan = select_plan(DeliveryContext(has_remote_credential=True))
        assert plan.strategies == (Strategy.REMOTE, Strategy.LOCAL)
        assert plan.primary is Strategy.REMOTE
        assert plan.reason is None

    def test_explicit_local(self):
        plan = select_plan(DeliveryContext(has_remote_credential=True, explicit_mode="local"))
        assert plan.strategies == (Strategy.LOCAL,)
        assert plan.reason == "local output was requested explicitly"

    def test_compat_mode_skips_remote(self):
        plan = select_plan(DeliveryContext(has_remote_credential=True, compat_mode=True))
        assert not plan.includes_remote
        assert plan.reason == "compatibility mode is enabled"

    def test_hosted_falls_back_inline_and_never_opens(self):
        plan = select_plan(DeliveryContext(has_remote_credential=True, deployment_is_hosted=True))
        assert plan.strategies == (Strategy.REMOTE, Strategy.INLINE)
        assert plan.allow_open is False

    def test_hosted_without_credential(self):
        plan = select_plan(DeliveryContext(has_remote_credential=False, deployment_is_hosted=True))
        assert plan.strategies == (Strategy.INLINE,)

    @pytest.mark.property
    @given(
        explicit_mode=st.sampled_from([None, "remote", "local"]),
        hosted=st.booleans(),
        compat=st.booleans(),
    )
    def test_no_credential_never_plans_remote(self, explicit_mode, hosted, compat):
        context = DeliveryContext(
            has_remote_credential=False,
            explicit_mode=explicit_mode,
            deployment_is_hosted=hosted,
            compat_mode=compat,
        )
        plan = select_plan(context)
        assert Strategy.REMOTE not in plan.strategies
        assert len(plan.strategies) == 1
