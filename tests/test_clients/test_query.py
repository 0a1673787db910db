"""Tests for QuerySpec: emission order, flag handling and percent-encoding."""

from __future__ import annotations

from kube_rest_client.clients.query import QuerySpec, with_query


class TestCompose:
    def test_empty_spec_composes_nothing(self) -> None:
        assert QuerySpec().compose() == ""
        assert with_query("/api/v1/pods", QuerySpec()) == "/api/v1/pods"
        assert with_query("/api/v1/pods", None) == "/api/v1/pods"

    def test_false_flags_are_omitted(self) -> None:
        spec = QuerySpec(follow=False, previous=False, timestamps=False, tail_lines=10)
        assert spec.compose() == "tailLines=10"

    def test_true_flags_render_as_true(self) -> None:
        assert QuerySpec(watch=True).compose() == "watch=true"

    def test_zero_is_emitted(self) -> None:
        assert QuerySpec(grace_period_seconds=0).compose() == "gracePeriodSeconds=0"

    def test_values_are_encoded_individually(self) -> None:
        spec = QuerySpec(label_selector="env in (prod,staging)", field_selector="status.phase!=Running")
        assert spec.compose() == (
            "labelSelector=env%20in%20%28prod%2Cstaging%29&fieldSelector=status.phase%21%3DRunning"
        )

    def test_order_is_fixed_regardless_of_keyword_order(self) -> None:
        spec = QuerySpec(timestamps=True, tail_lines=5, container="app", since_seconds=30, previous=True, follow=True)
        assert [name for name, _ in spec.params()] == [
            "container",
            "follow",
            "previous",
            "sinceSeconds",
            "tailLines",
            "timestamps",
        ]

    def test_pagination_parameters(self) -> None:
        spec = QuerySpec(limit=50, continue_token="eyJ2IjoibWV0YS5rOHMuaW8vdjEifQ==")
        assert spec.compose() == "limit=50&continue=eyJ2IjoibWV0YS5rOHMuaW8vdjEifQ%3D%3D"

    def test_delete_parameters(self) -> None:
        spec = QuerySpec(grace_period_seconds=30, propagation_policy="Foreground")
        assert with_query("/api/v1/namespaces/a/pods/b", spec) == (
            "/api/v1/namespaces/a/pods/b?gracePeriodSeconds=30&propagationPolicy=Foreground"
        )
