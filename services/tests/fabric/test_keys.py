"""
Tests for bucket and object naming helpers.
"""

from pastures.fabric.keys import (
    PASTURES_VARS_OBJECT,
    foundation_dependencies,
    outputs_bucket,
    providers_key,
    seed_dependencies,
    stage_number,
    state_bucket,
    state_path,
    tfvars_key,
)


class TestKeyHelpers:
    def test_outputs_bucket(self) -> None:
        assert outputs_bucket("demo") == "demo-prod-iac-core-outputs"

    def test_state_bucket(self) -> None:
        assert state_bucket("demo") == "demo-prod-iac-core-0"

    def test_providers_key(self) -> None:
        assert providers_key("1-resman") == "providers/1-resman-providers.tf"

    def test_tfvars_key(self) -> None:
        assert tfvars_key("0-globals") == "tfvars/0-globals.auto.tfvars.json"

    def test_state_path(self) -> None:
        assert state_path("data-cloud") == "data-cloud/default.tfstate"

    def test_pastures_vars_object_is_a_tfvars_key(self) -> None:
        assert PASTURES_VARS_OBJECT == tfvars_key("0-pastures")


class TestStageNumber:
    def test_numbered(self) -> None:
        assert stage_number("0-bootstrap") == 0
        assert stage_number("12-late") == 12

    def test_unnumbered(self) -> None:
        assert stage_number("data-cloud") is None
        assert stage_number("bootstrap-0") is None


class TestDependencies:
    def test_bootstrap_needs_only_its_providers(self) -> None:
        assert foundation_dependencies("0-bootstrap") == ["providers/0-bootstrap-providers.tf"]

    def test_resman(self) -> None:
        assert foundation_dependencies("1-resman") == [
            "providers/1-resman-providers.tf",
            "tfvars/0-globals.auto.tfvars.json",
            "tfvars/0-bootstrap.auto.tfvars.json",
        ]

    def test_stage_two_also_needs_resman_tfvars(self) -> None:
        deps = foundation_dependencies("2-networking-a-simple")
        assert deps[0] == "providers/2-networking-a-simple-providers.tf"
        assert "tfvars/1-resman.auto.tfvars.json" in deps

    def test_seed(self) -> None:
        assert seed_dependencies() == [
            "tfvars/0-globals.auto.tfvars.json",
            "tfvars/0-bootstrap.auto.tfvars.json",
            "tfvars/1-resman.auto.tfvars.json",
        ]
