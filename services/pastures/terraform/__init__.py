"""Thin async wrapper around the terraform CLI."""

from pastures.terraform.runner import TerraformRunner, TfVar, add_var, render_value

__all__ = ["TerraformRunner", "TfVar", "add_var", "render_value"]
