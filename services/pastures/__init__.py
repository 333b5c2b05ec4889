"""Pastures: opinionated landing zones on Google Cloud, driven by Terraform."""

__version__ = "0.3.0"
