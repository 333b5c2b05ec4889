"""
Data Cloud pasture.

A sandbox landing zone for analytics and GenAI workloads. At least one
jumpstart must be selected; each maps to one ``enable_*`` seed variable.
"""

import argparse
from dataclasses import dataclass

from pastures.fabric.stage import ProviderFile
from pastures.terraform.runner import TfVar, add_var

NAME = "data-cloud"
HELP = "Deploy a Data Cloud pasture with optional jumpstarts"
DESCRIPTION = """\
Creates a data-cloud landing zone in a FAST foundation sandbox.
Jumpstarts can optionally be deployed as features into the landing zone.
An example of how to use this pasture:

    pasture plant data-cloud --pasture-size small --data-warehouse
"""

DEFAULT_REGION = "us-central1"
PASTURE_SIZES = ("big", "small")
JUMPSTART_FLAGS = ("knowledge-base", "data-warehouse", "analytics-lakehouse", "genai-rag")


@dataclass(frozen=True)
class DataCloudOptions:
    pasture_size: str
    region: str = DEFAULT_REGION
    knowledge_base: bool = False
    data_warehouse: bool = False
    analytics_lakehouse: bool = False
    genai_rag: bool = False

    def tf_vars(self, provider_file: ProviderFile) -> list[TfVar]:
        return [
            add_var("region", self.region),
            add_var("state_bucket", provider_file.bucket),
            add_var("state_dir", provider_file.remote_path.split("/")[0]),
            add_var("pasture_size", self.pasture_size),
            add_var("enable_summarization", self.knowledge_base),
            add_var("enable_warehouse", self.data_warehouse),
            add_var("enable_analytics", self.analytics_lakehouse),
            add_var("enable_rag", self.genai_rag),
        ]


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-r",
        "--region",
        default=DEFAULT_REGION,
        help="Region for GCP resources to be deployed",
    )
    parser.add_argument(
        "-s",
        "--pasture-size",
        required=True,
        choices=PASTURE_SIZES,
        help="Size of pasture environment - must be 'big' or 'small'",
    )

    jumpstarts = parser.add_argument_group("jumpstarts", "at least one is required")
    jumpstarts.add_argument(
        "--knowledge-base",
        action="store_true",
        help="Enable the Vertex AI knowledge base jumpstart",
    )
    jumpstarts.add_argument(
        "--data-warehouse",
        action="store_true",
        help="Enable the BigQuery data warehouse jumpstart",
    )
    jumpstarts.add_argument(
        "--analytics-lakehouse",
        action="store_true",
        help="Enable the Analytics lakehouse jumpstart",
    )
    jumpstarts.add_argument(
        "--genai-rag",
        action="store_true",
        help="Enable the Vertex AI RAG jumpstart",
    )


def options_from_args(args: argparse.Namespace) -> DataCloudOptions:
    return DataCloudOptions(
        pasture_size=args.pasture_size,
        region=args.region,
        knowledge_base=args.knowledge_base,
        data_warehouse=args.data_warehouse,
        analytics_lakehouse=args.analytics_lakehouse,
        genai_rag=args.genai_rag,
    )
