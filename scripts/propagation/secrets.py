"""Secret references for database and inventory credentials.

A value of the form ``aws-secret://name[#key]`` or ``gcp-secret://ref`` is
fetched from the matching secret manager; anything else is used verbatim.
Cloud SDKs are imported only when such a reference is actually used.
"""

from __future__ import annotations

import json
import logging
import os
from urllib.parse import quote

logger = logging.getLogger("propagation.secrets")

_AWS_PREFIX = "aws-secret://"
_GCP_PREFIX = "gcp-secret://"


def resolve_secret(value: str) -> str:
    if value.startswith(_AWS_PREFIX):
        return _resolve_aws_secret(value[len(_AWS_PREFIX):])
    if value.startswith(_GCP_PREFIX):
        return _resolve_gcp_secret(value[len(_GCP_PREFIX):])
    return value


def _resolve_aws_secret(ref: str) -> str:
    import boto3

    secret_name, _, json_key = ref.partition("#")
    client = boto3.client(
        "secretsmanager", region_name=os.environ.get("AWS_REGION", "us-east-1")
    )
    logger.debug("Fetching AWS secret %s", secret_name)
    secret_string = client.get_secret_value(SecretId=secret_name)["SecretString"]
    if json_key:
        return str(json.loads(secret_string)[json_key])
    return secret_string


def _resolve_gcp_secret(ref: str) -> str:
    from google.cloud import secretmanager

    if ref.startswith("projects/"):
        name = ref
    else:
        project = os.environ.get("GCP_PROJECT_ID", "")
        if not project:
            raise RuntimeError(
                f"Cannot resolve gcp-secret://{ref} without GCP_PROJECT_ID"
            )
        name = f"projects/{project}/secrets/{ref}/versions/latest"

    logger.debug("Fetching GCP secret %s", name)
    client = secretmanager.SecretManagerServiceClient()
    response = client.access_secret_version(request={"name": name})
    return response.payload.data.decode("UTF-8")


def resolve_database_url() -> str:
    """DATABASE_URL if set, otherwise a DSN assembled from PG_* variables."""
    url = os.environ.get("DATABASE_URL", "")
    if url:
        return resolve_secret(url)

    host = os.environ.get("PG_HOST", "localhost")
    port = os.environ.get("PG_PORT", "5432")
    user = os.environ.get("PG_USER", "deviceauth")
    database = os.environ.get("PG_DATABASE", "deviceauth")
    password = resolve_secret(os.environ.get("PG_PASSWORD", ""))

    auth = quote(user, safe="")
    if password:
        auth += ":" + quote(password, safe="")
    return f"postgresql://{auth}@{host}:{port}/{database}"
