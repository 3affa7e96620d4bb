# utils/storage.py
"""
Proof-of-payment uploads to Azure Blob Storage.

The client is created on first use so the app starts without storage
credentials; uploads then fail with StorageNotConfiguredError.
"""
import os
import uuid
from typing import Optional

from azure.storage.blob import BlobServiceClient

PROOF_CONTAINER = os.getenv("PROOF_CONTAINER", "payment-proofs")

_blob_service: Optional[BlobServiceClient] = None


class StorageNotConfiguredError(RuntimeError):
     pass


def _account() -> Optional[str]:
     return os.getenv("AZURE_STORAGE_ACCOUNT")


def get_blob_service() -> BlobServiceClient:
     global _blob_service
     if _blob_service is None:
          account = _account()
          key = os.getenv("AZURE_STORAGE_KEY")
          if not account or not key:
               raise StorageNotConfiguredError("AZURE_STORAGE_ACCOUNT and AZURE_STORAGE_KEY must be set")
          _blob_service = BlobServiceClient.from_connection_string(
               f"DefaultEndpointsProtocol=https;"
               f"AccountName={account};"
               f"AccountKey={key};"
               f"EndpointSuffix=core.windows.net"
          )
     return _blob_service


def upload_proof(file, member_id: int, container: Optional[str] = None) -> str:
     """Store an uploaded proof under ``<member_id>/<uuid><ext>`` and return its URL."""
     container = container or PROOF_CONTAINER
     ext = os.path.splitext(file.filename or "")[1]
     filename = f"{member_id}/{uuid.uuid4()}{ext}"
     blob_client = get_blob_service().get_blob_client(container=container, blob=filename)
     blob_client.upload_blob(file.file, overwrite=True)
     return f"https://{_account()}.blob.core.windows.net/{container}/{filename}"

