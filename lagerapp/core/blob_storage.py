"""
Azure Blob Storage access for uploaded images and attachments.

Article pictures, workwear catalog images and commission attachments are
uploaded here; the database only keeps the resulting URL. When no storage
account is configured, uploads are skipped and None is returned.
"""
import os
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import quote, urlparse, unquote

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings, ContainerSasPermissions, generate_container_sas
from django.conf import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ('image/jpeg', 'image/png', 'image/webp', 'image/gif')
ALLOWED_ATTACHMENT_TYPES = ALLOWED_IMAGE_TYPES + ('application/pdf',)
MAX_UPLOAD_SIZE = 10 * 1024 * 1024


def _setting(name, default=''):
    return getattr(settings, name, os.getenv(name, default))


def is_configured() -> bool:
    return bool(_setting('AZURE_STORAGE_ACCOUNT_NAME') and _setting('AZURE_STORAGE_ACCOUNT_KEY'))


def _service_client() -> BlobServiceClient:
    account = _setting('AZURE_STORAGE_ACCOUNT_NAME')
    key = _setting('AZURE_STORAGE_ACCOUNT_KEY')
    connection_string = (
        f"DefaultEndpointsProtocol=https;AccountName={account};"
        f"AccountKey={key};EndpointSuffix=core.windows.net"
    )
    return BlobServiceClient.from_connection_string(connection_string)


def generate_sas_token(expiry_hours: int = 8760) -> Optional[str]:
    """
    Generate a read-only SAS token for the container.

    Args:
        expiry_hours: Hours until token expires (default: 1 year)

    Returns:
        SAS token string or None if not configured
    """
    if not is_configured():
        return None
    try:
        return generate_container_sas(
            account_name=_setting('AZURE_STORAGE_ACCOUNT_NAME'),
            container_name=_setting('AZURE_STORAGE_CONTAINER', 'lagerapp'),
            account_key=_setting('AZURE_STORAGE_ACCOUNT_KEY'),
            permission=ContainerSasPermissions(read=True),
            expiry=datetime.now(timezone.utc) + timedelta(hours=expiry_hours),
        )
    except (AzureError, ValueError) as e:
        logger.error(f"Failed to generate SAS token: {str(e)}")
        return None


def construct_blob_url(blob_name: str) -> Optional[str]:
    """Public (or SAS-signed) URL of a blob; None without a storage account"""
    account = _setting('AZURE_STORAGE_ACCOUNT_NAME')
    if not account:
        return None
    container = _setting('AZURE_STORAGE_CONTAINER', 'lagerapp')
    base_url = f"https://{account}.blob.core.windows.net/{container}/{quote(blob_name, safe='/')}"

    if _setting('AZURE_USE_SAS_TOKENS', False):
        sas_token = generate_sas_token()
        if sas_token:
            return f"{base_url}?{sas_token}"
        logger.warning(f"Failed to generate SAS token for blob {blob_name}, using direct URL")
    return base_url


def build_blob_name(folder: str, filename: str) -> str:
    """Unique blob name below a folder, keeping the original file extension"""
    _, ext = os.path.splitext(filename or '')
    ext = (ext or '.bin').lower()
    return f"{folder.strip('/')}/{uuid.uuid4().hex}{ext}"


def upload_blob(folder: str, filename: str, data: bytes, content_type: str = 'application/octet-stream') -> Optional[str]:
    """
    Upload raw bytes and return the blob URL.

    Returns None when storage is not configured or the upload failed.
    """
    if not is_configured():
        logger.warning("Azure storage not configured, skipping upload")
        return None

    blob_name = build_blob_name(folder, filename)
    try:
        blob_client = _service_client().get_blob_client(
            container=_setting('AZURE_STORAGE_CONTAINER', 'lagerapp'),
            blob=blob_name,
        )
        blob_client.upload_blob(data, overwrite=True, content_settings=ContentSettings(content_type=content_type))
    except AzureError as e:
        logger.error(f"Failed to upload blob {blob_name}: {str(e)}", exc_info=True)
        return None

    logger.info(f"Uploaded blob {blob_name} ({len(data)} bytes)")
    return construct_blob_url(blob_name)


def upload_file(folder: str, uploaded_file, allowed_types=ALLOWED_IMAGE_TYPES) -> Optional[str]:
    """Validate and upload a Django UploadedFile; raises ValueError on bad input"""
    content_type = getattr(uploaded_file, 'content_type', '') or ''
    if content_type not in allowed_types:
        raise ValueError(f'Dateityp {content_type or "unbekannt"} wird nicht unterstützt')
    if uploaded_file.size > MAX_UPLOAD_SIZE:
        raise ValueError('Datei ist größer als 10 MB')
    return upload_blob(folder, uploaded_file.name, uploaded_file.read(), content_type)


def blob_name_from_url(url: str) -> Optional[str]:
    """Extract the blob name from a URL pointing into our container"""
    if not url:
        return None
    container = _setting('AZURE_STORAGE_CONTAINER', 'lagerapp')
    path = unquote(urlparse(url).path).lstrip('/')
    prefix = f"{container}/"
    if not path.startswith(prefix):
        return None
    return path[len(prefix):]


def delete_blob(url_or_name: str) -> bool:
    """
    Delete a blob by URL or name.

    Returns:
        True if deletion was successful or not needed, False if deletion failed
    """
    if not _setting('AZURE_STORAGE_ACCOUNT_NAME'):
        return True
    if not _setting('AZURE_STORAGE_ACCOUNT_KEY'):
        return False

    blob_name = blob_name_from_url(url_or_name) if '://' in (url_or_name or '') else url_or_name
    if not blob_name:
        return True

    try:
        blob_client = _service_client().get_blob_client(
            container=_setting('AZURE_STORAGE_CONTAINER', 'lagerapp'),
            blob=blob_name,
        )
        blob_client.delete_blob()
        return True
    except ResourceNotFoundError:
        # Already gone
        return True
    except AzureError as e:
        logger.warning(f"Blob cleanup failed for {blob_name}: {str(e)}")
        return False
