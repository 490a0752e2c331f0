import logging
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

import config

logger = logging.getLogger(__name__)

S3_PREFIX = "s3://"


class StorageError(RuntimeError):
    """Raised when a receipt image cannot be written."""


def get_s3_client():
    return boto3.client("s3", region_name=config.AWS_REGION)

def _local_folder(folder: str) -> Path:
    return Path(config.LOCAL_DATA_DIR) / folder

def save_receipt_image(file_name: str, data: bytes, folder: str = config.RECEIPTS_FOLDER) -> str:
    """
    Saves a receipt image to either local disk or S3 and returns its reference.
    """
    if config.S3_BUCKET:
        key = f"{folder}/{file_name}"
        try:
            get_s3_client().put_object(Bucket=config.S3_BUCKET, Key=key, Body=data, ContentType="image/jpeg")
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 upload failed for {key}: {e}")
            raise StorageError(f"S3 Upload Error: {e}") from e
        return f"{S3_PREFIX}{config.S3_BUCKET}/{key}"

    # Local fallback
    local_path = _local_folder(folder) / file_name
    try:
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(data)
    except OSError as e:
        logger.error(f"Could not write {local_path}: {e}")
        raise StorageError(f"Could not save receipt image: {e}") from e
    return str(local_path)

def load_receipt_image(ref: str) -> Optional[bytes]:
    """
    Loads a receipt image by the reference returned from ``save_receipt_image``.
    """
    if ref.startswith(S3_PREFIX):
        bucket, _, key = ref[len(S3_PREFIX):].partition("/")
        try:
            obj = get_s3_client().get_object(Bucket=bucket, Key=key)
            return obj["Body"].read()
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 download failed for {ref}: {e}")
            return None

    local_path = Path(ref)
    if not local_path.is_file():
        return None
    try:
        return local_path.read_bytes()
    except OSError as e:
        logger.error(f"Could not read {local_path}: {e}")
        return None

def delete_receipt_image(ref: str) -> bool:
    """
    Removes a stored receipt image. Returns False if nothing was removed.
    """
    if ref.startswith(S3_PREFIX):
        bucket, _, key = ref[len(S3_PREFIX):].partition("/")
        try:
            get_s3_client().delete_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 delete failed for {ref}: {e}")
            return False
        return True

    local_path = Path(ref)
    try:
        local_path.unlink()
    except OSError as e:
        logger.warning(f"Could not delete {local_path}: {e}")
        return False
    return True

def list_receipt_images(folder: str = config.RECEIPTS_FOLDER) -> list[str]:
    """
    Lists stored receipt image names (Local or S3).
    """
    if config.S3_BUCKET:
        s3 = get_s3_client()
        try:
            response = s3.list_objects_v2(Bucket=config.S3_BUCKET, Prefix=f"{folder}/")
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 listing failed: {e}")
            return []
        return [obj["Key"].split("/")[-1] for obj in response.get("Contents", [])]

    local_path = _local_folder(folder)
    if local_path.exists():
        return sorted(f.name for f in local_path.glob("*") if f.is_file())
    return []
