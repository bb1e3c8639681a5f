import os
from typing import Tuple, Dict, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

R2_BUCKET = os.environ.get("R2_BUCKET", "")
R2_ENDPOINT = os.environ.get("R2_ENDPOINT", "")
R2_REGION = os.environ.get("R2_REGION", "auto")
R2_CDN_BASE = os.environ.get("R2_CDN_BASE", "").rstrip("/")


def r2_client():
    return boto3.client(
        "s3",
        endpoint_url=R2_ENDPOINT or None,
        aws_access_key_id=os.environ.get("R2_ACCESS_KEY_ID"),
        aws_secret_access_key=os.environ.get("R2_SECRET_ACCESS_KEY"),
        region_name=R2_REGION,
        config=Config(signature_version="s3v4"),
    )


def object_url(key: str) -> str:
    """Public URL for a stored object; the bucket is served publicly or through a CDN."""
    if R2_CDN_BASE:
        return f"{R2_CDN_BASE}/{key}"
    base = R2_ENDPOINT.rstrip("/")
    return f"{base}/{R2_BUCKET}/{key}"


def presign_put(key: str, content_type: str, expires: int = 900) -> Tuple[str, Dict[str, str]]:
    s3 = r2_client()
    url = s3.generate_presigned_url(
        "put_object",
        Params={"Bucket": R2_BUCKET, "Key": key, "ContentType": content_type},
        ExpiresIn=expires,
    )
    headers = {"Content-Type": content_type}
    return url, headers


def object_size(key: str) -> Optional[int]:
    """Size of an uploaded object, or None when it does not exist."""
    s3 = r2_client()
    try:
        head = s3.head_object(Bucket=R2_BUCKET, Key=key)
    except ClientError as e:
        code = str(e.response.get("Error", {}).get("Code", ""))
        if code in {"404", "NoSuchKey", "NotFound"}:
            return None
        raise
    return int(head.get("ContentLength") or 0)
