"""Snapshot of the objects already deployed to the bucket."""

import logging
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Mapping

logger = logging.getLogger(__name__)

# Object key -> last modified timestamp
RemoteState = Mapping[str, datetime]


def get_deployed_objects(s3_client, bucket: str) -> RemoteState:
    """
    Get objects already deployed, returning their key and last modified date.

    Every page of the listing is drained before returning; a partial
    snapshot would lead to wrong upload decisions. Listing errors are not
    retried and propagate to the caller unchanged.

    Args:
        s3_client: boto3 S3 client
        bucket: Bucket to list

    Returns:
        Read-only mapping of object key to last modified timestamp
    """
    deployed_objects: Dict[str, datetime] = {}

    continuation_token = None
    while True:
        request = {"Bucket": bucket}
        if continuation_token:
            request["ContinuationToken"] = continuation_token
        response = s3_client.list_objects_v2(**request)

        for obj in response.get("Contents", []):
            key = obj.get("Key")
            last_modified = obj.get("LastModified")
            # Objects without both fields can't take part in staleness checks
            if not key or last_modified is None:
                continue
            deployed_objects[key] = last_modified

        if not response.get("IsTruncated"):
            break
        continuation_token = response.get("NextContinuationToken")

    logger.info("found %d objects already deployed in bucket %s", len(deployed_objects), bucket)
    return MappingProxyType(deployed_objects)
