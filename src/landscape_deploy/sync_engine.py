"""Deploy engine for landscape websites hosted in S3."""

import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from landscape_deploy.config import Config, check_env_vars
from landscape_deploy.exceptions import (
    FileUploadError,
    IndexDocumentError,
    InvalidTransitionError,
    UploadFilesError,
)
from landscape_deploy.planner import (
    INDEX_DOCUMENT,
    INDEX_DOCUMENT_CONTENT_TYPE,
    LocalFile,
    UploadDecision,
    decide_index_upload,
    decide_upload,
    guess_content_type,
    local_modified,
    scan_local_files,
)
from landscape_deploy.remote_state import RemoteState, get_deployed_objects

logger = logging.getLogger(__name__)

# Errors isolated to the file being processed
FILE_ERRORS = (OSError, ValueError, BotoCoreError, ClientError)


class DeployState(str, Enum):
    """Phases of a deploy run."""

    START = "start"
    LISTING = "listing"
    UPLOADING = "uploading"
    PUBLISHING_INDEX = "publishing-index"
    DONE = "done"
    ABORTED = "aborted"


# Forward-only transitions; DONE and ABORTED are terminal
TRANSITIONS = {
    DeployState.START: {DeployState.LISTING, DeployState.ABORTED},
    DeployState.LISTING: {DeployState.UPLOADING, DeployState.ABORTED},
    DeployState.UPLOADING: {DeployState.PUBLISHING_INDEX, DeployState.ABORTED},
    DeployState.PUBLISHING_INDEX: {DeployState.DONE, DeployState.ABORTED},
    DeployState.DONE: set(),
    DeployState.ABORTED: set(),
}


class DeployRun:
    """Tracks the phase a deploy run is in."""

    def __init__(self):
        self.state = DeployState.START
        self.history: List[DeployState] = [DeployState.START]

    def advance(self, to: DeployState) -> None:
        if to not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"cannot move deploy from {self.state.value} to {to.value}")
        logger.debug("deploy state: %s -> %s", self.state.value, to.value)
        self.state = to
        self.history.append(to)

    def abort(self) -> None:
        if self.state not in (DeployState.DONE, DeployState.ABORTED):
            self.advance(DeployState.ABORTED)


@dataclass
class UploadOutcome:
    """Result of processing one local file."""

    key: str
    decision: Optional[UploadDecision] = None
    error: Optional[FileUploadError] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def uploaded(self) -> bool:
        return not self.failed and self.decision is UploadDecision.UPLOAD


class SiteDeploy:
    """Incremental deploy of a landscape website to an S3 bucket."""

    def __init__(self, config: Config):
        """Initialize the deploy engine."""
        self.config = config

        # AWS clients will be created lazily to use current config
        self._s3_client = None

    @property
    def s3_client(self):
        """Get S3 client, creating it lazily with current config."""
        if self._s3_client is None:
            session = boto3.Session(**self.config.get_aws_session_kwargs())
            self._s3_client = session.client("s3", **self.config.get_s3_client_kwargs())
        return self._s3_client

    def deploy(self, landscape_dir: Path, bucket: Optional[str] = None, dry_run: bool = False) -> Dict:
        """
        Deploy the landscape website in landscape_dir to the bucket.

        The index document is uploaded last, and only if every other file
        was uploaded successfully.

        Args:
            landscape_dir: Local directory holding the website
            bucket: Target bucket (defaults to the configured one)
            dry_run: Compute the upload plan without uploading anything

        Returns:
            Dictionary with deploy results

        Raises:
            MissingEnvironmentError: required AWS settings not provided
            UploadFilesError: one or more files failed to upload
            IndexDocumentError: the index document failed to upload
        """
        bucket = bucket or self.config.s3.bucket_name
        if not bucket:
            raise ValueError("target bucket not provided")

        logger.info("deploying landscape website..")
        start = time.monotonic()
        run = DeployRun()

        try:
            check_env_vars()

            run.advance(DeployState.LISTING)
            deployed_objects = get_deployed_objects(self.s3_client, bucket)

            if dry_run:
                plan = self.plan(landscape_dir, deployed_objects)
                return self._result(run, plan, index_uploaded=False, dry_run=True)

            run.advance(DeployState.UPLOADING)
            outcomes = self.upload_files(bucket, landscape_dir, deployed_objects)

            run.advance(DeployState.PUBLISHING_INDEX)
            index_uploaded = self.upload_index_document(bucket, landscape_dir, deployed_objects)

            run.advance(DeployState.DONE)
        except Exception:
            run.abort()
            raise

        duration = time.monotonic() - start
        logger.info("landscape website deployed! (took: %.3fs)", duration)

        result = self._result(run, outcomes, index_uploaded=index_uploaded)
        result["duration"] = duration
        return result

    def plan(self, landscape_dir: Path, deployed_objects: RemoteState) -> List[UploadOutcome]:
        """Upload decision for every local file, index document last."""
        plan = []
        for local_file in scan_local_files(landscape_dir):
            if local_file.key == INDEX_DOCUMENT:
                continue
            plan.append(self._decide(local_file, deployed_objects))

        index_path = landscape_dir / INDEX_DOCUMENT
        try:
            decision = decide_index_upload(deployed_objects, local_modified(index_path))
            plan.append(UploadOutcome(key=INDEX_DOCUMENT, decision=decision))
        except OSError as e:
            plan.append(UploadOutcome(key=INDEX_DOCUMENT, error=FileUploadError(INDEX_DOCUMENT, e)))
        return plan

    def upload_files(self, bucket: str, landscape_dir: Path, deployed_objects: RemoteState) -> List[UploadOutcome]:
        """
        Upload landscape website files (except the index document).

        Files are processed concurrently and every outcome is collected
        before reporting, so one failure doesn't stop the other uploads.

        Raises:
            UploadFilesError: listing every file that failed
        """
        local_files = [f for f in scan_local_files(landscape_dir) if f.key != INDEX_DOCUMENT]

        with ThreadPoolExecutor(max_workers=self.config.s3.upload_concurrency) as executor:
            outcomes = list(
                executor.map(lambda f: self._process_file(bucket, f, deployed_objects), local_files)
            )

        errors = [outcome.error for outcome in outcomes if outcome.failed]
        if errors:
            raise UploadFilesError(errors)

        uploaded = sum(1 for outcome in outcomes if outcome.uploaded)
        logger.info("uploaded %d of %d files", uploaded, len(outcomes))
        return outcomes

    def upload_index_document(self, bucket: str, landscape_dir: Path, deployed_objects: RemoteState) -> bool:
        """
        Upload the index document if the remote copy is outdated.

        Returns:
            True if the index document was uploaded

        Raises:
            IndexDocumentError: if the upload fails
        """
        index_path = landscape_dir / INDEX_DOCUMENT
        try:
            decision = decide_index_upload(deployed_objects, local_modified(index_path))
            if not decision.is_upload:
                logger.debug("index document up to date")
                return False
            self._put_file(bucket, INDEX_DOCUMENT, index_path, INDEX_DOCUMENT_CONTENT_TYPE)
        except (OSError, BotoCoreError, ClientError) as e:
            raise IndexDocumentError(e) from e

        logger.debug("index document uploaded")
        return True

    def _decide(self, local_file: LocalFile, deployed_objects: RemoteState) -> UploadOutcome:
        try:
            decision = decide_upload(local_file.key, deployed_objects, local_file.modified())
        except OSError as e:
            return UploadOutcome(key=local_file.key, error=FileUploadError(local_file.key, e))
        return UploadOutcome(key=local_file.key, decision=decision)

    def _process_file(self, bucket: str, local_file: LocalFile, deployed_objects: RemoteState) -> UploadOutcome:
        outcome = self._decide(local_file, deployed_objects)
        if outcome.failed:
            return outcome
        if not outcome.decision.is_upload:
            logger.debug("skipping %s (%s)", outcome.key, outcome.decision.value)
            return outcome

        try:
            content_type = guess_content_type(local_file.key)
            self._put_file(bucket, local_file.key, local_file.path, content_type)
        except FILE_ERRORS as e:
            logger.debug("error uploading file %s: %s", local_file.key, e)
            outcome.error = FileUploadError(local_file.key, e)
            return outcome

        logger.debug("file uploaded: %s", local_file.key)
        return outcome

    def _put_file(self, bucket: str, key: str, path: Path, content_type: str) -> None:
        """Stream a local file to the bucket."""
        with open(path, "rb") as body:
            self.s3_client.put_object(Bucket=bucket, Key=key, Body=body, ContentType=content_type)

    def _result(self, run: DeployRun, outcomes: List[UploadOutcome], index_uploaded: bool, dry_run: bool = False) -> Dict:
        skipped = Counter(
            outcome.decision.value
            for outcome in outcomes
            if outcome.decision is not None and not outcome.decision.is_upload
        )
        return {
            "state": run.state.value,
            "dry_run": dry_run,
            "files_uploaded": sum(1 for outcome in outcomes if outcome.uploaded) + int(index_uploaded),
            "files_skipped": dict(skipped),
            "index_uploaded": index_uploaded,
            "files": outcomes,
        }
