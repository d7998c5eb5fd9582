"""Upload pipeline: pins each asset's image, then its metadata, at most once across runs"""

import logging
from typing import Any, Dict

from managers.asset_resolver import AssetResolver
from managers.errors import StorageError, TransportError, UploadError
from managers.metadata_assembler import assemble_metadata
from managers.result_writer import ResultWriter
from managers.upload_cache import IMAGE_NAMESPACE, METADATA_NAMESPACE, UploadCache
from models.asset import ResolvedAsset
from models.metadata import CollectionProfile, FinalMetadata
from models.run import AssetResult, AssetState, RunReport, StepOutcome
from pinata_client import PinataClient

logger = logging.getLogger("CollectionUploader")


class UploadPipeline:
    """Drives every resolved asset through PENDING -> IMAGE_PUBLISHED ->
    METADATA_PUBLISHED -> RECORDED, strictly in filename order.

    The cache store is the resumption record: each freshly published reference
    is persisted before the asset advances, so re-running after a failure only
    redoes work that was never durably cached. Run outputs are written only
    when every asset reached RECORDED.
    """

    def __init__(
        self,
        resolver: AssetResolver,
        cache: UploadCache,
        publisher,
        writer: ResultWriter,
        profile: CollectionProfile,
    ):
        """Initialize the pipeline.

        Args:
            resolver: Asset resolver for the input directories
            cache: Upload cache store (both namespaces)
            publisher: Object with publish_blob(data, name, tags) and
                publish_document(document, name, tags), e.g. PinataClient
            writer: Result writer for the run outputs
            profile: Collection profile for metadata and tags
        """
        self.resolver = resolver
        self.cache = cache
        self.publisher = publisher
        self.writer = writer
        self.profile = profile

    def _tags(self, identifier: str, kind: str):
        return {"project": self.profile.project_tag, "id": identifier, "kind": kind}

    def publish_image(self, asset: ResolvedAsset) -> StepOutcome:
        """PENDING -> IMAGE_PUBLISHED: reuse the cached image reference or pin the payload."""
        identifier = asset.identifier
        cached = self.cache.get(IMAGE_NAMESPACE, identifier)
        if cached:
            logger.info(f"[{identifier}] Skipping (already uploaded): {cached}")
            return StepOutcome.success(cached, reused=True)

        logger.info(f"[{identifier}] Uploading NEW image: {asset.filename}")
        try:
            data = asset.payload_path.read_bytes()
        except OSError as e:
            return StepOutcome.failure(
                StorageError(f"Failed to read payload {asset.payload_path}: {e}", path=asset.payload_path)
            )

        try:
            image_uri = self.publisher.publish_blob(
                data, f"{self.profile.name_prefix}-Image-{identifier}", self._tags(identifier, "image")
            )
            self.cache.put(IMAGE_NAMESPACE, identifier, image_uri)
        except (TransportError, StorageError) as e:
            return StepOutcome.failure(e)

        logger.info(f"[{identifier}] Image URI: {image_uri}")
        return StepOutcome.success(image_uri)

    def publish_metadata(self, asset: ResolvedAsset, metadata: FinalMetadata) -> StepOutcome:
        """IMAGE_PUBLISHED -> METADATA_PUBLISHED: reuse the cached token reference or pin the document."""
        identifier = asset.identifier
        cached = self.cache.get(METADATA_NAMESPACE, identifier)
        if cached:
            logger.info(f"[{identifier}] Skipping metadata upload (already uploaded): {cached}")
            return StepOutcome.success(cached, reused=True)

        logger.info(f"[{identifier}] Uploading NEW metadata JSON...")
        try:
            token_uri = self.publisher.publish_document(
                metadata.to_dict(),
                f"{self.profile.name_prefix}-Metadata-{identifier}",
                self._tags(identifier, "metadata"),
            )
            self.cache.put(METADATA_NAMESPACE, identifier, token_uri)
        except (TransportError, StorageError) as e:
            return StepOutcome.failure(e)

        logger.info(f"[{identifier}] Token URI: {token_uri}")
        return StepOutcome.success(token_uri)

    def _abort(self, report: RunReport, identifier: str, state: AssetState, error: UploadError) -> RunReport:
        report.error = error
        report.failed_id = identifier
        report.failed_state = state
        logger.error(f"[{identifier}] Aborting run in state {state.value} ({error.error_code})")
        return report

    def run(self) -> RunReport:
        """Run the pipeline over every resolved asset.

        Fatal errors (transport, storage, empty input) end the run immediately
        and are returned on the report instead of raised; the run outputs are
        then left untouched.

        Returns:
            RunReport
        """
        report = RunReport()
        try:
            self.cache.load_all()
            resolution = self.resolver.resolve()
        except UploadError as e:
            report.error = e
            return report
        report.skipped = list(resolution.skipped)

        for asset in resolution.assets:
            identifier = asset.identifier
            state = AssetState.PENDING

            image = self.publish_image(asset)
            if not image.ok:
                return self._abort(report, identifier, state, image.error)
            if image.reused:
                report.images_reused += 1
            else:
                report.images_uploaded += 1
            state = AssetState.IMAGE_PUBLISHED

            metadata = assemble_metadata(identifier, asset.draft, image.reference, self.profile)
            token = self.publish_metadata(asset, metadata)
            if not token.ok:
                return self._abort(report, identifier, state, token.error)
            if token.reused:
                report.metadata_reused += 1
            else:
                report.metadata_uploaded += 1
            state = AssetState.METADATA_PUBLISHED
            logger.debug(f"[{identifier}] {state.value}")

            report.results.append(AssetResult(id=identifier, image_uri=image.reference, token_uri=token.reference))
            report.token_uri_map[identifier] = token.reference
            state = AssetState.RECORDED
            logger.debug(f"[{identifier}] {state.value}")

        try:
            self.writer.write(report.results, report.token_uri_map)
        except StorageError as e:
            report.error = e
            return report
        report.outputs_written = True

        self._log_summary(report)
        return report

    def _log_summary(self, report: RunReport):
        logger.info(
            f"Done. {len(report.results)} asset(s) recorded: "
            f"{report.images_uploaded} image(s) uploaded, {report.images_reused} reused; "
            f"{report.metadata_uploaded} metadata document(s) uploaded, {report.metadata_reused} reused"
        )
        if report.skipped:
            logger.info(f"Skipped {len(report.skipped)} payload file(s):")
            for skip in report.skipped:
                logger.info(f"  {skip.filename}: {skip.reason}")


class ReadOnlyPublisher:
    """Publisher for status checks; any publish attempt is an error."""

    def publish_blob(self, data, display_name, tags=None):
        raise TransportError("Publishing is disabled for read-only pipelines")

    def publish_document(self, document, display_name, tags=None):
        raise TransportError("Publishing is disabled for read-only pipelines")


def build_pipeline(config, publisher=None, read_only: bool = False) -> UploadPipeline:
    """Wire a pipeline from an UploadConfig.

    Args:
        config: UploadConfig
        publisher: Publisher to use (default: a PinataClient built from config)
        read_only: Use a publisher that refuses to publish; no credentials needed

    Raises:
        ConfigurationError: If a PinataClient is needed and credentials are missing
    """
    if read_only:
        publisher = ReadOnlyPublisher()
    elif publisher is None:
        publisher = PinataClient(
            config.require_credentials(), base_url=config.api_url, timeout=config.request_timeout
        )
    config.ensure_output_root()
    return UploadPipeline(
        resolver=AssetResolver(config.images_dir, config.drafts_dir, config.payload_extensions),
        cache=UploadCache(config.cache_paths),
        publisher=publisher,
        writer=ResultWriter(config.token_uri_map_path, config.results_path),
        profile=config.profile,
    )


def collect_status(pipeline: UploadPipeline) -> Dict[str, Any]:
    """Load caches and resolve inputs to report progress, without publishing.

    Raises:
        UploadError: If the caches or inputs cannot be read
    """
    pipeline.cache.load_all()
    resolution = pipeline.resolver.resolve()
    metadata_cache = pipeline.cache.entries(METADATA_NAMESPACE)
    return {
        "images_cached": len(pipeline.cache.entries(IMAGE_NAMESPACE)),
        "metadata_cached": len(metadata_cache),
        "resolved": [asset.identifier for asset in resolution.assets],
        "pending": [asset.identifier for asset in resolution.assets if asset.identifier not in metadata_cache],
        "skipped": [skip.to_dict() for skip in resolution.skipped],
    }
