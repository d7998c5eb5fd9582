"""Upload tools exposing the collection upload pipeline over MCP"""

import logging
import threading
from typing import Callable, Optional

from mcp.server.fastmcp import FastMCP

from managers.errors import UploadError
from managers.upload_config import UploadConfig, save_collection_profile
from managers.upload_pipeline import UploadPipeline, build_pipeline, collect_status

logger = logging.getLogger("MCP_Server")


def register_upload_tools(
    mcp: FastMCP,
    config: UploadConfig,
    pipeline_factory: Optional[Callable[..., UploadPipeline]] = None
):
    """Register upload tools with the MCP server"""
    pipeline_factory = pipeline_factory or build_pipeline
    run_lock = threading.Lock()

    @mcp.tool()
    def get_upload_info() -> dict:
        """Get uploader configuration: input/output paths, cache files, API URL,
        whether PINATA_JWT is configured, and the collection profile.

        Call this first to verify setup before uploading.
        """
        return config.get_info()

    @mcp.tool()
    def set_collection_profile(
        name_prefix: Optional[str] = None,
        description: Optional[str] = None,
        network_label: Optional[str] = None,
        project_tag: Optional[str] = None,
        include_prompt_trait: Optional[bool] = None
    ) -> dict:
        """Save collection profile fields in persistent configuration.

        Saved fields are remembered across server restarts and take precedence
        over the COLLECTION_* environment variables. Only the fields passed are
        changed. Already-pinned metadata is not affected; new wording applies to
        metadata uploaded afterwards.

        Args:
            name_prefix: Token name prefix ("<prefix> #<id>") and display-name prefix
            description: Description stamped on every metadata document
            network_label: Value of the "Network" trait
            project_tag: "project" tag attached to every pinned object
            include_prompt_trait: Whether the draft prompt becomes a "Prompt" trait

        Returns:
            Dict with success, the resolved profile and the config file path,
            or an error dict with "error" and "error_code" keys
        """
        fields = {
            key: value for key, value in {
                "name_prefix": name_prefix,
                "description": description,
                "network_label": network_label,
                "project_tag": project_tag,
                "include_prompt_trait": include_prompt_trait,
            }.items() if value is not None
        }
        if not fields:
            return {"error": "No profile fields given", "error_code": "CONFIGURATION_ERROR"}

        try:
            config.profile = save_collection_profile(fields)
        except UploadError as e:
            return {"error": str(e), "error_code": e.error_code}

        logger.info(f"Collection profile updated: {sorted(fields)}")
        return {
            "success": True,
            "profile": config.profile.to_dict(),
            "config_file": config.get_info()["config_file"],
        }

    @mcp.tool()
    def get_upload_status() -> dict:
        """Report upload progress without uploading anything.

        Returns:
            Dict with:
            - images_cached / metadata_cached: Number of cached references per namespace
            - resolved: Identifiers with a valid filename and a matching draft, in upload order
            - pending: Resolved identifiers whose metadata is not uploaded yet
            - skipped: Payload files excluded from upload, with reasons
        """
        try:
            return collect_status(pipeline_factory(config, read_only=True))
        except UploadError as e:
            return {"error": str(e), "error_code": e.error_code}

    @mcp.tool()
    def upload_collection() -> dict:
        """Upload every resolved asset's image and metadata to IPFS, skipping
        anything already in the upload caches.

        Assets are processed strictly in filename order. The first transport or
        storage failure aborts the run; cached progress is kept, so calling this
        tool again resumes where the failed run stopped. tokenUriMap.json and
        uploadResults.json are only written when every asset succeeded.

        Returns:
            Run report dict (status, results, token_uri_map, skipped, upload and
            reuse counts), or an error dict with "error" and "error_code" keys
        """
        if not run_lock.acquire(blocking=False):
            return {
                "error": "An upload run is already in progress",
                "error_code": "RUN_IN_PROGRESS"
            }
        try:
            pipeline = pipeline_factory(config)
            report = pipeline.run()
        except UploadError as e:
            logger.error(f"Upload run could not start: {e}")
            return {"error": str(e), "error_code": e.error_code}
        finally:
            run_lock.release()

        if not report.ok:
            logger.error(f"Upload run failed: {report.error}")
        return report.to_dict()
