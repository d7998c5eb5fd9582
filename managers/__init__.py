"""Manager classes for the collection uploader"""

from managers.asset_resolver import AssetResolver
from managers.result_writer import ResultWriter
from managers.upload_cache import UploadCache
from managers.upload_config import UploadConfig

__all__ = ["AssetResolver", "ResultWriter", "UploadCache", "UploadConfig"]
