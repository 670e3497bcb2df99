from shared.utils.s3 import build_upload_key, public_file_url

__all__ = ["build_upload_key", "public_file_url"]
