import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

_SUPABASE_URL = os.getenv('SUPABASE_URL', '').rstrip('/')
_SUPABASE_KEY = os.getenv('SUPABASE_KEY') or os.getenv('SUPABASE_SERVICE_ROLE_KEY')

_QUOTES_BUCKET = os.getenv('QUOTES_BUCKET', 'quotes')

# Supabase's resumable endpoint only accepts 6 MiB chunks (the last one may be shorter)
_UPLOAD_CHUNK_SIZE = int(os.getenv('UPLOAD_CHUNK_SIZE', str(6 * 1024 * 1024)))
_UPLOAD_TIMEOUT_SECONDS = float(os.getenv('UPLOAD_TIMEOUT_SECONDS', '600'))

_ORPHAN_GRACE_MINUTES = int(os.getenv('ORPHAN_GRACE_MINUTES', '60'))

_SERVICE_NAME = os.getenv('SERVICE_NAME', 'renodesk-data-service')


class Config:
    """Central configuration for the renovation desk data service."""

    SUPABASE_URL = _SUPABASE_URL
    SUPABASE_KEY = _SUPABASE_KEY

    QUOTES_BUCKET = _QUOTES_BUCKET
    UPLOAD_CHUNK_SIZE = _UPLOAD_CHUNK_SIZE
    UPLOAD_TIMEOUT_SECONDS = _UPLOAD_TIMEOUT_SECONDS

    ORPHAN_GRACE_MINUTES = _ORPHAN_GRACE_MINUTES

    SERVICE_NAME = _SERVICE_NAME
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    ENVIRONMENT = os.getenv('ENVIRONMENT', 'production').lower()

    OTEL_ENABLED = os.getenv('OTEL_ENABLED', 'false').lower() == 'true'
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')

    @property
    def storage_public_prefix(self) -> str:
        """Public URL prefix of every object in the quotes bucket."""
        return f"{self.SUPABASE_URL}/storage/v1/object/public/{self.QUOTES_BUCKET}/"

    @property
    def resumable_upload_endpoint(self) -> str:
        return f"{self.SUPABASE_URL}/storage/v1/upload/resumable"


settings = Config()
