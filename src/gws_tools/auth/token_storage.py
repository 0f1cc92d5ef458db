"""JSON token file for gws-tools.

One file holds a record per service name, each a serialized ``StoredToken``.
The default location is ``./.gws-tools/tokens.json``; ``GWS_TOOLS_TOKEN_PATH``
moves it. The file is plain JSON protected only by owner-only permissions.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from gws_tools.auth.models import (
    OAuthToken,
    StoredToken,
    TokenMetadata,
    TokenStatus,
)
from gws_tools.config import DEFAULT_TOKEN_PATH

logger = logging.getLogger(__name__)


class TokenStorage:
    """Read and write OAuth tokens in a JSON file.

    Nothing touches the disk until the first ``store()``. Writes go to a
    temporary file in the same directory and replace the token file in one
    step, so readers never see a partial file.
    """

    def __init__(self, token_path: Path | None = None) -> None:
        self.token_path = token_path or DEFAULT_TOKEN_PATH

    def _read_records(self) -> dict[str, dict]:
        if not self.token_path.exists():
            return {}
        try:
            with open(self.token_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read token file %s: %s", self.token_path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_records(self, records: dict[str, dict]) -> None:
        directory = self.token_path.parent
        directory.mkdir(parents=True, exist_ok=True)
        directory.chmod(0o700)

        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".tokens-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(records, f, indent=2)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.token_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def store(self, service_name: str, token: OAuthToken, metadata: TokenMetadata) -> None:
        """Store or replace the token record for ``service_name``."""
        record = StoredToken(metadata=metadata, token=token)
        records = self._read_records()
        records[service_name] = record.model_dump(mode="json")
        self._write_records(records)
        logger.debug("Stored token for %s in %s", service_name, self.token_path)

    def retrieve(self, service_name: str) -> StoredToken | None:
        """Return the record for ``service_name``, or None when absent or unparsable."""
        raw = self._read_records().get(service_name)
        if raw is None:
            return None
        try:
            return StoredToken.model_validate(raw)
        except ValueError:
            logger.warning("Ignoring malformed token record for %s", service_name)
            return None

    def get_status(self, service_name: str) -> TokenStatus:
        """Classify the record for ``service_name``.

        Returns:
            MISSING when there is no record, INVALID when it cannot be
            parsed, otherwise EXPIRED or VALID.
        """
        if service_name not in self._read_records():
            return TokenStatus.MISSING
        stored = self.retrieve(service_name)
        if stored is None:
            return TokenStatus.INVALID
        if stored.token.is_expired():
            return TokenStatus.EXPIRED
        return TokenStatus.VALID
