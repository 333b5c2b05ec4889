"""
Shared variable file.

The var file is a ``.auto.tfvars.json`` document that terraform reads natively.
It is attached to every stage and uploaded to the outputs bucket once the
bootstrap stage has been applied, so later runs and later stages see it.

The on-disk bytes and the in-memory body are kept in sync: every mutation
rewrites the file before returning, and a save without changes leaves the
file byte-identical.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pastures.config import FastConfig
from pastures.errors import ConfigParseError, RemoteWriteError
from pastures.fabric import keys
from pastures.logging_config import get_logger
from pastures.storage import StoreFactory, open_store
from pastures.storage.protocol import ObjectStoreError

logger = get_logger(__name__)


def _render(body: dict[str, Any]) -> bytes:
    return (json.dumps(body, indent=2) + "\n").encode()


def _parse(path: Path, raw: bytes) -> dict[str, Any]:
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise ConfigParseError(str(path), str(e)) from e
    if not isinstance(body, dict):
        raise ConfigParseError(str(path), "top-level value must be an object")
    return body


class VarFile:
    """A var file on disk plus its remote object reference."""

    def __init__(
        self,
        local_path: Path,
        body: dict[str, Any],
        raw: bytes,
        store_factory: StoreFactory | None = None,
    ) -> None:
        self.local_path = local_path
        self._body = body
        self._raw = raw
        self._store_factory = store_factory or open_store
        self._config: FastConfig | None = None
        self._bucket: str | None = None
        self._remote_path: str | None = None

    # --- Construction ---

    @classmethod
    def load(cls, path: str | Path, store_factory: StoreFactory | None = None) -> VarFile:
        """Parse a var file from disk.

        Raises:
            ConfigParseError: If the file is missing or not a JSON object.
        """
        local_path = Path(path)
        try:
            raw = local_path.read_bytes()
        except OSError as e:
            raise ConfigParseError(str(local_path), e.strerror or str(e)) from e

        body = _parse(local_path, raw)
        logger.debug("Loaded var file", path=str(local_path), keys=len(body))
        return cls(local_path, body, raw, store_factory)

    @classmethod
    def create(
        cls,
        path: str | Path,
        body: dict[str, Any],
        store_factory: StoreFactory | None = None,
    ) -> VarFile:
        """Write a new var file with ``body`` and return it."""
        local_path = Path(path)
        local_path.parent.mkdir(parents=True, exist_ok=True)
        raw = _render(body)
        local_path.write_bytes(raw)
        logger.info("Wrote var file", path=str(local_path))
        return cls(local_path, dict(body), raw, store_factory)

    # --- Accessors ---

    @property
    def body(self) -> dict[str, Any]:
        return dict(self._body)

    @property
    def config(self) -> FastConfig | None:
        return self._config

    @property
    def bucket(self) -> str | None:
        return self._bucket

    @property
    def remote_path(self) -> str | None:
        return self._remote_path

    def read_config(self) -> FastConfig:
        """Validate the body as a ``FastConfig``.

        Raises:
            ConfigParseError: If ``prefix`` is missing or invalid.
        """
        try:
            return FastConfig.model_validate(self._body)
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigParseError(str(self.local_path), errors) from e

    # --- Mutation ---

    def add_config(self, config: FastConfig) -> None:
        if self._bucket is not None:
            raise RuntimeError("add_config must be called before set_bucket")
        self._config = config

    def set_bucket(self, prefix: str) -> None:
        """Fix the remote object reference for ``prefix``.

        Calling again with the same prefix is a no-op.
        """
        bucket = keys.outputs_bucket(prefix)
        if self._bucket is not None:
            if self._bucket != bucket:
                raise ValueError(
                    f"Var file bucket already set to {self._bucket}, refusing {bucket}"
                )
            return
        if self._config is None:
            raise RuntimeError("add_config must be called before set_bucket")

        self._bucket = bucket
        self._remote_path = keys.PASTURES_VARS_OBJECT

    def update(self, **values: Any) -> None:
        """Merge ``values`` into the body and rewrite the file."""
        self._body.update(values)
        self._raw = _render(self._body)
        self.local_path.write_bytes(self._raw)

    def save(self) -> None:
        """Write the current body back to disk."""
        self.local_path.write_bytes(self._raw)

    # --- Remote ---

    async def upload_file(self) -> None:
        """Copy the local file to the outputs bucket, overwriting.

        Raises:
            RemoteWriteError: On transport or permission failures.
        """
        if self._bucket is None or self._remote_path is None:
            raise RemoteWriteError("Var file has no remote reference; call set_bucket first")

        try:
            data = self.local_path.read_bytes()
        except OSError as e:
            raise RemoteWriteError(f"Unable to read {self.local_path}: {e}") from e

        store = self._store_factory(self._bucket)
        try:
            meta = await store.put(self._remote_path, data, content_type="application/json")
        except ObjectStoreError as e:
            raise RemoteWriteError(
                f"Unable to upload var file to gs://{self._bucket}/{self._remote_path}: {e}"
            ) from e
        finally:
            await store.close()

        logger.info(
            "Uploaded var file",
            bucket=self._bucket,
            object=meta.key,
            size=meta.size_bytes,
            etag=meta.etag,
        )
