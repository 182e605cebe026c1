"""
backend/owners.py

Owner allow-list loaded from configuration.

Owners cannot self-register: an owner login is valid only when the
{username, password} pair appears in the allow-list file named by
OWNERS_FILE. The loaded OwnerDirectory is stored on app.state at startup
and injected into the login route, so nothing here is module-global.

Pure Python logic - no FastAPI imports, no database access.
"""

from __future__ import annotations

import hmac
import json
from pathlib import Path as FsPath
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator


class OwnerCredential(BaseModel):
    """One allow-list entry."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def fit_bcrypt_limit(cls, v):
        if len(v.encode("utf-8")) > 72:
            raise ValueError("owner password must be at most 72 bytes")
        return v


class OwnerDirectory:
    """Read-only lookup table of owner credentials."""

    def __init__(self, credentials: Iterable[OwnerCredential] = ()):
        self._by_username: Dict[str, OwnerCredential] = {}
        for cred in credentials:
            if cred.username in self._by_username:
                raise ValueError(f"Duplicate owner username in allow-list: {cred.username}")
            self._by_username[cred.username] = cred

    def __len__(self) -> int:
        return len(self._by_username)

    def __contains__(self, username: object) -> bool:
        return username in self._by_username

    def verify(self, username: Optional[str], password: Optional[str]) -> bool:
        """True only when both username and password match an allow-list entry."""
        if not username or not password:
            return False
        cred = self._by_username.get(username)
        if cred is None:
            return False
        return hmac.compare_digest(cred.password.encode(), password.encode())

    @classmethod
    def from_entries(cls, entries: List[dict]) -> "OwnerDirectory":
        """Build a directory from raw JSON entries, rejecting malformed ones."""
        if not isinstance(entries, list):
            raise ValueError("Owner allow-list must be a JSON list")
        try:
            return cls(OwnerCredential(**entry) for entry in entries)
        except (TypeError, ValidationError) as e:
            raise ValueError(f"Invalid owner allow-list entry: {e}") from e


def resolve_owners_path(owners_file: str) -> FsPath:
    path = FsPath(owners_file)
    if not path.is_absolute():
        path = FsPath(__file__).resolve().parent / path
    return path


def load_owner_directory(owners_file: str) -> OwnerDirectory:
    """
    Load the owner allow-list from a JSON file.

    A missing file yields an empty directory (no owner can log in) and a
    warning; a malformed file raises ValueError so startup fails loudly.
    """
    path = resolve_owners_path(owners_file)
    if not path.exists():
        print(f"[CONFIG] WARNING: owner allow-list not found at {path}; owner login disabled")
        return OwnerDirectory()

    with path.open(encoding="utf-8") as fh:
        try:
            entries = json.load(fh)
        except json.JSONDecodeError as e:
            raise ValueError(f"Owner allow-list {path} is not valid JSON: {e}") from e

    directory = OwnerDirectory.from_entries(entries)
    print(f"[CONFIG] Loaded {len(directory)} owner credential(s) from {path.name}")
    return directory
